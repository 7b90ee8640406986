# common/api_error/app_error.py
class AppError(Exception):
    """Base error for all application-specific issues."""

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        code: str = "INTERNAL_ERROR",
    ):
        self.message = message
        self.status_code = status_code
        self.code = code
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed scheduling input. Raised before any mutation is attempted."""

    def __init__(self, message: str):
        super().__init__(message, status_code=400, code="VALIDATION_ERROR")


class NotFoundError(AppError):
    def __init__(self, message: str):
        super().__init__(message, status_code=404, code="NOT_FOUND")


class ConflictsChangedError(AppError):
    """
    The live booking state no longer matches what the operator previewed.
    The caller should re-run the preview and ask for confirmation again.
    """

    def __init__(
        self,
        message: str = "The schedule changed since the preview, please retry",
    ):
        super().__init__(message, status_code=409, code="CONFLICTS_CHANGED")


class PersistenceError(AppError):
    """Specific for DB issues. The whole unit of work has been rolled back."""

    def __init__(self, message: str = "Failed to save schedule"):
        super().__init__(message, status_code=500, code="PERSISTENCE_ERROR")


__all__ = [
    "AppError",
    "ValidationError",
    "NotFoundError",
    "ConflictsChangedError",
    "PersistenceError",
]

# common/api_error/config_error.py
from typing import List
from pydantic import ValidationError as PydanticValidationError


class ConfigurationError(RuntimeError):
    """
    Raised when application configuration is invalid or missing.
    Only ever raised during startup.
    """

    @classmethod
    def from_validation_error(
        cls, exc: PydanticValidationError
    ) -> "ConfigurationError":
        """Flatten pydantic errors into one readable message per field."""
        errors: List[str] = []
        for error in exc.errors():
            field = ".".join(str(x) for x in error["loc"])
            errors.append(f"{field}: {error['msg']}")

        return cls(
            "Configuration validation failed:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


__all__ = ["ConfigurationError"]

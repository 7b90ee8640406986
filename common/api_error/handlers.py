# common/api_error/handlers.py
from datetime import datetime
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from .app_error import AppError


def register_exception_handlers(app: FastAPI) -> None:
    """Render every AppError as the same JSON envelope."""
    from common.logger import get_app_logger

    logger = get_app_logger(__name__)

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            f"Domain Error: {exc.code}",
            path=request.url.path,
            error_code=exc.code,
            message=exc.message,
        )

        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": exc.code,
                "message": exc.message,
                "timestamp": datetime.now().isoformat(),
            },
        )


__all__ = ["register_exception_handlers"]

# main.py
import sys
from contextlib import asynccontextmanager
from datetime import datetime

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from common.config import initialize_config, is_configured
from common.logger import get_app_logger
from common.logger.logger_middleware import RequestLoggingMiddleware
from common.api_error import ConfigurationError
from common.api_error.handlers import register_exception_handlers
from app.db import DbManager
from app.api.v1 import api_v1_router

load_dotenv()
try:
    config = initialize_config()
except ConfigurationError as e:
    # structlog is not configured yet
    print(f"FATAL: Configuration error:\n{e}")
    sys.exit(1)

logger = get_app_logger(name=__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    db_config = config.database
    if not db_config:
        raise RuntimeError("Database configuration required")

    logger.info("Connecting to database", **db_config.to_dict_safe())
    db_manager = DbManager.from_config(db_config)
    await db_manager.verify_connection()

    try:
        await db_manager.verify_migrations_current()
    except RuntimeError as e:
        logger.error("Migration check failed", error=str(e))
        logger.error("Run 'alembic upgrade head'")
        await db_manager.dispose()
        raise

    app.state.db_manager = db_manager
    app.state.scheduling_config = config.scheduling

    yield
    logger.info("Shutting down")
    await db_manager.dispose()


app = FastAPI(
    title=config.app_title,
    version=config.app_version,
    description=f"Running in {config.environment} environment",
    lifespan=lifespan,
)
app.add_middleware(
    RequestLoggingMiddleware,
    expose_performance_headers=not config.environment.is_production,
    slow_request_ms=config.logging.slow_request_ms,
)
register_exception_handlers(app)
app.include_router(api_v1_router)


class HealthCheckResponse(BaseModel):
    status: str = Field(..., description="Current system health status")
    timestamp: datetime = Field(..., description="Server time in ISO 8601 format")
    version: str = Field(..., description="Application version")
    logging_configured: bool
    log_level: str
    database: dict = Field(default_factory=dict)


@app.get(
    "/health",
    response_model=HealthCheckResponse,
    responses={503: {"description": "Database unreachable"}},
)
async def check_health() -> HealthCheckResponse:
    db_manager = getattr(app.state, "db_manager", None)
    database = await db_manager.health_check() if db_manager else {"healthy": False}

    if not database.get("healthy"):
        logger.error("Health check failed", endpoint="/health", database=database)
        raise HTTPException(
            status_code=503,
            detail={
                "error": "database unavailable",
                "timestamp": datetime.now().isoformat(),
            },
        )

    return HealthCheckResponse(
        status="Healthy",
        timestamp=datetime.now(),
        version=config.app_version,
        logging_configured=is_configured(),
        log_level=config.logging.level_value,
        database=database,
    )


__all__ = ["app", "config"]

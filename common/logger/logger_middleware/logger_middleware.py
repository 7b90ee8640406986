# common/logger/logger_middleware/logger_middleware.py
"""
Request logging middleware for FastAPI.

Every request gets a request id (taken from ``X-Request-ID`` or generated),
bound into structlog's contextvars together with the caller's hospital id so
that all log lines emitted while serving the request carry both.

Usage:
    app.add_middleware(
        RequestLoggingMiddleware,
        expose_performance_headers=True,
        slow_request_ms=500,
    )
"""

from typing import Callable, Awaitable, Optional
import time
import uuid

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from common.context_vars import request_timer_context_var
from ..logger import get_app_logger
from .request_timer import RequestTimer
from .middleware_types import (
    RequestMetadata,
    RequestDetails,
    RequestLogEntry,
    PerformanceBreakdown,
)

HOSPITAL_HEADER = "X-Hospital-ID"
REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Structured request logging.

    Level is chosen from the outcome: 5xx logs at error, 4xx and slow
    requests at warning, everything else at info.
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        expose_performance_headers: bool = False,
        log_details: bool = True,
        slow_request_ms: float = 1000.0,
        log_query_params: bool = True,
        log_client_info: bool = False,
        logger_name: Optional[str] = None,
    ):
        super().__init__(app)
        self.expose_performance_headers = expose_performance_headers
        self.log_details = log_details
        self.slow_request_ms = slow_request_ms
        self.log_query_params = log_query_params
        self.log_client_info = log_client_info
        self.logger = get_app_logger(name=logger_name or __name__)

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        timer = RequestTimer()
        token = request_timer_context_var.set(timer)
        start_time = time.perf_counter()

        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        hospital_id = request.headers.get(HOSPITAL_HEADER)
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id, hospital_id=hospital_id
        )

        try:
            response = await call_next(request)
        finally:
            duration_ms = (time.perf_counter() - start_time) * 1000
            request_timer_context_var.reset(token)

        perf = PerformanceBreakdown(
            total_ms=round(duration_ms, 2),
            db_session_total_ms=round(timer.timings.get("db", 0.0), 2),
            sql_execution_total_ms=round(timer.timings.get("sql", 0.0), 2),
            query_count=timer.query_count,
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        if self.expose_performance_headers or getattr(
            request.state, "expose_perf", False
        ):
            header = timer.format_server_timing()
            total = f"total;dur={duration_ms:.2f}"
            response.headers["Server-Timing"] = f"{header}, {total}" if header else total

        entry = self._build_log_entry(request, response, duration_ms, perf)
        self._log_request(entry)
        structlog.contextvars.clear_contextvars()
        return response

    def _build_log_entry(
        self,
        request: Request,
        response: Response,
        duration_ms: float,
        perf: PerformanceBreakdown,
    ) -> RequestLogEntry:
        metadata = RequestMetadata(
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round(duration_ms, 2),
        )

        details = None
        if self.log_details:
            details = RequestDetails(
                client_host=(
                    request.client.host
                    if self.log_client_info and request.client
                    else None
                ),
                user_agent=(
                    request.headers.get("user-agent") if self.log_client_info else None
                ),
                query_params=(
                    dict(request.query_params)
                    if self.log_query_params and request.query_params
                    else None
                ),
                path_params=request.path_params or None,
            )

        return RequestLogEntry(
            metadata=metadata,
            details=details,
            performance=perf,
            slow_threshold_ms=self.slow_request_ms,
        )

    def _log_request(self, entry: RequestLogEntry) -> None:
        log_data = entry.model_dump(mode="json", exclude_none=True)

        if entry.is_error:
            self.logger.error("Request failed with server error", **log_data)
        elif entry.is_slow:
            self.logger.warning(
                f"Slow request detected ({entry.metadata.duration_ms}ms)", **log_data
            )
        elif entry.is_client_error:
            self.logger.warning("Request failed with client error", **log_data)
        else:
            self.logger.info("Request completed", **log_data)


async def enable_perf_headers(request: Request) -> None:
    """
    Dependency that exposes the Server-Timing header for one route or router.

        router = APIRouter(dependencies=[Depends(enable_perf_headers)])
    """
    request.state.expose_perf = True


__all__ = [
    "RequestLoggingMiddleware",
    "enable_perf_headers",
    "HOSPITAL_HEADER",
    "REQUEST_ID_HEADER",
]

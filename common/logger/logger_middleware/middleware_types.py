# common/logger/logger_middleware/middleware_types.py
"""
Type definitions for request logging middleware.
"""

from typing import Optional, Dict, Any
from datetime import datetime
from pydantic import BaseModel, Field, computed_field


class PerformanceBreakdown(BaseModel):
    """Where time was spent during the request."""

    total_ms: float
    db_session_total_ms: float = 0.0
    sql_execution_total_ms: float = 0.0
    query_count: int = Field(0, description="Number of SQL statements executed")

    model_config = {"frozen": True}

    @computed_field
    def db_overhead_ms(self) -> float:
        """Session time not spent executing SQL (pool checkout, commit)."""
        return round(self.db_session_total_ms - self.sql_execution_total_ms, 2)


class RequestMetadata(BaseModel):
    """Core request metadata, always captured."""

    method: str
    path: str
    status_code: int = Field(..., ge=100, le=599)
    duration_ms: float = Field(..., ge=0)

    model_config = {"frozen": True}


class RequestDetails(BaseModel):
    """Extended request details, configurable."""

    request_id: Optional[str] = None
    hospital_id: Optional[str] = None
    client_host: Optional[str] = None
    user_agent: Optional[str] = None
    query_params: Optional[Dict[str, Any]] = None
    path_params: Optional[Dict[str, Any]] = None

    model_config = {"frozen": True}


class RequestLogEntry(BaseModel):
    """
    Complete request log entry.

    Serializes cleanly to JSON for structured logging.
    """

    timestamp: datetime = Field(default_factory=datetime.now)
    metadata: RequestMetadata
    details: Optional[RequestDetails] = None
    performance: Optional[PerformanceBreakdown] = None
    slow_threshold_ms: float = Field(1000.0, exclude=True)

    model_config = {"frozen": True}

    @property
    def is_slow(self) -> bool:
        return self.metadata.duration_ms > self.slow_threshold_ms

    @property
    def is_error(self) -> bool:
        return self.metadata.status_code >= 500

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.metadata.status_code < 500


__all__ = [
    "RequestMetadata",
    "RequestDetails",
    "RequestLogEntry",
    "PerformanceBreakdown",
]

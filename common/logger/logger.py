# common/logger/logger.py
"""
Application logger wrapper around structlog.

Usage:
    from common.logger import get_app_logger

    logger = get_app_logger(__name__)
    logger.info("Slots regenerated", doctor_id=doctor_id, created=12)

    # Bind context for a unit of work
    log = logger.bind(doctor_id=doctor_id)
    log.warning("Conflicts changed since preview")
"""

import time
from typing import Any, Dict, Optional
import structlog

from common.config.structlog_config import get_logger as _get_structlog_logger


class TimingStats:
    """Track how long the logger itself spends per call."""

    def __init__(self) -> None:
        self.reset()

    def record(self, elapsed: float) -> None:
        self.total_calls += 1
        self.total_time += elapsed
        self.max_time = max(self.max_time, elapsed)

    def get_stats(self) -> Dict[str, Any]:
        avg = self.total_time / self.total_calls if self.total_calls else 0
        return {
            "total_calls": self.total_calls,
            "avg_time_ms": round(avg * 1000, 4),
            "max_time_ms": round(self.max_time * 1000, 4),
        }

    def reset(self) -> None:
        self.total_calls = 0
        self.total_time = 0.0
        self.max_time = 0.0


class AppLogger:
    """
    Thin, lazily-bound structlog wrapper.

    The underlying structlog logger is resolved on first use so modules can
    create loggers at import time, before configure_structlog() has run.
    """

    def __init__(
        self,
        name: str = "app",
        track_timing: bool = False,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._name = name
        self._track_timing = track_timing
        self._context: Dict[str, Any] = dict(context or {})
        self._logger_instance: Optional[structlog.BoundLogger] = None
        self._timing_stats: Optional[TimingStats] = (
            TimingStats() if track_timing else None
        )

    @property
    def _logger(self) -> structlog.BoundLogger:
        if self._logger_instance is None:
            base = _get_structlog_logger(self._name)
            self._logger_instance = base.bind(**self._context) if self._context else base
        return self._logger_instance

    def bind(self, **kwargs: Any) -> "AppLogger":
        """Return a new logger carrying extra key/value context."""
        return AppLogger(
            name=self._name,
            track_timing=self._track_timing,
            context={**self._context, **kwargs},
        )

    def _log(self, level: str, msg: str, **kwargs: Any) -> None:
        start_time = time.perf_counter() if self._timing_stats is not None else None
        try:
            getattr(self._logger, level)(msg, **kwargs)
        finally:
            if start_time is not None and self._timing_stats is not None:
                self._timing_stats.record(time.perf_counter() - start_time)

    def debug(self, msg: str, **kwargs: Any) -> None:
        self._log("debug", msg, **kwargs)

    def info(self, msg: str, **kwargs: Any) -> None:
        self._log("info", msg, **kwargs)

    def warning(self, msg: str, **kwargs: Any) -> None:
        self._log("warning", msg, **kwargs)

    def error(self, msg: str, **kwargs: Any) -> None:
        self._log("error", msg, **kwargs)

    def critical(self, msg: str, **kwargs: Any) -> None:
        self._log("critical", msg, **kwargs)

    def exception(self, msg: str, **kwargs: Any) -> None:
        """Log at error level with the active exception attached."""
        self._log("error", msg, exc_info=True, **kwargs)

    def get_timing_stats(self) -> Dict[str, Any]:
        if self._timing_stats is None:
            return {"error": "Timing tracking not enabled"}
        return self._timing_stats.get_stats()


def get_app_logger(name: str = "app", track_timing: bool = False) -> AppLogger:
    """
    Get application logger instance.

    Example:
        >>> logger = get_app_logger(__name__, track_timing=True)
        >>> logger.info("Doctor onboarded", doctor_id="...")
        >>> logger.get_timing_stats()
        {'total_calls': 1, 'avg_time_ms': 0.05, 'max_time_ms': 0.05}
    """
    return AppLogger(name=name, track_timing=track_timing)


__all__ = ["AppLogger", "TimingStats", "get_app_logger"]

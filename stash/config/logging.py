"""
Logging configuration for stash.

Every record is a single JSON object carrying the message, a UTC timestamp, the
context of the article being processed (url, domain, extraction method,
component) and keyword fields. Records go to stderr so they never mix with the
article preview printed on stdout.
"""

import json
import logging
import logging.config
import time
from contextlib import contextmanager
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional


@dataclass
class LogContext:
    """What the current records are about."""

    url: Optional[str] = None
    domain: Optional[str] = None
    method: Optional[str] = None
    component: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class TimingInfo:
    """Duration of one timed block."""

    operation: str
    start_time: float
    duration_ms: Optional[int] = None

    def finish(self) -> None:
        self.duration_ms = int((time.perf_counter() - self.start_time) * 1000)

    def to_dict(self) -> Dict[str, Any]:
        return {"operation": self.operation, "duration_ms": self.duration_ms}


class StructuredLogger:
    """
    JSON logger bound to a context.

    Formatting is skipped entirely when the level is disabled, so callers can
    pass large values (markup lengths, attempt lists) without cost.
    """

    def __init__(self, name: str, context: Optional[LogContext] = None):
        """
        Initialize structured logger.

        Args:
            name: Logger name (typically module name)
            context: Optional context information
        """
        self.logger = logging.getLogger(name)
        self.context = context or LogContext()

    def set_context(self, **kwargs) -> None:
        """Update logging context; unknown keys are ignored."""
        for key, value in kwargs.items():
            if hasattr(self.context, key):
                setattr(self.context, key, value)

    def _record(self, message: str, fields: Dict[str, Any]) -> str:
        data = {
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "context": self.context.to_dict(),
        }
        data.update(fields)
        return json.dumps(data, default=str)

    def _emit(self, level: int, message: str, fields: Dict[str, Any]) -> None:
        if self.logger.isEnabledFor(level):
            self.logger.log(level, self._record(message, fields))

    def debug(self, message: str, **kwargs) -> None:
        self._emit(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs) -> None:
        self._emit(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs) -> None:
        self._emit(logging.WARNING, message, kwargs)

    def error(self, message: str, error: Optional[Exception] = None, **kwargs) -> None:
        """Log an error, with type, message and details of *error* when given."""
        if error is not None:
            kwargs["error"] = {
                "type": type(error).__name__,
                "message": str(error),
                "details": getattr(error, "details", {}),
            }
        self._emit(logging.ERROR, message, kwargs)

    def log_fetch_attempt(
        self,
        url: str,
        user_agent: str,
        status_code: int,
        duration_ms: int,
        success: bool
    ) -> None:
        """One GET issued with one client identity."""
        self.info(
            f"GET {url} -> {status_code}",
            user_agent=user_agent,
            http_status=status_code,
            duration_ms=duration_ms,
            success=success
        )

    def log_extraction(self, title: str, content: str, authors: str, published_at: str) -> None:
        """Summary of an extracted article: which fields were found and how much content."""
        self.info(
            "Extraction completed",
            content_length=len(content),
            found={
                "title": bool(title),
                "authors": bool(authors),
                "published_at": bool(published_at),
            }
        )

    @contextmanager
    def timed_operation(self, operation: str, **kwargs):
        """Time a block; failures are logged as warnings and re-raised."""
        timing = TimingInfo(operation=operation, start_time=time.perf_counter())
        self.debug(f"Started {operation}")

        try:
            yield timing
        except Exception as e:
            timing.finish()
            self.warning(
                f"Operation {operation} failed",
                timing=timing.to_dict(),
                success=False,
                error=str(e),
                **kwargs
            )
            raise

        timing.finish()
        self.debug(f"Operation {operation} completed", timing=timing.to_dict(), success=True, **kwargs)


def configure_logging(log_level: str = "WARNING", enable_structured: bool = True) -> None:
    """
    Configure application logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        enable_structured: Emit bare JSON lines, or prefix them with time, logger and level
    """
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structured": {"format": "%(message)s"},
            "simple": {"format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"},
        },
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "level": log_level,
                "formatter": "structured" if enable_structured else "simple",
                "stream": "ext://sys.stderr",
            }
        },
        "root": {"level": log_level, "handlers": ["stderr"]},
        "loggers": {
            # Chatty third-party loggers
            "urllib3": {"level": "WARNING"},
            "requests": {"level": "WARNING"},
            "readability": {"level": "CRITICAL"},
        },
    })


def get_logger(name: str, context: Optional[LogContext] = None) -> StructuredLogger:
    """Get a structured logger instance."""
    return StructuredLogger(name, context)

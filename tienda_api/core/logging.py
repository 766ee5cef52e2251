"""Structured logging for the Tienda API.

JSON output in production (one object per line, ready for Cloud Logging),
plain text in development. Request and entity context passed through
``extra`` is lifted into the JSON payload.
"""
import logging
import json
import sys
import time
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# Attributes copied from a LogRecord into the JSON payload when present
CONTEXT_FIELDS = (
    "request_id", "user_id", "method", "path", "status_code", "duration_ms",
    "operation", "collection", "entity_id", "error_type",
)


class JSONFormatter(logging.Formatter):
    """Render log records as single-line JSON documents."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_obj["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info)
            }

        for attr in CONTEXT_FIELDS:
            if hasattr(record, attr):
                log_obj[attr] = getattr(record, attr)

        return json.dumps(log_obj, default=str, ensure_ascii=False)


def setup_logging(level: str = "INFO", json_format: bool = True) -> logging.Logger:
    """Configure the root logger with a single stdout handler.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use the JSON formatter (production) instead of plain text

    Returns:
        The configured root logger
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level.upper()))

    if json_format:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Return the module logger for ``name`` (usually ``__name__``)."""
    return logging.getLogger(name)


class LogTimer:
    """Context manager that logs how long an operation took.

    Example:
        >>> with LogTimer(logger, "productos.filtrar"):
        ...     productos = await service.filter(params)
    """

    def __init__(self, logger: logging.Logger, operation: str, **context: Any):
        self.logger = logger
        self.operation = operation
        self.context = context
        self.start: Optional[float] = None

    def __enter__(self):
        self.start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.start is None:
            return
        duration = (time.perf_counter() - self.start) * 1000
        extra = {"operation": self.operation, "duration_ms": round(duration, 2), **self.context}

        if exc_type:
            # Domain errors are expected outcomes; log them without a traceback
            self.logger.warning(
                f"{self.operation} failed after {duration:.1f}ms: {exc_val}",
                extra=extra
            )
        else:
            self.logger.info(f"{self.operation} completed in {duration:.1f}ms", extra=extra)


# Initialize logging on module import (reconfigured by main.py)
setup_logging(level="INFO", json_format=False)

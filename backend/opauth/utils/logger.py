"""Structured JSON Logging with Correlation ID Support

Every line is one JSON object. Authorization context passed through
`extra=` (token, target, operation kind, error code) is lifted to top-level
keys, and records that name an operation kind are tagged with its business
module so HR and stock traffic can be filtered apart.
"""
import json
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional
from contextvars import ContextVar

from ..config.settings import settings
from ..domain.enums import OperationKind, OPERATION_MODULES
from .time import utc_now, format_iso


correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

# Extra record attributes promoted to top-level JSON fields
EXTRA_FIELDS = (
    "token_id",
    "target_id",
    "operation_kind",
    "error_code",
    "actor_email",
    "status",
    "details",
)

QUIET_LOGGERS = {
    "uvicorn": logging.INFO,
    "uvicorn.access": logging.WARNING,
    "pymongo": logging.WARNING,
    "apscheduler": logging.WARNING,
}


def _module_for(operation_kind: Any) -> Optional[str]:
    try:
        return OPERATION_MODULES[OperationKind(operation_kind)].value
    except ValueError:
        return None


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging"""

    def format(self, record: logging.LogRecord) -> str:
        log_obj: Dict[str, Any] = {
            "timestamp": format_iso(utc_now()),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        correlation_id = correlation_id_var.get()
        if correlation_id:
            log_obj["correlation_id"] = correlation_id

        for field in EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_obj[field] = value

        if "operation_kind" in log_obj:
            module = _module_for(log_obj["operation_kind"])
            if module:
                log_obj["module"] = module

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_obj, default=str)


def _rotating_handler(
    filename: str,
    formatter: logging.Formatter,
    level: int = logging.NOTSET
) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        os.path.join(settings.logs_path, filename),
        maxBytes=settings.log_max_bytes,
        backupCount=settings.log_backup_count,
        encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging() -> None:
    """Route all logging through JSON handlers: stdout, service log and error log"""
    os.makedirs(settings.logs_path, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level.upper()))
    root_logger.handlers.clear()

    json_formatter = JsonFormatter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(json_formatter)
    root_logger.addHandler(console_handler)

    root_logger.addHandler(_rotating_handler(settings.log_file_name, json_formatter))
    root_logger.addHandler(
        _rotating_handler(settings.error_log_file_name, json_formatter, level=logging.ERROR)
    )

    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name"""
    return logging.getLogger(name)


def set_correlation_id(correlation_id: str) -> None:
    """Set correlation ID in context"""
    correlation_id_var.set(correlation_id)


def get_correlation_id() -> Optional[str]:
    """Get correlation ID from context"""
    return correlation_id_var.get()

"""Logging configuration and utilities for the job matching core."""
import json
import logging
import logging.config
import traceback
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, Optional

import structlog
from pythonjsonlogger.json import JsonFormatter

from jobmatch_core.core.config import Settings


class SensitiveDataFilter(logging.Filter):
    """Filter to remove sensitive information from logs."""

    SENSITIVE_FIELDS = {
        "password",
        "api_key",
        "token",
        "secret",
        "authorization",
        "raw_text",  # Full posting text
        "deal_breakers",
    }

    def __init__(self, extra_fields: Optional[list[str]] = None) -> None:
        """Initialize filter."""
        super().__init__()
        self.replace_with = "[REDACTED]"
        self.fields = self.SENSITIVE_FIELDS | {f.lower() for f in extra_fields or []}

    def filter(self, record: logging.LogRecord) -> bool:
        """Filter sensitive data from log record."""
        if isinstance(record.args, dict):
            record.args = self._filter_dict(record.args)
        elif isinstance(record.args, (list, tuple)):
            record.args = tuple(
                self._filter_dict(arg) if isinstance(arg, dict) else arg
                for arg in record.args
            )

        if isinstance(record.msg, dict):
            record.msg = self._filter_dict(record.msg)

        return True

    def _filter_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively filter dictionary values."""
        if not isinstance(data, dict):
            return data

        filtered = {}
        for key, value in data.items():
            if any(sensitive in str(key).lower() for sensitive in self.fields):
                filtered[key] = self.replace_with
            elif isinstance(value, dict):
                filtered[key] = self._filter_dict(value)
            elif isinstance(value, (list, tuple)):
                filtered[key] = [
                    self._filter_dict(item) if isinstance(item, dict) else item
                    for item in value
                ]
            else:
                filtered[key] = value
        return filtered


class CustomJsonFormatter(JsonFormatter):
    """JSON formatter that merges structlog payloads into the record."""

    def __init__(self, *args: Any, environment: str = "development", version: str = "", **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.environment = environment
        self.version = version

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        """Add custom fields to the log record."""
        super().add_fields(log_record, record, message_dict)

        # structlog renders events as JSON strings
        try:
            message = json.loads(record.getMessage())
            if isinstance(message, dict):
                log_record.update(message)
        except (json.JSONDecodeError, TypeError):
            log_record["message"] = record.getMessage()

        log_record.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
        log_record.update(
            {
                "logger": record.name,
                "level": record.levelname,
                "environment": self.environment,
                "version": self.version,
            }
        )

        if record.exc_info and record.exc_info[0] is not None:
            log_record["error"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info),
            }


def _redact_processor(extra_fields: list[str]) -> Callable[..., Dict[str, Any]]:
    """Build a structlog processor applying the sensitive data filter."""
    sensitive_filter = SensitiveDataFilter(extra_fields)

    def redact(_logger: Any, _method: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
        return sensitive_filter._filter_dict(event_dict)

    return redact


def setup_logging(settings: Optional[Settings] = None) -> None:
    """Set up stdlib logging and route structlog through it.

    Args:
        settings: Application settings. Defaults are used when omitted.
    """
    settings = settings or Settings()
    log_level = settings.LOG_LEVEL.upper()

    handlers: Dict[str, Dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "json" if settings.LOG_JSON else "standard",
            "filters": ["sensitive"],
            "stream": "ext://sys.stdout",
        },
    }

    log_file = settings.get_log_file()
    if log_file:
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "json",
            "filters": ["sensitive"],
            "filename": log_file,
            "maxBytes": settings.LOG_MAX_BYTES,
            "backupCount": settings.LOG_BACKUP_COUNT,
        }

    logging_config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "sensitive": {
                "()": SensitiveDataFilter,
                "extra_fields": settings.LOG_FILTER_FIELDS,
            },
        },
        "formatters": {
            "json": {
                "()": CustomJsonFormatter,
                "fmt": "%(asctime)s %(name)s %(levelname)s %(message)s",
                "environment": settings.ENVIRONMENT,
                "version": settings.VERSION,
            },
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            },
        },
        "handlers": handlers,
        "loggers": {
            "": {  # Root logger
                "handlers": list(handlers),
                "level": log_level,
                "propagate": True,
            },
        },
    }

    logging.config.dictConfig(logging_config)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", key="timestamp"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            _redact_processor(settings.LOG_FILTER_FIELDS),
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    get_logger(__name__).info(
        "Logging configured",
        log_level=log_level,
        json_logs=settings.LOG_JSON,
        log_file=log_file,
    )


@contextmanager
def log_context(**kwargs: Any) -> Iterator[None]:
    """Context manager to add context to logs."""
    with structlog.contextvars.bound_contextvars(**kwargs):
        yield


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance for the given name.

    Args:
        name: The name of the logger.

    Returns:
        A configured logger instance.
    """
    return structlog.get_logger(name)

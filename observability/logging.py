"""
Structured logging for registry operations.

Each public client call runs inside ``operation_context``; every record
logged during it carries the same ``operation_id`` and ``operation`` name,
including records from concurrent per-source searches.

Usage:
    from observability import operation_context, setup_logging

    setup_logging()
    with operation_context("search"):
        ...

Library modules only use ``logging.getLogger(__name__)``; ``setup_logging``
belongs to entry points that own the root logger.
"""

import logging
import os
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, Iterator, Optional

from pythonjsonlogger import jsonlogger

from utils.security import redact_headers, redact_secrets_from_text, redact_sensitive, SENSITIVE_KEYS

_operation_id_ctx: ContextVar[Optional[str]] = ContextVar("operation_id", default=None)
_operation_name_ctx: ContextVar[Optional[str]] = ContextVar("operation", default=None)


def get_operation_id() -> Optional[str]:
    return _operation_id_ctx.get()


def get_operation_name() -> Optional[str]:
    return _operation_name_ctx.get()


@contextmanager
def operation_context(operation: str, operation_id: Optional[str] = None) -> Iterator[str]:
    """Bind an operation id for the duration of one client call.

    Nested calls keep the outer id so a facade call and its fan-out share it.
    """
    current = _operation_id_ctx.get()
    op_id = operation_id or current or f"op-{uuid.uuid4().hex[:16]}"
    id_token = _operation_id_ctx.set(op_id)
    name_token = _operation_name_ctx.set(operation)
    try:
        yield op_id
    finally:
        _operation_name_ctx.reset(name_token)
        _operation_id_ctx.reset(id_token)


class OperationContextFilter(logging.Filter):
    """Stamps operation_id/operation onto records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.operation_id = get_operation_id() or "none"
        record.operation = get_operation_name() or "none"
        return True


class RedactingFilter(logging.Filter):
    """Redacts credentials from record extras, args and the message text."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = redact_secrets_from_text(record.msg)
        if isinstance(record.args, dict):
            record.args = redact_sensitive(record.args)

        for key in list(record.__dict__.keys()):
            value = record.__dict__[key]
            if key.lower() in SENSITIVE_KEYS:
                setattr(record, key, "[REDACTED]")
            elif key == "headers" and isinstance(value, dict):
                record.headers = redact_headers(value)
            elif key == "sources" and isinstance(value, list):
                record.sources = [redact_sensitive(v) if isinstance(v, dict) else v for v in value]
        return True


class RegistryJsonFormatter(jsonlogger.JsonFormatter):
    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = self.formatTime(record, self.datefmt)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["operation_id"] = getattr(record, "operation_id", "none")
        log_record["operation"] = getattr(record, "operation", "none")
        log_record["service"] = "nuget-client"
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)


def setup_logging(level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """
    Configure the root logger for an entry point.

    Environment variables (used when arguments are omitted):
    - LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default INFO)
    - LOG_FORMAT: json or text (default text)
    """
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_format = (log_format or os.getenv("LOG_FORMAT", "text")).lower()

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    if log_format == "json":
        handler.setFormatter(
            RegistryJsonFormatter(
                "%(timestamp)s %(level)s %(logger)s %(operation_id)s %(message)s",
                rename_fields={"timestamp": "@timestamp"},
            )
        )
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(operation_id)s %(operation)s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
    handler.addFilter(OperationContextFilter())
    handler.addFilter(RedactingFilter())

    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # httpx logs every request line at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

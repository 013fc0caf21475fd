"""
Logging utilities for the excerpts retrieval engine.

Every query session runs inside a CorrelationContext carrying its
session_id. The context lives in a ContextVar, so sessions running in
separate threads or tasks never see each other's fields. Handlers installed
by configure_logging attach the active fields to every record, and both
formatters render them.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TextIO, Tuple, Union


PACKAGE_LOGGER = "excerpts"

# Record attributes rendered by the formatters, in output order.
CONTEXT_FIELDS: Tuple[str, ...] = (
    "session_id",
    "correlation_id",
    "query",
    "document_count",
    "chunk_count",
)

_active_context: ContextVar[Dict[str, Any]] = ContextVar("excerpts_log_context", default={})


def _record_context(record: logging.LogRecord, fields: Tuple[str, ...] = CONTEXT_FIELDS) -> Dict[str, Any]:
    return {
        name: getattr(record, name)
        for name in fields
        if getattr(record, name, None) is not None
    }


class StructuredFormatter(logging.Formatter):
    """
    One JSON object per record: level, logger, message, optional UTC
    timestamp, any context fields present, and exception text.
    """

    def __init__(self, include_timestamp: bool = True):
        super().__init__()
        self.include_timestamp = include_timestamp

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if self.include_timestamp:
            entry["timestamp"] = datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat()

        entry.update(_record_context(record))

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """
    Plain text lines with a session suffix.

    Format: TIMESTAMP - LOGGER - LEVEL - MESSAGE [session_id=X correlation_id=Y]
    """

    SUFFIX_FIELDS = ("session_id", "correlation_id")

    def __init__(self, include_timestamp: bool = True):
        prefix = "%(asctime)s - " if include_timestamp else ""
        super().__init__(prefix + "%(name)s - %(levelname)s - %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = _record_context(record, self.SUFFIX_FIELDS)
        if not context:
            return line
        suffix = " ".join(f"{name}={value}" for name, value in context.items())
        return f"{line} [{suffix}]"


class SessionContextFilter(logging.Filter):
    """Copy the active correlation fields onto records that lack them."""

    def filter(self, record: logging.LogRecord) -> bool:
        for name, value in _active_context.get().items():
            if getattr(record, name, None) is None:
                setattr(record, name, value)
        return True


def get_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """Return the named logger, optionally forcing its level."""
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)
    return logger


def configure_logging(
    level: Union[int, str] = logging.INFO,
    format_string: Optional[str] = None,
    include_timestamp: bool = True,
    structured: bool = False,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Attach a handler to the package logger.

    Calling it again only updates the level; the existing handler is kept.

    Args:
        level: Level number or name ("DEBUG", "INFO", ...)
        format_string: Custom format string (ignored if structured=True)
        include_timestamp: Whether log lines carry a timestamp
        structured: JSON lines instead of human-readable text
        stream: Output stream (default: stderr, leaving stdout for context output)

    Returns:
        The package logger

    Example:
        >>> configure_logging(level="DEBUG", structured=True)
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {level}")

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level)

    if package_logger.handlers:
        for handler in package_logger.handlers:
            handler.setLevel(level)
        return package_logger

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)
    handler.addFilter(SessionContextFilter())

    if structured:
        formatter: logging.Formatter = StructuredFormatter(include_timestamp=include_timestamp)
    elif format_string:
        formatter = logging.Formatter(format_string)
    else:
        formatter = HumanReadableFormatter(include_timestamp=include_timestamp)
    handler.setFormatter(formatter)

    package_logger.addHandler(handler)
    return package_logger


class CorrelationContext:
    """
    Scope correlation fields to a block of work.

    Nested contexts merge over the enclosing one and restore it on exit.

    Example:
        >>> with CorrelationContext(session_id="abc"):
        ...     log_with_context(logger, logging.INFO, "Querying", chunk_count=12)
    """

    def __init__(
        self,
        session_id: Optional[str] = None,
        correlation_id: Optional[str] = None,
        **extra: Any,
    ):
        fields = {"session_id": session_id, "correlation_id": correlation_id, **extra}
        self.fields = {k: v for k, v in fields.items() if v is not None}
        self._token = None

    def __enter__(self) -> "CorrelationContext":
        self._token = _active_context.set({**_active_context.get(), **self.fields})
        return self

    def __exit__(self, *args) -> None:
        _active_context.reset(self._token)
        self._token = None

    @staticmethod
    def get_current() -> Dict[str, Any]:
        """Fields of the innermost active context (a copy)."""
        return dict(_active_context.get())


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    **extra: Any,
) -> None:
    """
    Log with the active correlation fields plus extra fields as record attributes.
    """
    fields = CorrelationContext.get_current()
    fields.update(extra)
    logger.log(level, message, extra=fields)

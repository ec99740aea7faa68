"""Context-aware structured logging used by the migration services."""

import logging
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional

from .logging_config import DEFAULT_LOGGER_NAME, setup_logger


class LogLevel(Enum):
    """Log levels for structured logging."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class LogContext:
    """
    Correlation data attached to a log line.

    Record-level work uses ``record_<id>`` as the correlation id so every line
    about one record can be grepped together across worker threads.
    """

    correlation_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    operation: str = ""
    component: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def for_record(cls, record_id: int, component: str) -> "LogContext":
        return cls(
            correlation_id=f"record_{record_id}",
            operation="migrate_record",
            component=component,
            metadata={"record_id": record_id},
        )

    def with_operation(self, operation: str) -> "LogContext":
        return replace(self, operation=operation, metadata=dict(self.metadata))

    def with_metadata(self, **kwargs: Any) -> "LogContext":
        return replace(self, metadata={**self.metadata, **kwargs})


def _render_fields(fields: Dict[str, Any]) -> str:
    return ", ".join(f"{key}={value}" for key, value in fields.items())


class StructuredLogger:
    """Wraps a stdlib logger and renders LogContext into the message text."""

    def __init__(self, name: str = DEFAULT_LOGGER_NAME, level: Optional[str] = None):
        self._logger = setup_logger(name, level=level)

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def format_message(
        self, message: str, context: Optional[LogContext] = None, **kwargs: Any
    ) -> str:
        """Render ``[operation] [correlation_id] message (k=v, ...)``."""
        prefix = ""
        fields = dict(kwargs)
        if context is not None:
            prefix = f"[{context.correlation_id}] "
            if context.operation:
                prefix = f"[{context.operation}] {prefix}"
            fields = {**context.metadata, **kwargs}

        text = f"{prefix}{message}"
        if fields:
            text = f"{text} ({_render_fields(fields)})"
        return text

    def _log(
        self,
        level: LogLevel,
        message: str,
        context: Optional[LogContext] = None,
        **kwargs: Any,
    ) -> None:
        exc_info = kwargs.pop("exc_info", False)
        emit = getattr(self._logger, level.value.lower())
        emit(self.format_message(message, context, **kwargs), exc_info=exc_info)

    def debug(self, message: str, context: Optional[LogContext] = None, **kwargs: Any) -> None:
        self._log(LogLevel.DEBUG, message, context, **kwargs)

    def info(self, message: str, context: Optional[LogContext] = None, **kwargs: Any) -> None:
        self._log(LogLevel.INFO, message, context, **kwargs)

    def warning(self, message: str, context: Optional[LogContext] = None, **kwargs: Any) -> None:
        self._log(LogLevel.WARNING, message, context, **kwargs)

    def error(self, message: str, context: Optional[LogContext] = None, **kwargs: Any) -> None:
        self._log(LogLevel.ERROR, message, context, **kwargs)

    def critical(self, message: str, context: Optional[LogContext] = None, **kwargs: Any) -> None:
        self._log(LogLevel.CRITICAL, message, context, **kwargs)

    def set_level(self, level: LogLevel) -> None:
        self._logger.setLevel(logging.getLevelName(level.value))

"""
Structured logging with correlation IDs and analysis context.
"""

import functools
import json
import logging
import logging.handlers
import sys
import uuid
from contextvars import ContextVar
from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

# Correlation ID of the analysis running in the current context
correlation_id: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)


@dataclass(frozen=True)
class LogContext:
    """Context information attached to every record of a ContextualLogger."""
    symbol: Optional[str] = None
    operation: Optional[str] = None


class CorrelationIdFilter(logging.Filter):
    """Logging filter that adds correlation ID to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id.get() or "unknown"
        return True


_RESERVED_RECORD_FIELDS = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'lineno', 'funcName', 'created',
    'msecs', 'relativeCreated', 'thread', 'threadName',
    'processName', 'process', 'exc_info', 'exc_text',
    'stack_info', 'correlation_id', 'taskName', 'message'
}


class StructuredFormatter(logging.Formatter):
    """
    Formatter that outputs one JSON object per record.

    Every entry carries the correlation ID of the analysis that emitted it,
    so interleaved logs from concurrent analyses can be told apart.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
            "correlation_id": getattr(record, 'correlation_id', 'unknown')
        }

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info)
            }

        extra_fields = {
            key: value for key, value in record.__dict__.items()
            if key not in _RESERVED_RECORD_FIELDS
        }
        if extra_fields:
            log_entry["extra"] = extra_fields

        # non-serializable extras fall back to str()
        return json.dumps(log_entry, default=str, ensure_ascii=False)


class ContextualLogger:
    """Logger wrapper that attaches symbol and operation context to records."""

    def __init__(self, name: str, context: Optional[LogContext] = None):
        self.logger = logging.getLogger(name)
        self.context = context or LogContext()

    def _log(self, level: int, message: str, **fields: Any) -> None:
        extra = {
            key: value for key, value in (
                ("symbol", self.context.symbol),
                ("operation", self.context.operation),
            )
            if value
        }
        extra.update(fields)
        self.logger.log(level, message, extra=extra)

    def info(self, message: str, **fields: Any) -> None:
        self._log(logging.INFO, message, **fields)

    def error(self, message: str, **fields: Any) -> None:
        self._log(logging.ERROR, message, **fields)

    def with_context(self, **context_updates: Any) -> 'ContextualLogger':
        """Create new logger with updated context."""
        return ContextualLogger(self.logger.name, replace(self.context, **context_updates))


class LoggingManager:
    """
    Centralized logging configuration.

    Sets up a stderr console handler and an optional rotating file handler,
    both tagging records with the correlation ID.
    """

    def __init__(self):
        self._configured = False

    def setup_logging(
        self,
        log_level: str = "INFO",
        log_file: Optional[str] = None,
        structured_format: bool = True
    ) -> None:
        """
        Set up logging configuration.

        Args:
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_file: Path to log file (optional)
            structured_format: Whether to use structured JSON format
        """
        if self._configured:
            return

        root_logger = logging.getLogger()
        root_logger.setLevel(getattr(logging, log_level.upper()))
        root_logger.handlers.clear()

        if structured_format:
            formatter = StructuredFormatter()
        else:
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(correlation_id)s - %(message)s'
            )

        # stdout is reserved for analysis output
        handlers = [logging.StreamHandler(sys.stderr)]

        if log_file:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
                encoding='utf-8'
            ))

        for handler in handlers:
            handler.setFormatter(formatter)
            handler.addFilter(CorrelationIdFilter())
            root_logger.addHandler(handler)

        # Reduce noise from third-party libraries
        logging.getLogger('aiohttp').setLevel(logging.WARNING)
        logging.getLogger('asyncio').setLevel(logging.WARNING)

        self._configured = True


# Global logging manager instance
logging_manager = LoggingManager()


def get_logger(name: str, context: Optional[LogContext] = None) -> ContextualLogger:
    return ContextualLogger(name, context)


def with_correlation_id(corr_id: Optional[str] = None):
    """
    Decorator to set correlation ID for a coroutine function.

    Args:
        corr_id: Correlation ID to use, or None to generate a new one per call
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            token = correlation_id.set(corr_id or str(uuid.uuid4()))
            try:
                return await func(*args, **kwargs)
            finally:
                correlation_id.reset(token)
        return wrapper
    return decorator

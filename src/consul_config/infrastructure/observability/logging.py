"""
Structured Logging Setup

JSON and human-readable formatters for the stdlib ``logging`` module, with a
correlation ID that tags every record emitted during one watch cycle.
"""

import json
import logging
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TextIO

# Context variable for correlation tracking
cycle_id_var: ContextVar[Optional[str]] = ContextVar('cycle_id', default=None)

ROOT_LOGGER_NAME = "consul_config"

_STANDARD_ATTRIBUTES = frozenset({
    "name", "msg", "args", "levelname", "levelno", "pathname", "filename",
    "module", "exc_info", "exc_text", "stack_info", "lineno", "funcName",
    "created", "msecs", "relativeCreated", "thread", "threadName",
    "processName", "process", "message", "taskName", "correlation_id",
})


class CorrelationFilter(logging.Filter):
    """Copies the current cycle ID onto every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = cycle_id_var.get()
        return True


class JSONLogFormatter(logging.Formatter):
    """JSON formatter for structured logging"""

    def format(self, record: logging.LogRecord) -> str:
        log_record: Dict[str, Any] = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'correlation_id': getattr(record, 'correlation_id', None),
        }

        extra = {
            key: value for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRIBUTES
        }
        if extra:
            log_record['extra'] = extra
        if record.exc_info:
            log_record['exception'] = self.formatException(record.exc_info)

        # Remove None values to keep logs clean
        log_record = {k: v for k, v in log_record.items() if v is not None}
        return json.dumps(log_record, default=str, ensure_ascii=False)


class HumanReadableFormatter(logging.Formatter):
    """Human-readable formatter for development/debugging"""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        base_msg = f"[{timestamp}] {record.levelname}: {record.name}: {record.getMessage()}"

        correlation_id = getattr(record, 'correlation_id', None)
        if correlation_id:
            base_msg += f" [correlation_id={correlation_id}]"

        if record.exc_info:
            base_msg += "\n" + self.formatException(record.exc_info)

        return base_msg


def configure_logging(config=None, stream: TextIO = sys.stdout) -> logging.Logger:
    """
    Configure the package logger.

    Args:
        config: LoggingConfiguration; defaults apply when omitted
        stream: Output stream for the console handler

    Returns:
        The configured package logger
    """
    level = getattr(config, 'level', 'INFO')
    use_json = getattr(config, 'format', 'json') == 'json'

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Clear existing handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(JSONLogFormatter() if use_json else HumanReadableFormatter())
    handler.addFilter(CorrelationFilter())
    logger.addHandler(handler)
    logger.propagate = False

    return logger


@contextmanager
def watch_cycle(cycle_id: Optional[str] = None):
    """Context manager tagging every log record of one watch cycle"""
    if cycle_id is None:
        cycle_id = uuid.uuid4().hex[:12]

    token = cycle_id_var.set(cycle_id)
    try:
        yield cycle_id
    finally:
        cycle_id_var.reset(token)


def get_cycle_id() -> Optional[str]:
    """Get the current cycle ID from context"""
    return cycle_id_var.get()

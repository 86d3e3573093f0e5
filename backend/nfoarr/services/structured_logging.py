"""
Structured Logging Service

JSON log output for the NFO pipeline. Every record emitted inside a
``CorrelationContext`` carries the batch id, the release id and any extra
scope (guid prefix, group) that the pipeline set around it.
"""

import json
import logging
import uuid
from contextvars import ContextVar
from datetime import datetime
from typing import Optional, Dict, Any


_log_context: ContextVar[Dict[str, Any]] = ContextVar('nfoarr_log_context', default={})


def current_context() -> Dict[str, Any]:
    """Correlation fields active in the current context."""
    return dict(_log_context.get())


def generate_batch_id() -> str:
    """Generate a new short batch ID."""
    return uuid.uuid4().hex[:8]


class CorrelationContext:
    """
    Context manager that adds correlation fields to every log record.

    Nested contexts merge into the enclosing one; ``None`` values are
    ignored so an inner context never clears an outer id.

    Usage:
        with CorrelationContext(batch_id="abc123", guid_prefix="a"):
            with CorrelationContext(release_id=42):
                logger.info("Release fetched")
    """

    def __init__(self, **fields):
        self.fields = {key: value for key, value in fields.items() if value is not None}
        self._token = None

    def __enter__(self):
        merged = dict(_log_context.get())
        merged.update(self.fields)
        self._token = _log_context.set(merged)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        _log_context.reset(self._token)
        return False


class JSONLogFormatter(logging.Formatter):
    """One JSON object per record, with correlation fields at the top level."""

    CORRELATION_KEYS = ('batch_id', 'release_id')

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "line": record.lineno,
        }

        context = current_context()
        for key in self.CORRELATION_KEYS:
            if key in context:
                log_data[key] = context.pop(key)
        if context:
            log_data["context"] = context

        if record.exc_info and record.exc_info[0]:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
            }

        return json.dumps(log_data, default=str)


def configure_logging(
    logger_name: Optional[str] = 'nfoarr',
    level: Optional[str] = None,
    json_output: Optional[bool] = None
) -> logging.Handler:
    """
    Attach a stream handler to the package logger.

    Args:
        logger_name: Logger to configure (None for the root logger)
        level: Level name (default: Config.LOG_LEVEL)
        json_output: JSON (True) or plain text (False) (default: Config.LOG_JSON)

    Returns:
        The configured handler
    """
    from ..config import Config

    level_name = (level or Config.LOG_LEVEL).upper()
    numeric_level = getattr(logging, level_name, logging.INFO)
    if json_output is None:
        json_output = Config.LOG_JSON

    logger = logging.getLogger(logger_name)
    logger.setLevel(numeric_level)

    handler = logging.StreamHandler()
    handler.setLevel(numeric_level)
    if json_output:
        handler.setFormatter(JSONLogFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            '%(asctime)s [%(levelname)s] %(name)s:%(lineno)d - %(message)s'
        ))

    logger.addHandler(handler)
    return handler

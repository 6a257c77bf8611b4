"""
Structured Logging Service

Provides JSON-formatted structured logging with correlation context
for request tracing.

Features:
- JSON log formatter for machine-parseable output
- Request correlation via X-Request-ID
- Storage root correlation for metainfo corrections
- Context propagation via contextvars
"""

import json
import logging
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional

logger = logging.getLogger(__name__)


request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
root_path_var: ContextVar[Optional[str]] = ContextVar('root_path', default=None)


def get_request_id() -> Optional[str]:
    """Get the current request ID from context."""
    return request_id_var.get()


def set_request_id(request_id: Optional[str]) -> None:
    """Set the request ID in context."""
    request_id_var.set(request_id)


def get_root_path() -> Optional[str]:
    """Get the storage root being corrected, if any."""
    return root_path_var.get()


def set_root_path(root_path: Optional[str]) -> None:
    """Set the storage root being corrected."""
    root_path_var.set(root_path)


def clear_context() -> None:
    """Clear all context variables."""
    request_id_var.set(None)
    root_path_var.set(None)


def generate_request_id() -> str:
    """Generate a new unique request ID."""
    return str(uuid.uuid4())[:8]


class JSONLogFormatter(logging.Formatter):
    """
    JSON formatter for structured logging output.

    Produces machine-parseable JSON logs with correlation IDs.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as JSON."""
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        request_id = get_request_id()
        if request_id:
            log_data["request_id"] = request_id

        root_path = get_root_path()
        if root_path:
            log_data["root_path"] = root_path

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
            }

        return json.dumps(log_data, default=str, ensure_ascii=False)


def setup_structured_logging(
    logger_name: Optional[str] = None,
    level: int = logging.INFO,
    json_output: bool = True
) -> logging.Handler:
    """
    Set up logging output for a logger.

    Args:
        logger_name: Logger name (None for root logger)
        level: Minimum log level
        json_output: Whether to output JSON (True) or plain text (False)

    Returns:
        The configured handler
    """
    target = logging.getLogger(logger_name) if logger_name else logging.getLogger()

    handler = logging.StreamHandler()

    if json_output:
        handler.setFormatter(JSONLogFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))

    target.addHandler(handler)
    target.setLevel(level)
    return handler


def apply_log_level(level_name: Optional[str]) -> int:
    """
    Set the root logger to a named level.

    Unknown or empty names leave logging unchanged.

    Returns:
        The effective root level after the call
    """
    root = logging.getLogger()
    level = logging.getLevelName((level_name or '').upper())
    if not isinstance(level, int):
        return root.level

    root.setLevel(level)
    logger.info(f"Log level set to {logging.getLevelName(level)}")
    return level

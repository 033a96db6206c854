"""Structured JSON logging.

Message bodies and raw recipient addresses are never logged; dispatch code
passes a `to_hash` fingerprint instead. Fields passed via `extra={...}` that
appear in EXTRA_FIELDS are lifted into the JSON document.
"""

import json
import logging
import sys
from datetime import datetime, timezone

from .request_id import get_request_id


EXTRA_FIELDS = (
    "tenant_id",
    "channel_id",
    "channel_type",
    "conversation_id",
    "message_id",
    "operation",
    "error_kind",
    "to_hash",
    "latency_ms",
    "batch_size",
    "method",
    "path",
    "status_code",
    "duration_ms",
)

_TEXT_FORMAT = "%(asctime)s - %(levelname)s - %(request_id)s - %(name)s - %(message)s"


class RequestIDFilter(logging.Filter):
    """Stamp every record with the current request id."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id()
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        document = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "request_id": getattr(record, "request_id", "no-request-id"),
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                document[field] = value

        if record.exc_info:
            document["error"] = str(record.exc_info[1])
            document["traceback"] = self.formatException(record.exc_info)

        return json.dumps(document, default=str)


def configure_logging(level: str = "INFO", json_format: bool = True) -> None:
    """Install a single stdout handler on the root logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        json_format: JSON lines when True, plain text otherwise
    """
    numeric_level = getattr(logging, level.upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(JSONFormatter() if json_format else logging.Formatter(_TEXT_FORMAT))
    handler.addFilter(RequestIDFilter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(numeric_level)
    root_logger.addHandler(handler)

    # Request bodies and SQL stay out of the logs
    for noisy in ("uvicorn.access", "sqlalchemy.engine", "httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)

"""
Structured JSON logging.

Every log line is one JSON object on stdout with a channel name
(http, db, marks, aggregation), the current request ID and any business
context passed by the caller.
"""

import logging
import json
import uuid
from datetime import datetime, timezone
from contextvars import ContextVar

from marksboard.config import LOG_LEVEL

# Request ID of the HTTP request being served, attached to every entry
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

CHANNELS = ("http", "db", "marks", "aggregation")


class StructuredJsonFormatter(logging.Formatter):
    """
    Formats a record as a single JSON line:

    - timestamp: UTC, millisecond precision, ``Z`` suffix
    - level / message / channel
    - context: request_id plus caller context (student_id, marks_id, ...)
    - extra: free-form metadata (duration_ms, counts, ...)
    - exception: formatted traceback, only when exc_info is set
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, timezone.utc)
        entry = {
            "timestamp": timestamp.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
            "level": record.levelname,
            "message": record.getMessage(),
            "channel": getattr(record, "channel", record.name.rsplit(".", 1)[-1]),
            "context": {
                "request_id": request_id_var.get(""),
                **(getattr(record, "context", None) or {})
            },
            "extra": getattr(record, "extra_data", None) or {}
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(level: str = LOG_LEVEL) -> logging.Logger:
    """Install the JSON formatter on the root logger and set channel levels."""
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredJsonFormatter())

    resolved = getattr(logging, level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(resolved)
    root_logger.handlers = [handler]

    for channel in CHANNELS:
        logging.getLogger(f"marksboard.{channel}").setLevel(resolved)

    return root_logger


def get_logger(channel: str) -> logging.Logger:
    return logging.getLogger(f"marksboard.{channel}")


def log_with_context(logger: logging.Logger, level: str, message: str,
                     context: dict = None, extra_data: dict = None,
                     exc_info=None):
    """
    Emit one structured entry on a channel logger.

    Args:
        logger: channel logger from get_logger()
        level: level name (DEBUG, INFO, WARNING, ERROR)
        message: human-readable message
        context: identifiers the entry is about (student_id, subject_id, ...)
        extra_data: metrics and other metadata
        exc_info: forwarded to logging for traceback capture
    """
    logger.log(
        getattr(logging, level.upper(), logging.INFO),
        message,
        exc_info=exc_info,
        extra={
            "context": context or {},
            "extra_data": extra_data or {},
            "channel": logger.name.rsplit(".", 1)[-1]
        }
    )


def generate_request_id() -> str:
    return str(uuid.uuid4())

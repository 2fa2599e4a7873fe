"""Structured JSON logging configuration."""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

from shared.config import get_settings

# Extra fields copied from the log record into the JSON payload when present
STRUCTURED_FIELDS = (
    "trace_id",
    "user_id",
    "event_id",
    "swap_request_id",
    "request_path",
    "status_code",
)

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ("sqlalchemy.engine", "uvicorn.access")


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line.

    Always carries timestamp, level, logger and message; any of
    STRUCTURED_FIELDS passed through ``extra=`` is copied as-is, so a swap
    can be followed across log lines by its trace_id or swap_request_id.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        payload.update(
            {name: getattr(record, name) for name in STRUCTURED_FIELDS if hasattr(record, name)}
        )

        if record.exc_info:
            payload["exc_type"] = record.exc_info[0].__name__ if record.exc_info[0] else None
            payload["exception"] = self.formatException(record.exc_info)

        # UUIDs and enums end up in extra; stringify anything json can't encode
        return json.dumps(payload, default=str)


def configure_logging() -> None:
    """
    Route all logging to stderr through JSONFormatter.

    The level comes from LOG_LEVEL (unknown names fall back to INFO). SQL
    echo is controlled by DB_ECHO, so the engine logger is only raised when
    echo is off.
    """
    settings = get_settings()
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in QUIET_LOGGERS:
        if name == "sqlalchemy.engine" and settings.DB_ECHO:
            continue
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    root_logger.info(f"Logging configured: level={logging.getLevelName(level)}, format=JSON")

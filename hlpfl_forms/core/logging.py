"""Logging setup for the forms API.

Two output formats are supported. ``dev`` prints one readable line per
record. ``structured`` prints one JSON object per record, which is what the
request log in the auth middleware is meant to be shipped as.
"""

import json
import logging
import sys
from typing import Literal

DEV_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Attributes the auth middleware passes via ``extra=`` on each request line
REQUEST_FIELDS = ("method", "path", "status", "duration_ms", "client_id")

# Loggers that stay at WARNING unless the app itself runs at DEBUG
NOISY_LOGGERS = ("sqlalchemy.engine", "aiosqlite")
SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


class JSONFormatter(logging.Formatter):
    """Render a record as a single JSON line.

    Request fields are lifted to top-level keys so a log pipeline can filter
    on status or client id directly.
    """

    def __init__(self):
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (field, getattr(record, field))
            for field in REQUEST_FIELDS
            if getattr(record, field, None) is not None
        )
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(
    level: str = "INFO",
    format_type: Literal["structured", "dev"] = "dev",
) -> None:
    """
    Install the root handler for the forms API.

    Args:
        level: Root log level name, e.g. INFO
        format_type: 'structured' for JSON request logs, 'dev' for terminals
    """
    numeric_level = getattr(logging, level.upper())

    handler = logging.StreamHandler(sys.stdout)
    if format_type == "structured":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(DEV_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logging.root.handlers = [handler]
    logging.root.setLevel(numeric_level)

    # Uvicorn's own access log duplicates the middleware request log
    for name in SERVER_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(
            logging.DEBUG if numeric_level == logging.DEBUG else logging.WARNING
        )

    get_logger("logging").info(f"Logging configured: level={level}, format={format_type}")


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``hlpfl_forms`` namespace."""
    return logging.getLogger(f"hlpfl_forms.{name}")

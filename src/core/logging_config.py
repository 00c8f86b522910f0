"""Centralized logging configuration.

Supports plain text logging for development and JSON lines for production.
"""

import json
import logging
import sys
from datetime import datetime
from typing import Any, Dict, Optional

import pytz

from config import LOG_FORMAT, LOG_LEVEL


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Outputs one JSON object per line so log aggregation tools can parse it.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(pytz.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, default=str)


TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def setup_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> None:
    """Configure the root logger once for the whole application.

    Args:
        level: Log level name; defaults to LOG_LEVEL.
        fmt: "text" or "json"; defaults to LOG_FORMAT.
    """
    level = (level or LOG_LEVEL).upper()
    fmt = (fmt or LOG_FORMAT).lower()

    handler = logging.StreamHandler(sys.stdout)
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    root = logging.getLogger()
    # Repeated calls replace the handlers instead of stacking them
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)

    # Keep third-party chatter down
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("multipart").setLevel(logging.WARNING)

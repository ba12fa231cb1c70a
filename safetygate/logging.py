"""
Structured Logging — JSON Lines for the Gate

Every gate and QA run logs one line under the `safetygate` namespace.
In JSON mode the line carries the decision context passed via `extra=`
(mode, overall level, counts), so runs can be audited without storing
report text.

Usage:
    from safetygate.logging import get_logger
    logger = get_logger("gate")
    logger.info("Gate complete", extra={"overall": "HIGH", "mode": "public"})

Environment:
    SAFETYGATE_LOG_LEVEL   DEBUG | INFO | WARNING | ERROR   (default INFO)
    SAFETYGATE_LOG_FORMAT  json | text                      (default json)
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Optional


LOG_LEVEL = os.getenv("SAFETYGATE_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.getenv("SAFETYGATE_LOG_FORMAT", "json")

NAMESPACE = "safetygate"

# Context fields copied from `extra=` into the JSON line. Report text is
# never among them.
EXTRA_FIELDS = (
    "mode", "overall", "signals_count", "claims_count", "blockers_count",
    "warnings_count", "transformations_count", "admin_override", "passed",
    "issues_count", "table_version", "rules_count", "error", "duration_ms",
    "status_code", "method", "path", "error_type",
)


class JSONFormatter(logging.Formatter):
    """One JSON object per record, stamped with the record's own time."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (key, getattr(record, key))
            for key in EXTRA_FIELDS
            if getattr(record, key, None) is not None
        )
        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable format for development."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s [%(levelname)-8s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


_FORMATTERS = {"json": JSONFormatter, "text": TextFormatter}


def setup_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> logging.Logger:
    """
    Configure the safetygate logger. Call once at app startup.

    Arguments override SAFETYGATE_LOG_LEVEL / SAFETYGATE_LOG_FORMAT.
    Calling it again replaces the handler rather than adding one.
    """
    level = (level or LOG_LEVEL).upper()
    formatter_cls = _FORMATTERS.get((fmt or LOG_FORMAT).lower(), JSONFormatter)

    logger = logging.getLogger(NAMESPACE)
    logger.setLevel(getattr(logging, level, logging.INFO))
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter_cls())
    logger.addHandler(handler)

    # Request lines come from our own middleware
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a named logger under the safetygate namespace."""
    return logging.getLogger(f"{NAMESPACE}.{name}")

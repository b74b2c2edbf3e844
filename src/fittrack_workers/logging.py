"""Structured logging for the historical 1RM maintenance path.

Output always goes to stderr so the CLI's JSON on stdout stays parseable.
FITTRACK_LOG_FORMAT selects "json" (default) or "text"; FITTRACK_LOG_LEVEL
sets the root level.

Maintenance code attaches identifiers through ``extra`` with a ``fittrack_``
prefix, e.g. ``extra={"fittrack_workout_id": 3}``. The JSON formatter
collects them, prefix stripped, under ``context``.
"""

import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import TextIO

EXTRA_PREFIX = "fittrack_"


def _context(record: logging.LogRecord) -> dict:
    return {
        key[len(EXTRA_PREFIX):]: value
        for key, value in record.__dict__.items()
        if key.startswith(EXTRA_PREFIX)
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = _context(record)
        if context:
            log_entry["context"] = context

        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = "".join(traceback.format_exception(*record.exc_info))

        return json.dumps(log_entry, default=str)


class TextFormatter(logging.Formatter):
    """Plain lines with ``key=value`` context appended."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = _context(record)
        if context:
            line += " " + " ".join(f"{k}={v}" for k, v in sorted(context.items()))
        return line


def setup_logging(log_format: str, level: int | str = logging.INFO, stream: TextIO | None = None) -> None:
    """Replace the root logger's handlers with a single stderr handler."""
    root = logging.getLogger()
    root.setLevel(level)

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JSONFormatter() if log_format == "json" else TextFormatter())
    root.addHandler(handler)

    # psycopg never logs below INFO.
    logging.getLogger("psycopg").setLevel(max(root.level, logging.INFO))

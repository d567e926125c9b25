"""Structured logging for SendTrend.

Format is chosen by SENDTREND_LOG_FORMAT ("json" default, or "text") and the
threshold by SENDTREND_LOG_LEVEL. Library modules only create loggers; the CLI
calls setup_logging() once at startup.
"""

import json
import logging
import sys
import traceback
from datetime import datetime, timezone

LOG_FORMATS: tuple[str, ...] = ("json", "text")

_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_EXTRA_PREFIX = "sendtrend_"


class JSONFormatter(logging.Formatter):
    """Emit log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = "".join(traceback.format_exception(*record.exc_info))

        # sendtrend_user_id, sendtrend_duration_ms, sendtrend_time_range, ...
        for key, value in record.__dict__.items():
            if key.startswith(_EXTRA_PREFIX):
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


def setup_logging(log_format: str, level: int | str = logging.INFO) -> None:
    """Install a single stderr handler on the root logger."""
    if log_format not in LOG_FORMATS:
        allowed = ", ".join(LOG_FORMATS)
        raise ValueError(f"log_format must be one of: {allowed}")

    root = logging.getLogger()
    root.setLevel(level)

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter() if log_format == "json" else logging.Formatter(_TEXT_FORMAT))
    root.addHandler(handler)

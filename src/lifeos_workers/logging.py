"""Structured logging for the rollup worker and the one-shot command.

Every record carries the same rollup context fields, so log pipelines can
filter on them without guessing which ones a given line has. A field the
caller did not pass is rendered as null (JSON) or left out (text).

LIFEOS_LOG_FORMAT picks "json" or "text".
"""

import json
import logging
import sys
import traceback
from datetime import datetime, timezone

ROLLUP_CONTEXT_FIELDS = (
    "lifeos_user_id",
    "lifeos_target_date",
    "lifeos_duration_ms",
    "lifeos_job_type",
)

LOG_FORMATS = ("json", "text")


def rollup_context(record: logging.LogRecord) -> dict:
    return {field: getattr(record, field, None) for field in ROLLUP_CONTEXT_FIELDS}


class JSONFormatter(logging.Formatter):
    """One JSON object per line with a stable key set."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        entry.update(rollup_context(record))
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = "".join(traceback.format_exception(*record.exc_info))
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Plain lines with the present rollup fields appended as key=value."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = " ".join(
            f"{field.removeprefix('lifeos_')}={value}"
            for field, value in rollup_context(record).items()
            if value is not None
        )
        if not context:
            return line
        # Keep the traceback (if any) after the context.
        head, sep, tail = line.partition("\n")
        return f"{head} [{context}]{sep}{tail}"


def setup_logging(log_format: str, level: int = logging.INFO) -> None:
    """Route the root logger to stderr at ``level`` in the given format."""
    log_format = log_format.strip().lower()
    if log_format not in LOG_FORMATS:
        raise ValueError(f"LIFEOS_LOG_FORMAT must be one of {LOG_FORMATS}, got {log_format!r}")

    root = logging.getLogger()
    root.setLevel(level)
    for existing in root.handlers[:]:
        root.removeHandler(existing)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter() if log_format == "json" else TextFormatter())
    root.addHandler(handler)

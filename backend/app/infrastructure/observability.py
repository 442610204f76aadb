"""Structured Logging — JSON formatter and setup for production observability.

Invariants:
    - Every line carries timestamp, level, logger name, and message
    - Only the whitelisted domain fields (room_code, player_id, ...) are copied from `extra`
    - setup_logging() is idempotent: re-running the lifespan never duplicates output

Design Decisions:
    - JSONFormatter over third-party libs: zero dependencies, full control
    - Timestamp taken from the record, not from format time, so queued
      handlers still report when the event happened
    - httpx request logs lowered to WARNING: the storage client and roster
      poller would otherwise log every request at INFO
"""

import json
import logging
from datetime import datetime, timezone

LOGGED_EXTRA_FIELDS = (
    "room_code", "player_id", "player_challenge_id", "error_code",
    "path", "outcome", "attempt",
)

_NOISY_LOGGERS = ("httpx", "httpcore")


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc,
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in LOGGED_EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is None:
                continue
            # UUIDs and enums are not JSON-native
            entry[field] = value if isinstance(value, (int, float, bool)) else str(value)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


class _RetosHandler(logging.StreamHandler):
    """Marker type so setup_logging can find and replace its own handler."""


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    root = logging.getLogger()
    for existing in [h for h in root.handlers if isinstance(h, _RetosHandler)]:
        root.removeHandler(existing)

    handler = _RetosHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
        ))
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

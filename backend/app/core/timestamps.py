"""Timestamp helpers — UTC normalization and ISO-8601 formatting.

Invariants:
    - All persisted timestamps are UTC
    - Naive datetimes (SQLite round-trips drop tzinfo) are interpreted as UTC
    - iso_utc() output uses millisecond precision and a trailing 'Z'
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def iso_utc(dt: datetime | None) -> str | None:
    """Format as e.g. 2026-03-01T18:00:00.000Z (None passes through)."""
    if dt is None:
        return None
    return as_utc(dt).isoformat(timespec="milliseconds").replace("+00:00", "Z")

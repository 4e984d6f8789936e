"""UTC time helpers."""

from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Return the current UTC datetime."""
    return datetime.now(timezone.utc)


def from_unix(seconds: int) -> datetime:
    """Convert Unix seconds into an aware UTC datetime."""
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything we store is UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def isoformat_z(value: datetime) -> str:
    """Serialize a datetime as ISO-8601 UTC with a ``Z`` suffix."""
    return as_utc(value).isoformat().replace("+00:00", "Z")


__all__ = ["as_utc", "from_unix", "isoformat_z", "utcnow"]

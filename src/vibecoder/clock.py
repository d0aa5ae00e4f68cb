"""Timestamp helpers.

All model timestamps are timezone-aware UTC datetimes.
"""

from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Normalize a datetime to aware UTC.

    Naive datetimes are interpreted as local time.
    """
    return value.astimezone(timezone.utc)


def optional_utc(value: datetime | None) -> datetime | None:
    return ensure_utc(value) if value is not None else None

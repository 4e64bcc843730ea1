"""
UTC time helpers.

All timestamps handled by the engine are timezone-aware UTC.  Naive
datetimes coming from callers are assumed to already be UTC.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

_SECONDS_PER_DAY = 24 * 60 * 60


def utcnow() -> datetime:
    """Return the current UTC datetime with timezone info.

    Prefer this over ``datetime.utcnow()`` (which returns naive datetimes).
    """
    return datetime.now(tz=timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to a naive datetime; convert an aware one to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def age_in_days(created_at: datetime, now: datetime) -> float:
    """Fractional days between ``created_at`` and ``now``.

    Negative when ``created_at`` lies in the future (clock skew); callers
    decide how to treat that.
    """
    delta = ensure_utc(now) - ensure_utc(created_at)
    return delta.total_seconds() / _SECONDS_PER_DAY


def window_start(now: datetime, *, minutes: float = 0, hours: float = 0) -> datetime:
    """Start of a trailing window ending at ``now``."""
    return ensure_utc(now) - timedelta(minutes=minutes, hours=hours)


def to_db_timestamp(value: datetime) -> str:
    """Serialize to a fixed-width UTC string that sorts lexically.

    ``2026-10-19T12:00:00.000000Z``.  The fixed width keeps SQLite string
    comparisons equivalent to chronological ones.
    """
    return ensure_utc(value).strftime("%Y-%m-%dT%H:%M:%S.%fZ")

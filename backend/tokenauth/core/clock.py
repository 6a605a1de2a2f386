"""Time helpers shared by models and services (UTC, Unix seconds)."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Return a timezone-aware UTC "now"."""
    return datetime.now(UTC)


def to_unix_seconds(dt: datetime) -> int:
    """
    Truncate a datetime to whole Unix seconds.

    Naive values are labelled as UTC (SQLite drops tzinfo on round trip).

    :param dt: Datetime to convert.
    :type dt: datetime
    :returns: Seconds since the epoch, fractional part discarded.
    :rtype: int
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return int(dt.timestamp())


def to_unix_millis(dt: datetime) -> int:
    """Return whole Unix milliseconds for ``dt`` (naive treated as UTC)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return int(dt.timestamp() * 1000)

"""
Time source used for every expiry and retention comparison.

Token rows store naive UTC timestamps (MySQL DATETIME is timezone-naive), so
``utcnow()`` is the form compared against and written to the database.
"""

from datetime import UTC, datetime, timedelta
from typing import Protocol


class Clock(Protocol):
    """Anything that can tell the current time."""

    def now(self) -> datetime:
        """Return the current time as an aware UTC datetime."""
        ...


class SystemClock:
    """Wall clock."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class FixedClock:
    """
    Clock frozen at a given instant until explicitly moved.

    Used by tests and one-off scripts that need deterministic expiry checks.
    """

    def __init__(self, at: datetime) -> None:
        if at.tzinfo is None:
            at = at.replace(tzinfo=UTC)
        self._now = at

    def now(self) -> datetime:
        return self._now

    def advance(self, delta: timedelta) -> None:
        self._now = self._now + delta


def utcnow(clock: Clock) -> datetime:
    """Current time from ``clock`` as a naive UTC datetime (database form)."""
    return clock.now().astimezone(UTC).replace(tzinfo=None)


def as_naive_utc(value: datetime) -> datetime:
    """Normalize a datetime to naive UTC for comparison with stored values."""
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


system_clock = SystemClock()

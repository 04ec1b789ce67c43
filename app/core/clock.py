"""Time source for snapshot stamping and default history ranges.

Services take a ``Clock`` instead of reading the wall clock so that resampling and
range defaults are deterministic under test.
"""

from datetime import datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    """Anything with a ``now()`` returning an aware UTC datetime."""

    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FrozenClock:
    """Clock that only moves when told to. Used by tests and backfills."""

    def __init__(self, at: datetime) -> None:
        self._now = as_utc(at)

    def now(self) -> datetime:
        return self._now

    def set(self, at: datetime) -> None:
        self._now = as_utc(at)

    def advance(self, delta: timedelta) -> datetime:
        self._now = self._now + delta
        return self._now


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (as read back from SQLite) and convert aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


_system_clock = SystemClock()


def get_clock() -> Clock:
    """Dependency returning the process clock."""
    return _system_clock

"""
Time sources for the token lifecycle.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol, Union


class Clock(Protocol):
    """Anything that can tell the current time as an aware UTC datetime."""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall clock."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FrozenClock:
    """Clock that only moves when told to; used to pin time in tests."""

    def __init__(self, at: Optional[datetime] = None):
        self._now = _as_utc(at or datetime.now(timezone.utc))

    def now(self) -> datetime:
        return self._now

    def set(self, at: datetime) -> None:
        self._now = _as_utc(at)

    def advance(self, delta: Union[timedelta, int, float]) -> datetime:
        """Move forward by ``delta`` (seconds when a number is given)."""
        if not isinstance(delta, timedelta):
            delta = timedelta(seconds=delta)
        self._now = self._now + delta
        return self._now


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def timestamp(value: datetime) -> int:
    """NumericDate (whole seconds since the epoch) for ``value``."""
    return int(value.timestamp())


def from_timestamp(value: Union[int, float]) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc)

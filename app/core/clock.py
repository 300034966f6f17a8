"""Injectable clock.

Every temporal rule (offer expiry, code validity windows, subscription
expiry) takes ``now`` as an argument. Request handlers obtain it from the
``get_clock`` dependency so tests can pin time with ``FixedClock``.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)


@dataclass
class FixedClock:
    """A clock that only moves when told to."""

    current: datetime

    def now(self) -> datetime:
        return as_utc(self.current)

    def advance(self, delta: timedelta) -> datetime:
        self.current = self.current + delta
        return self.now()


def as_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime.

    Some drivers (SQLite) hand back naive datetimes for timezone-aware
    columns; all stored timestamps are written in UTC, so naive values are
    interpreted as UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


system_clock = SystemClock()


def get_clock() -> Clock:
    """Dependency returning the process clock (overridden in tests)."""
    return system_clock

"""
Injectable time source.

Services never read the wall clock directly; they receive a Clock so that
business dates (effective dates, reference codes, "previous month") are
deterministic under test.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    """Injectable time source."""

    def now(self) -> datetime:
        """Return current UTC time."""
        ...

    def today(self) -> date:
        """Return the current business date."""
        ...


class SystemClock:
    """Real system time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def today(self) -> date:
        return self.now().date()


class FixedClock:
    """
    Clock frozen at a given instant.

    Usage:
        clock = FixedClock(datetime(2024, 3, 15, tzinfo=timezone.utc))
        assert clock.today() == date(2024, 3, 15)
    """

    def __init__(self, fixed: datetime | date):
        if not isinstance(fixed, datetime):
            fixed = datetime(fixed.year, fixed.month, fixed.day, tzinfo=timezone.utc)
        if fixed.tzinfo is None:
            raise ValueError("FixedClock requires a timezone-aware datetime")
        self._fixed = fixed

    def now(self) -> datetime:
        return self._fixed

    def today(self) -> date:
        return self._fixed.date()

    def advance(self, days: int = 0, seconds: float = 0) -> None:
        """Move the frozen instant forward."""
        self._fixed = self._fixed + timedelta(days=days, seconds=seconds)


_default_clock: Clock = SystemClock()


def get_clock() -> Clock:
    """Get the process-wide clock."""
    return _default_clock


def set_clock(clock: Clock) -> None:
    """Override the process-wide clock (for testing)."""
    global _default_clock
    _default_clock = clock

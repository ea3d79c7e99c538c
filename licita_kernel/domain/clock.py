"""
Clock -- injectable source of the current time.

Services take a ``Clock`` in their constructor instead of calling
``datetime.now()`` or ``date.today()``.  Payment receipt dates, archive
timestamps and the public-session checks behind the automatic transitions
all read from it, so tests pin them with ``DeterministicClock``.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timezone


class Clock(ABC):
    """
    Source of the current time.

    Guarantees:
        - ``now()`` is timezone-aware.
        - ``today()`` is the calendar date of ``now()``.
    """

    @abstractmethod
    def now(self) -> datetime:
        ...

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Clock frozen at one instant.  A naive ``fixed_time`` is read as UTC.

    The default instant is 2024-01-01 12:00 UTC.
    """

    def __init__(self, fixed_time: datetime | None = None):
        fixed = fixed_time or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        if fixed.tzinfo is None:
            fixed = fixed.replace(tzinfo=timezone.utc)
        self._fixed_time = fixed

    def now(self) -> datetime:
        return self._fixed_time

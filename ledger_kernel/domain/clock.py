"""
Injectable time source.

Services receive a ``Clock`` instead of calling ``datetime.now()`` or
``date.today()``.  Recurrence arithmetic runs on local calendar days, so
``today()`` is the method most callers want.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, time, timedelta, timezone

_DEFAULT_INSTANT = datetime(2024, 1, 1, 12, tzinfo=timezone.utc)


class Clock(ABC):
    """Source of the current instant.  ``now()`` is always timezone-aware."""

    @abstractmethod
    def now(self) -> datetime: ...

    def now_utc(self) -> datetime:
        return self.now().astimezone(timezone.utc)

    def today(self) -> date:
        """Calendar day of ``now()`` in the clock's own zone."""
        return self.now().date()


class SystemClock(Clock):
    """Wall clock in the machine's local zone, so ``today()`` matches the user's calendar."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc).astimezone()


class DeterministicClock(Clock):
    """Clock that only moves when a test moves it.

    A bare ``date`` means noon UTC of that day, which keeps ``today()``
    stable whatever zone the test runs in.
    """

    def __init__(self, fixed_time: datetime | date | None = None):
        self._instant = _DEFAULT_INSTANT if fixed_time is None else self._as_instant(fixed_time)

    @staticmethod
    def _as_instant(value: datetime | date) -> datetime:
        if isinstance(value, datetime):
            return value
        return datetime.combine(value, time(12), tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._instant

    def set_time(self, value: datetime | date) -> None:
        self._instant = self._as_instant(value)

    def advance(self, seconds: int = 1) -> None:
        self._instant += timedelta(seconds=seconds)

    def advance_days(self, days: int = 1) -> None:
        self.advance(days * 86_400)

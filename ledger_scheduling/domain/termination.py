"""
Recurrence termination variants.

Contract:
    A series stops producing occurrences according to exactly one of four
    frozen variants.  Callers branch on ``termination.type`` (or
    ``isinstance``), never on the type of the owning object.

Architecture: ledger_scheduling/domain.  ZERO I/O.

Invariants enforced:
    - ``NOccurrences.count`` is strictly positive.
    - ``UntilDate.until`` is a calendar day (datetimes are normalized).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import ClassVar, Union

from ledger_kernel.exceptions import InvalidTerminationError
from ledger_scheduling.domain.frequency import normalize_date


class RecurrenceType(str, Enum):
    """Tag of a termination variant; values are the persisted form."""

    ONE_TIME = "one-time"
    INFINITE = "infinite"
    UNTIL_DATE = "until-date"
    N_OCCURRENCES = "n-occurrences"


@dataclass(frozen=True)
class OneTime:
    """Exactly one occurrence, index 0."""

    type: ClassVar[RecurrenceType] = RecurrenceType.ONE_TIME


@dataclass(frozen=True)
class Infinite:
    """Unbounded; generation is capped by the caller."""

    type: ClassVar[RecurrenceType] = RecurrenceType.INFINITE


@dataclass(frozen=True)
class UntilDate:
    """Occurrences continue while their date is on or before ``until``."""

    until: date
    type: ClassVar[RecurrenceType] = RecurrenceType.UNTIL_DATE

    def __post_init__(self) -> None:
        if not isinstance(self.until, (date, datetime)):
            raise InvalidTerminationError(f"until must be a date, got {self.until!r}")
        object.__setattr__(self, "until", normalize_date(self.until))


@dataclass(frozen=True)
class NOccurrences:
    """Exactly ``count`` occurrences."""

    count: int
    type: ClassVar[RecurrenceType] = RecurrenceType.N_OCCURRENCES

    def __post_init__(self) -> None:
        if isinstance(self.count, bool) or not isinstance(self.count, int):
            raise InvalidTerminationError(f"count must be an integer, got {self.count!r}")
        if self.count <= 0:
            raise InvalidTerminationError(f"count must be positive, got {self.count}")


RecurrenceTermination = Union[OneTime, Infinite, UntilDate, NOccurrences]


def build_termination(
    recurrence_type: RecurrenceType | str,
    *,
    until: date | None = None,
    count: int | None = None,
) -> RecurrenceTermination:
    """Build a termination from its tag and flat fields (persistence, config).

    Raises:
        InvalidTerminationError: unknown tag, or the field the tag needs is
            missing, or a field the tag does not take is present.
    """
    try:
        tag = RecurrenceType(recurrence_type)
    except ValueError:
        raise InvalidTerminationError(f"unknown recurrence type {recurrence_type!r}") from None

    if tag == RecurrenceType.UNTIL_DATE:
        if until is None:
            raise InvalidTerminationError("until-date recurrence requires an end date")
        if count is not None:
            raise InvalidTerminationError("until-date recurrence takes no occurrence count")
        return UntilDate(until)

    if tag == RecurrenceType.N_OCCURRENCES:
        if count is None:
            raise InvalidTerminationError("n-occurrences recurrence requires a count")
        if until is not None:
            raise InvalidTerminationError("n-occurrences recurrence takes no end date")
        return NOccurrences(count)

    if until is not None or count is not None:
        raise InvalidTerminationError(f"{tag.value} recurrence takes no end date or count")
    return OneTime() if tag == RecurrenceType.ONE_TIME else Infinite()

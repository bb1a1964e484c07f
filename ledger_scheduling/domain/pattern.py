"""
Recurrence pattern: start date + frequency + termination.

Contract:
    ``RecurrencePattern`` is a frozen value.  Occurrence *n* is obtained by
    applying ``next_date`` *n* times to ``start_date``; the offset is never
    multiplied by *n* because calendar month addition is not linear.

Architecture: ledger_scheduling/domain.  ZERO I/O.

Invariants enforced:
    - ``OneTime`` takes no frequency.  Every other termination needs one,
      although a present-but-zero offset (unparsable text) is accepted and
      collapses the series to a single occurrence.
    - ``UntilDate.until`` is strictly after ``start_date``.
    - Queries never loop forever: a zero offset is a fixed point and is
      treated as a single occurrence.

Failure modes:
    - InvalidPatternError on an invalid combination (raised on construction).
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime

from ledger_kernel.exceptions import InvalidPatternError
from ledger_scheduling.domain.frequency import (
    FrequencyOffset,
    next_date,
    normalize_date,
)
from ledger_scheduling.domain.termination import (
    Infinite,
    NOccurrences,
    OneTime,
    RecurrenceTermination,
    UntilDate,
)

UNBOUNDED = -1

# Upper bound on date walks over an UntilDate pattern.
DATE_WALK_LIMIT = 100_000


@dataclass(frozen=True)
class RecurrencePattern:
    """When a series' occurrences happen.

    ``frequency`` is ``None`` when the series has no recurrence at all
    (one-time items).
    """

    start_date: date
    frequency: FrequencyOffset | None
    termination: RecurrenceTermination

    def __post_init__(self) -> None:
        object.__setattr__(self, "start_date", normalize_date(self.start_date))
        _validate(self)

    @property
    def is_recurring(self) -> bool:
        """True when the series can produce more than one occurrence."""
        return (
            not isinstance(self.termination, OneTime)
            and self.frequency is not None
            and not self.frequency.is_zero
        )

    def with_start_date(self, start_date: date) -> RecurrencePattern:
        return replace(self, start_date=start_date)

    def with_frequency(self, frequency: FrequencyOffset | None) -> RecurrencePattern:
        return replace(self, frequency=frequency)

    def with_termination(self, termination: RecurrenceTermination) -> RecurrencePattern:
        return replace(self, termination=termination)


def one_time(start_date: date) -> RecurrencePattern:
    return RecurrencePattern(start_date, None, OneTime())


def _validate(pattern: RecurrencePattern) -> None:
    termination = pattern.termination
    if isinstance(termination, OneTime):
        if pattern.frequency is not None:
            raise InvalidPatternError(
                "a one-time pattern cannot have a frequency", pattern.start_date
            )
        return

    if not isinstance(termination, (Infinite, UntilDate, NOccurrences)):
        raise InvalidPatternError(
            f"unknown termination {termination!r}", pattern.start_date
        )

    if pattern.frequency is None:
        raise InvalidPatternError(
            f"{termination.type.value} recurrence requires a frequency",
            pattern.start_date,
        )

    if isinstance(termination, UntilDate) and termination.until <= pattern.start_date:
        raise InvalidPatternError(
            f"end date {termination.until} must be after start date {pattern.start_date}",
            pattern.start_date,
        )


# =============================================================================
# Queries
# =============================================================================


def occurrence_date(pattern: RecurrencePattern, index: int) -> date:
    """Date of occurrence ``index`` (O(index) fold of ``next_date``).

    Does not check termination; a zero or missing offset returns the start
    date for every index.
    """
    if index < 0:
        raise ValueError(f"index must be non-negative, got {index}")
    current = pattern.start_date
    if pattern.frequency is None or pattern.frequency.is_zero:
        return current
    for _ in range(index):
        current = next_date(current, pattern.frequency)
    return current


def is_within_termination(
    pattern: RecurrencePattern, index: int, when: date | datetime
) -> bool:
    """Whether occurrence ``index`` falling on ``when`` is inside the series."""
    termination = pattern.termination
    if isinstance(termination, OneTime):
        return index == 0
    if isinstance(termination, Infinite):
        return True
    if isinstance(termination, UntilDate):
        return normalize_date(when) <= termination.until
    return index < termination.count


def total_occurrences(pattern: RecurrencePattern, *, walk_limit: int = DATE_WALK_LIMIT) -> int:
    """Number of occurrences the pattern produces; ``-1`` means unbounded.

    A non-recurring pattern (one-time, or zero offset) always has exactly
    one.  ``UntilDate`` is counted by walking ``next_date`` from the start,
    at most ``walk_limit`` steps.
    """
    termination = pattern.termination
    if not pattern.is_recurring:
        return 1
    if isinstance(termination, Infinite):
        return UNBOUNDED
    if isinstance(termination, NOccurrences):
        return termination.count

    count = 0
    current = pattern.start_date
    while current <= termination.until and count < walk_limit:
        count += 1
        current = next_date(current, pattern.frequency)
    return count


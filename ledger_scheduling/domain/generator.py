"""
Occurrence generator: expands a pattern into ``(index, date)`` pairs.

Contract:
    Every function here is PURE and re-entrant: same pattern and arguments,
    same output.  "Now" is always a parameter, never read from the system.

Architecture: ledger_scheduling/domain.  ZERO I/O.

Invariants enforced:
    - Output is finite.  Count-bounded functions stop at ``max_count``;
      date-bounded functions stop at their end date and at
      ``max_iterations`` steps.
    - A zero offset is a fixed point: generation stops after the occurrence
      at ``start_date`` instead of spinning.
    - Every yielded pair satisfies ``is_within_termination``.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterator

from ledger_scheduling.domain.frequency import next_date, normalize_date
from ledger_scheduling.domain.pattern import (
    DATE_WALK_LIMIT,
    RecurrencePattern,
    is_within_termination,
)

DEFAULT_MAX_COUNT = 100

OccurrenceSlot = tuple[int, date]


def iter_occurrences(pattern: RecurrencePattern) -> Iterator[OccurrenceSlot]:
    """Lazily yield every occurrence of ``pattern`` in index order.

    Unbounded for ``Infinite`` patterns; consumers must bound iteration.
    """
    index = 0
    current = pattern.start_date
    while is_within_termination(pattern, index, current):
        yield index, current
        if not pattern.is_recurring:
            return
        following = next_date(current, pattern.frequency)
        if following == current:
            return
        index += 1
        current = following


def generate_up_to(
    pattern: RecurrencePattern, max_count: int = DEFAULT_MAX_COUNT
) -> list[OccurrenceSlot]:
    """First occurrences of ``pattern``, never more than ``max_count``.

    ``NOccurrences(count)`` with ``count > max_count`` is truncated; callers
    that need more must raise the cap.
    """
    if max_count <= 0:
        return []
    slots: list[OccurrenceSlot] = []
    for slot in iter_occurrences(pattern):
        slots.append(slot)
        if len(slots) >= max_count:
            break
    return slots


def generate_until(
    pattern: RecurrencePattern,
    until: date | datetime,
    *,
    max_iterations: int = DATE_WALK_LIMIT,
) -> list[OccurrenceSlot]:
    """Every occurrence dated on or before ``until``."""
    end = normalize_date(until)
    slots: list[OccurrenceSlot] = []
    for steps, slot in enumerate(iter_occurrences(pattern)):
        if slot[1] > end or steps >= max_iterations:
            break
        slots.append(slot)
    return slots


def generate_within_days(
    pattern: RecurrencePattern,
    window_days: int,
    as_of: date | datetime,
    *,
    max_iterations: int = DATE_WALK_LIMIT,
) -> list[OccurrenceSlot]:
    """Occurrences whose date falls in ``[as_of, as_of + window_days]``.

    Indices stay relative to ``start_date``, so a series that started long
    before ``as_of`` reports its real occurrence numbers.
    """
    start = normalize_date(as_of)
    end = start + timedelta(days=window_days)
    return [
        slot
        for slot in generate_until(pattern, end, max_iterations=max_iterations)
        if slot[1] >= start
    ]

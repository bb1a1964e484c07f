"""
Occurrence projector: generator output + overlay -> effective occurrences.

Contract:
    ``project(series, start, end)`` answers "which occurrences fall in this
    window, with overrides applied".  ``nth(series, index)`` looks up a
    single occurrence without a window.  Both are PURE.

Architecture: ledger_scheduling/domain.  ZERO I/O.

Invariants enforced:
    - Deleted occurrences never appear in a projection.
    - The window filter applies to the EFFECTIVE (post-override) date, so an
      occurrence moved into the window is included and one moved out of it
      is not, whatever its generated date.
    - Results are ordered by effective date, then index.

Failure modes:
    - OccurrenceNotFoundError from ``nth`` when the index is beyond the
      termination bound.
    - OccurrenceOutOfRangeError from ``nth`` for a negative index.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from ledger_kernel.exceptions import OccurrenceNotFoundError, OccurrenceOutOfRangeError
from ledger_scheduling.domain.frequency import monthly_factor, normalize_date
from ledger_scheduling.domain.generator import generate_until
from ledger_scheduling.domain.overlay import (
    OccurrenceModification,
    OccurrenceState,
    get,
)
from ledger_scheduling.domain.pattern import (
    DATE_WALK_LIMIT,
    UNBOUNDED,
    is_within_termination,
    occurrence_date,
    total_occurrences,
)
from ledger_scheduling.domain.types import Occurrence, Operation, ScheduledSeries


def materialize(
    series: ScheduledSeries,
    index: int,
    raw_date: date,
    modification: OccurrenceModification | None = None,
) -> Occurrence:
    """Apply the template and ``modification`` to one generated slot."""
    template = series.template
    overrides = modification.overrides if modification is not None else None
    state = modification.state if modification is not None else OccurrenceState.PENDING

    def pick(name, default):
        if overrides is None:
            return default
        value = getattr(overrides, name)
        return default if value is None else value

    return Occurrence(
        series_id=series.id,
        index=index,
        date=pick("date", raw_date),
        amount=pick("amount", template.amount),
        account=pick("account", template.account),
        to_account=pick("to_account", template.to_account),
        state=state,
        name=template.name,
        operation=template.operation,
        original_date=raw_date,
    )


def project(
    series: ScheduledSeries,
    start: date | datetime,
    end: date | datetime,
    *,
    max_iterations: int = DATE_WALK_LIMIT,
) -> list[Occurrence]:
    """Effective, non-deleted occurrences dated within ``[start, end]``."""
    window_start = normalize_date(start)
    window_end = normalize_date(end)
    if window_end < window_start:
        return []

    modifications = series.overlay.as_dict()
    results: list[Occurrence] = []
    generated = set()

    for index, raw_date in generate_until(
        series.pattern, window_end, max_iterations=max_iterations
    ):
        generated.add(index)
        occurrence = materialize(series, index, raw_date, modifications.get(index))
        if _visible(occurrence, window_start, window_end):
            results.append(occurrence)

    # Occurrences generated after the window whose override moves them into it.
    for index, modification in modifications.items():
        if index in generated or modification.overrides.date is None:
            continue
        if modification.overrides.date > window_end:
            continue
        if index > 0 and not series.pattern.is_recurring:
            continue
        raw_date = occurrence_date(series.pattern, index)
        if not is_within_termination(series.pattern, index, raw_date):
            continue
        if raw_date <= window_end:
            # Inside the walked range but not generated: past a walk limit.
            continue
        occurrence = materialize(series, index, raw_date, modification)
        if _visible(occurrence, window_start, window_end):
            results.append(occurrence)

    results.sort(key=lambda o: (o.date, o.index))
    return results


def _visible(occurrence: Occurrence, start: date, end: date) -> bool:
    return (
        occurrence.state != OccurrenceState.DELETED
        and start <= occurrence.date <= end
    )


def nth(series: ScheduledSeries, index: int) -> Occurrence:
    """Occurrence ``index`` with overrides applied, whatever its state.

    Raises:
        OccurrenceOutOfRangeError: ``index`` is negative.
        OccurrenceNotFoundError: ``index`` is past the termination bound.
    """
    total = total_occurrences(series.pattern)
    if index < 0:
        raise OccurrenceOutOfRangeError(index, total, series.id)
    if total != UNBOUNDED and index >= total:
        raise OccurrenceNotFoundError(index, total, series.id)
    raw_date = occurrence_date(series.pattern, index)
    return materialize(series, index, raw_date, get(series.overlay, index))


def monthly_equivalent_amount(series: ScheduledSeries) -> Decimal:
    """Signed average monthly amount: expenses negative, transfers zero.

    Reporting only; uses the approximate month length.
    """
    template = series.template
    if template.operation == Operation.TRANSFER:
        return Decimal(0)
    frequency = series.pattern.frequency if series.pattern.is_recurring else None
    value = abs(template.amount) * monthly_factor(frequency)
    if template.operation == Operation.EXPENSE:
        return -value
    return value

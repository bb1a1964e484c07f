"""
Pure series revisions used by the occurrence workflows.

Contract:
    Each function takes a ``ScheduledSeries`` and returns the revised series
    (or ``None`` when nothing of it remains).  The service layer persists the
    result; nothing here touches storage.

Architecture: ledger_scheduling/domain.  ZERO I/O.

Invariants enforced:
    - Changing the pattern always clears the overlay.  Index-keyed entries
      are not re-mapped onto a shifted sequence.
    - Changing the template keeps the overlay: indices do not move, and
      per-occurrence overrides still win over the new template values.
    - ``rebase_after`` keeps every later occurrence on exactly the date it
      had before, because dates come from iterating ``next_date`` and the
      new start is an occurrence date of the old sequence.
"""

from __future__ import annotations

from dataclasses import fields, replace
from decimal import Decimal, InvalidOperation
from typing import Any

from ledger_kernel.exceptions import InvalidTemplateError
from ledger_scheduling.domain.overlay import (
    ModificationOverlay,
    OccurrenceModification,
    OccurrenceOverrides,
    OccurrenceState,
    clear_all,
    get,
    upsert,
)
from ledger_scheduling.domain.pattern import RecurrencePattern, occurrence_date
from ledger_scheduling.domain.termination import Infinite, NOccurrences, UntilDate
from ledger_scheduling.domain.types import Operation, ScheduledSeries, SeriesTemplate

TEMPLATE_FIELDS = frozenset(f.name for f in fields(SeriesTemplate))


def replace_pattern(series: ScheduledSeries, pattern: RecurrencePattern) -> ScheduledSeries:
    """New pattern, empty overlay."""
    return series.with_pattern(pattern).with_overlay(clear_all(series.overlay))


def revise_template(series: ScheduledSeries, **changes: Any) -> ScheduledSeries:
    """New template values from now on; pattern and overlay untouched.

    Raises:
        InvalidTemplateError: unknown field, blank name or category, unknown
            operation, or an amount that is not a finite number.
    """
    unknown = sorted(set(changes) - TEMPLATE_FIELDS)
    if unknown:
        raise InvalidTemplateError(f"unknown field(s) {', '.join(unknown)}", unknown[0])
    for name in ("name", "category"):
        if name in changes and not str(changes[name] or "").strip():
            raise InvalidTemplateError(f"{name} must not be blank", name)
    if "amount" in changes:
        changes["amount"] = _as_amount(changes["amount"])
    if "operation" in changes:
        try:
            changes["operation"] = Operation(changes["operation"])
        except ValueError:
            raise InvalidTemplateError(
                f"unknown operation {changes['operation']!r}", "operation"
            ) from None
    return series.with_template(replace(series.template, **changes))


def _as_amount(value: Any) -> Decimal:
    if isinstance(value, bool):
        raise InvalidTemplateError(f"amount {value!r} is not a number", "amount")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation:
        raise InvalidTemplateError(f"amount {value!r} is not a number", "amount") from None
    if not amount.is_finite():
        raise InvalidTemplateError(f"amount {value!r} is not finite", "amount")
    return amount


def edit_overrides(
    series: ScheduledSeries, index: int, overrides: OccurrenceOverrides
) -> ScheduledSeries:
    """Merge ``overrides`` into the modification at ``index``, keeping its state."""
    existing = get(series.overlay, index)
    if existing is None:
        modification = OccurrenceModification(index=index, overrides=overrides)
    else:
        modification = replace(existing, overrides=existing.overrides.merged_with(overrides))
    return series.with_overlay(upsert(series.overlay, modification))


def complete_occurrence(
    series: ScheduledSeries, index: int, actual: OccurrenceOverrides
) -> ScheduledSeries:
    """Mark ``index`` completed, recording the values actually used."""
    existing = get(series.overlay, index)
    overrides = existing.overrides.merged_with(actual) if existing else actual
    return series.with_overlay(
        upsert(
            series.overlay,
            OccurrenceModification(
                index=index, overrides=overrides, state=OccurrenceState.COMPLETED
            ),
        )
    )


def rebase_after(
    series: ScheduledSeries, index: int, template: SeriesTemplate
) -> ScheduledSeries | None:
    """Drop occurrences ``0..index`` and carry ``template`` forward.

    Occurrence ``index + 1`` becomes the new index 0:

    - the start date moves to its date;
    - ``NOccurrences(c)`` becomes ``NOccurrences(c - index - 1)``;
    - an ``UntilDate`` whose end falls on the new start becomes
      ``NOccurrences(1)`` (the same single occurrence);
    - overlay entries after ``index`` shift down by ``index + 1``, earlier
      ones are dropped.

    Returns ``None`` when no occurrence remains.
    """
    pattern = series.pattern
    if not pattern.is_recurring:
        return None

    shift = index + 1
    new_start = occurrence_date(pattern, shift)
    termination = pattern.termination

    if isinstance(termination, NOccurrences):
        remaining = termination.count - shift
        if remaining <= 0:
            return None
        new_termination = NOccurrences(remaining)
    elif isinstance(termination, UntilDate):
        if new_start > termination.until:
            return None
        new_termination = termination if new_start < termination.until else NOccurrences(1)
    else:
        new_termination = Infinite()

    new_pattern = RecurrencePattern(new_start, pattern.frequency, new_termination)
    shifted = ModificationOverlay(
        tuple(
            replace(m, index=m.index - shift)
            for m in series.overlay.modifications
            if m.index > index
        )
    )
    return replace(series, template=template, pattern=new_pattern, overlay=shifted)

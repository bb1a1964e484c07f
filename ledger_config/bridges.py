"""
Config -> Scheduling Bridges.

Functions that convert configuration artifacts into recurrence-engine
values.  They live in ledger_config (the producer) so that the scheduling
domain never imports configuration.

Usage:
    from ledger_config import get_scheduling_config
    from ledger_config.bridges import build_series

    config = get_scheduling_config()
    series = [build_series(seed, config.settings) for seed in config.seeds]
"""

from __future__ import annotations

from uuid import UUID, uuid5

from ledger_config.schema import SchedulingSettings, SeriesSeedDef
from ledger_scheduling.domain.frequency import parse_frequency
from ledger_scheduling.domain.pattern import RecurrencePattern
from ledger_scheduling.domain.termination import build_termination
from ledger_scheduling.domain.types import Operation, ScheduledSeries, SeriesTemplate

# Fixed namespaces for deterministic IDs of seeded accounts and series.
_ACCOUNT_UUID_NAMESPACE = UUID("5c3e0b8a-2f0d-4c1e-9a57-6d2b7f4e1a90")
_SERIES_UUID_NAMESPACE = UUID("9e1f6a42-7b3c-4d8e-a0f5-c2b4d6e8f013")


def account_id(reference: str) -> UUID:
    """UUID for an account reference: a literal UUID, or a stable name-derived one."""
    try:
        return UUID(reference)
    except ValueError:
        return uuid5(_ACCOUNT_UUID_NAMESPACE, reference)


def build_series(seed: SeriesSeedDef, settings: SchedulingSettings) -> ScheduledSeries:
    """Turn a seed into a ``ScheduledSeries`` with an empty overlay.

    The series id is derived from the seed name, so loading the same seeds
    twice yields the same ids.

    Raises:
        InvalidFrequencyError: strict parsing enabled and the text is invalid.
        InvalidTerminationError / InvalidPatternError: inconsistent seed.
        ValueError: unknown operation.
    """
    frequency = (
        parse_frequency(seed.frequency, strict=settings.strict_frequency_parsing)
        if seed.frequency is not None
        else None
    )
    pattern = RecurrencePattern(
        start_date=seed.start_date,
        frequency=frequency,
        termination=build_termination(
            seed.recurrence_type, until=seed.until, count=seed.occurrences
        ),
    )
    template = SeriesTemplate(
        name=seed.name,
        amount=seed.amount,
        operation=Operation(seed.operation),
        category=seed.category,
        subcategory=seed.subcategory,
        account=account_id(seed.account),
        to_account=account_id(seed.to_account) if seed.to_account else None,
    )
    return ScheduledSeries(
        id=uuid5(_SERIES_UUID_NAMESPACE, seed.name),
        template=template,
        pattern=pattern,
    )

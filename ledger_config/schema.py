"""
Configuration schema (``ledger_config.schema``).

Frozen dataclasses produced by ``ledger_config.loader``.  Nothing here does
I/O or validation beyond what the dataclass constructors enforce; the
loader is responsible for turning raw YAML into these types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal


@dataclass(frozen=True)
class SchedulingSettings:
    """Tunables for the recurrence engine and occurrence service."""

    # Default cap for count-bounded generation and the next-pending search.
    generation_cap: int = 100
    # Reject unparsable frequency text instead of degrading to zero.
    strict_frequency_parsing: bool = False
    upcoming_window_days: int = 7
    # Step bound for date-bounded walks.
    date_walk_limit: int = 100_000
    # Minimum frequency (approximate days) for the next-months expenses view.
    long_period_min_days: int = 31


@dataclass(frozen=True)
class SeriesSeedDef:
    """Declarative scheduled series from YAML."""

    name: str
    amount: Decimal
    operation: str  # Matches Operation values
    category: str
    account: str
    start_date: date
    recurrence_type: str  # Matches RecurrenceType values
    frequency: str | None = None
    subcategory: str | None = None
    to_account: str | None = None
    until: date | None = None
    occurrences: int | None = None


@dataclass(frozen=True)
class SchedulingConfig:
    """Everything ``get_scheduling_config()`` returns."""

    settings: SchedulingSettings
    seeds: tuple[SeriesSeedDef, ...] = field(default_factory=tuple)
    checksum: str = ""

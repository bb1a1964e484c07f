"""
Scheduled series aggregate and derived occurrence types.

Contract:
    Frozen DTOs.  ``ScheduledSeries`` owns its pattern and overlay; every
    change produces a new series value via ``with_*`` helpers.
    ``Occurrence`` is transient and never persisted.

Architecture: ledger_scheduling/domain.  ZERO I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from ledger_scheduling.domain.overlay import (
    EMPTY_OVERLAY,
    ModificationOverlay,
    OccurrenceState,
)
from ledger_scheduling.domain.pattern import RecurrencePattern


class Operation(str, Enum):
    """Direction of money for a scheduled item."""

    EXPENSE = "expense"
    INCOME = "income"
    TRANSFER = "transfer"


@dataclass(frozen=True)
class SeriesTemplate:
    """Fields every occurrence inherits unless overridden."""

    name: str
    amount: Decimal
    operation: Operation
    category: str
    account: UUID
    subcategory: str | None = None
    to_account: UUID | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, "amount", Decimal(str(self.amount)))
        if not isinstance(self.operation, Operation):
            object.__setattr__(self, "operation", Operation(self.operation))


@dataclass(frozen=True)
class ScheduledSeries:
    """Persisted aggregate: template + pattern + overlay."""

    template: SeriesTemplate
    pattern: RecurrencePattern
    overlay: ModificationOverlay = EMPTY_OVERLAY
    id: UUID = field(default_factory=uuid4)

    def with_template(self, template: SeriesTemplate) -> ScheduledSeries:
        return replace(self, template=template)

    def with_pattern(self, pattern: RecurrencePattern) -> ScheduledSeries:
        return replace(self, pattern=pattern)

    def with_overlay(self, overlay: ModificationOverlay) -> ScheduledSeries:
        return replace(self, overlay=overlay)


@dataclass(frozen=True)
class Occurrence:
    """One effective occurrence: generated slot + template + overrides."""

    series_id: UUID
    index: int
    date: date
    amount: Decimal
    account: UUID
    to_account: UUID | None
    state: OccurrenceState
    name: str = ""
    operation: Operation = Operation.EXPENSE
    original_date: date | None = None

    @property
    def is_pending(self) -> bool:
        return self.state == OccurrenceState.PENDING

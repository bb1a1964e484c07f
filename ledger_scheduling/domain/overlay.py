"""
Modification overlay: sparse per-occurrence exceptions.

Contract:
    A ``ModificationOverlay`` is an immutable, index-sorted tuple of
    ``OccurrenceModification`` values.  Every operation returns a NEW
    overlay; the input is never mutated, so overlays can be shared freely
    between readers.

Architecture: ledger_scheduling/domain.  ZERO I/O.

Invariants enforced:
    - At most one modification per index.  ``upsert`` replaces, never
      appends a duplicate (last write wins).
    - ``mark_completed`` / ``mark_deleted`` change only the state and keep
      any field overrides already recorded for that index.
    - ``clear_all`` empties the overlay; used whenever the base sequence
      shifts (start date or frequency change), because index-keyed entries
      no longer point at the same occurrences.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID


class OccurrenceState(str, Enum):
    """Lifecycle of a single occurrence."""

    PENDING = "pending"
    COMPLETED = "completed"
    DELETED = "deleted"


@dataclass(frozen=True)
class OccurrenceOverrides:
    """Field values that replace the template/generated ones.  ``None`` = keep."""

    date: date | None = None
    amount: Decimal | None = None
    account: UUID | None = None
    to_account: UUID | None = None

    @property
    def is_empty(self) -> bool:
        return (
            self.date is None
            and self.amount is None
            and self.account is None
            and self.to_account is None
        )

    def merged_with(self, newer: OccurrenceOverrides) -> OccurrenceOverrides:
        """Overrides where every field set on ``newer`` wins."""
        return OccurrenceOverrides(
            date=newer.date if newer.date is not None else self.date,
            amount=newer.amount if newer.amount is not None else self.amount,
            account=newer.account if newer.account is not None else self.account,
            to_account=newer.to_account if newer.to_account is not None else self.to_account,
        )


NO_OVERRIDES = OccurrenceOverrides()


@dataclass(frozen=True)
class OccurrenceModification:
    index: int
    overrides: OccurrenceOverrides = NO_OVERRIDES
    state: OccurrenceState = OccurrenceState.PENDING

    def __post_init__(self) -> None:
        if self.index < 0:
            raise ValueError(f"modification index must be non-negative, got {self.index}")


@dataclass(frozen=True)
class ModificationOverlay:
    modifications: tuple[OccurrenceModification, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        ordered = tuple(sorted(self.modifications, key=lambda m: m.index))
        indices = [m.index for m in ordered]
        if len(indices) != len(set(indices)):
            raise ValueError("overlay holds more than one modification for an index")
        object.__setattr__(self, "modifications", ordered)

    def __len__(self) -> int:
        return len(self.modifications)

    def __iter__(self):
        return iter(self.modifications)

    def as_dict(self) -> dict[int, OccurrenceModification]:
        return {m.index: m for m in self.modifications}


EMPTY_OVERLAY = ModificationOverlay()


@dataclass(frozen=True)
class OverlayStats:
    """Counts of modifications by state."""

    total: int
    pending: int
    completed: int
    deleted: int


# =============================================================================
# Operations (pure)
# =============================================================================


def upsert(
    overlay: ModificationOverlay, modification: OccurrenceModification
) -> ModificationOverlay:
    """Insert ``modification``, replacing any entry at the same index."""
    kept = tuple(m for m in overlay.modifications if m.index != modification.index)
    return ModificationOverlay(kept + (modification,))


def get(overlay: ModificationOverlay, index: int) -> OccurrenceModification | None:
    for modification in overlay.modifications:
        if modification.index == index:
            return modification
    return None


def remove(overlay: ModificationOverlay, index: int) -> ModificationOverlay:
    return ModificationOverlay(
        tuple(m for m in overlay.modifications if m.index != index)
    )


def _with_state(
    overlay: ModificationOverlay, index: int, state: OccurrenceState
) -> ModificationOverlay:
    existing = get(overlay, index)
    if existing is None:
        return upsert(overlay, OccurrenceModification(index=index, state=state))
    return upsert(overlay, replace(existing, state=state))


def mark_completed(overlay: ModificationOverlay, index: int) -> ModificationOverlay:
    return _with_state(overlay, index, OccurrenceState.COMPLETED)


def mark_deleted(overlay: ModificationOverlay, index: int) -> ModificationOverlay:
    return _with_state(overlay, index, OccurrenceState.DELETED)


def reset_to_pending(overlay: ModificationOverlay, index: int) -> ModificationOverlay:
    """Return occurrence ``index`` to pending.

    An entry that carries no overrides is dropped entirely, since a pending
    occurrence without overrides is exactly what the generator produces.
    """
    existing = get(overlay, index)
    if existing is None:
        return overlay
    if existing.overrides.is_empty:
        return remove(overlay, index)
    return upsert(overlay, replace(existing, state=OccurrenceState.PENDING))


def clear_all(overlay: ModificationOverlay) -> ModificationOverlay:
    return EMPTY_OVERLAY


def overlay_stats(overlay: ModificationOverlay) -> OverlayStats:
    states = [m.state for m in overlay.modifications]
    return OverlayStats(
        total=len(states),
        pending=states.count(OccurrenceState.PENDING),
        completed=states.count(OccurrenceState.COMPLETED),
        deleted=states.count(OccurrenceState.DELETED),
    )

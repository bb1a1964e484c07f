"""
ORM models for scheduled series persistence.

Contract:
    ``ScheduledSeriesModel`` stores a series' template and pattern;
    ``OccurrenceModificationModel`` stores one overlay entry per row.  The
    pair round-trips through ``to_dto()`` / ``from_dto()`` and is always
    written as one document.

Architecture: ledger_scheduling/models. Imports from ledger_kernel.db.base only
    (domain types are imported lazily inside the conversion methods).

Invariants enforced:
    - One modification row per (series_id, occurrence_index).
    - Deleting a series deletes its modifications (delete-orphan cascade).
    - Amounts are stored as text so their exponent survives a reload.
    - Frequency is stored as canonical text; NULL means "no frequency",
      ``"0d"`` means "present but zero".
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import DecimalText, TrackedBase, UUIDString

if TYPE_CHECKING:
    from ledger_scheduling.domain.overlay import OccurrenceModification
    from ledger_scheduling.domain.types import ScheduledSeries


class ScheduledSeriesModel(TrackedBase):
    """Persistent scheduled series: template fields + recurrence pattern."""

    __tablename__ = "scheduled_series"

    __table_args__ = (
        Index("ix_scheduled_series_start_date", "start_date"),
        Index("ix_scheduled_series_account", "account_id"),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    amount: Mapped[Decimal] = mapped_column(DecimalText(), nullable=False)
    operation: Mapped[str] = mapped_column(String(20), nullable=False)
    category: Mapped[str] = mapped_column(String(200), nullable=False)
    subcategory: Mapped[str | None] = mapped_column(String(200), nullable=True)
    account_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    to_account_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    frequency: Mapped[str | None] = mapped_column(String(50), nullable=True)
    recurrence_type: Mapped[str] = mapped_column(String(20), nullable=False)
    until_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    occurrence_count: Mapped[int | None] = mapped_column(Integer, nullable=True)

    modifications: Mapped[list["OccurrenceModificationModel"]] = relationship(
        "OccurrenceModificationModel",
        back_populates="series",
        cascade="all, delete-orphan",
        order_by="OccurrenceModificationModel.occurrence_index",
    )

    def to_dto(self) -> ScheduledSeries:
        from ledger_scheduling.domain.frequency import parse_frequency
        from ledger_scheduling.domain.overlay import ModificationOverlay
        from ledger_scheduling.domain.pattern import RecurrencePattern
        from ledger_scheduling.domain.termination import build_termination
        from ledger_scheduling.domain.types import (
            Operation,
            ScheduledSeries,
            SeriesTemplate,
        )

        return ScheduledSeries(
            id=self.id,
            template=SeriesTemplate(
                name=self.name,
                amount=self.amount,
                operation=Operation(self.operation),
                category=self.category,
                subcategory=self.subcategory,
                account=self.account_id,
                to_account=self.to_account_id,
            ),
            pattern=RecurrencePattern(
                start_date=self.start_date,
                frequency=(
                    parse_frequency(self.frequency) if self.frequency is not None else None
                ),
                termination=build_termination(
                    self.recurrence_type,
                    until=self.until_date,
                    count=self.occurrence_count,
                ),
            ),
            overlay=ModificationOverlay(
                tuple(m.to_dto() for m in self.modifications)
            ),
        )

    @classmethod
    def from_dto(cls, dto: ScheduledSeries) -> ScheduledSeriesModel:
        model = cls(id=dto.id)
        model.apply_dto(dto)
        return model

    def apply_dto(self, dto: ScheduledSeries) -> None:
        """Overwrite every column and the modification rows from ``dto``."""
        from ledger_scheduling.domain.termination import NOccurrences, UntilDate

        template = dto.template
        pattern = dto.pattern
        termination = pattern.termination

        self.name = template.name
        self.amount = template.amount
        self.operation = template.operation.value
        self.category = template.category
        self.subcategory = template.subcategory
        self.account_id = template.account
        self.to_account_id = template.to_account

        self.start_date = pattern.start_date
        self.frequency = pattern.frequency.to_string() if pattern.frequency is not None else None
        self.recurrence_type = termination.type.value
        self.until_date = termination.until if isinstance(termination, UntilDate) else None
        self.occurrence_count = (
            termination.count if isinstance(termination, NOccurrences) else None
        )

        existing = {m.occurrence_index: m for m in self.modifications}
        wanted = {m.index for m in dto.overlay}
        for row in list(self.modifications):
            if row.occurrence_index not in wanted:
                self.modifications.remove(row)
        for modification in dto.overlay:
            row = existing.get(modification.index)
            if row is None:
                self.modifications.append(OccurrenceModificationModel.from_dto(modification))
            else:
                row.apply_dto(modification)


class OccurrenceModificationModel(TrackedBase):
    """One overlay entry: state plus optional field overrides."""

    __tablename__ = "occurrence_modifications"

    __table_args__ = (
        UniqueConstraint(
            "series_id", "occurrence_index", name="uq_occurrence_modifications_index",
        ),
        Index("ix_occurrence_modifications_series", "series_id"),
    )

    series_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("scheduled_series.id", ondelete="CASCADE"), nullable=False,
    )
    occurrence_index: Mapped[int] = mapped_column(Integer, nullable=False)
    state: Mapped[str] = mapped_column(String(20), nullable=False)
    override_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    override_amount: Mapped[Decimal | None] = mapped_column(DecimalText(), nullable=True)
    override_account_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    override_to_account_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    series: Mapped[ScheduledSeriesModel] = relationship(
        "ScheduledSeriesModel", back_populates="modifications",
    )

    def to_dto(self) -> OccurrenceModification:
        from ledger_scheduling.domain.overlay import (
            OccurrenceModification,
            OccurrenceOverrides,
            OccurrenceState,
        )

        return OccurrenceModification(
            index=self.occurrence_index,
            overrides=OccurrenceOverrides(
                date=self.override_date,
                amount=self.override_amount,
                account=self.override_account_id,
                to_account=self.override_to_account_id,
            ),
            state=OccurrenceState(self.state),
        )

    @classmethod
    def from_dto(cls, dto: OccurrenceModification) -> OccurrenceModificationModel:
        model = cls()
        model.apply_dto(dto)
        return model

    def apply_dto(self, dto: OccurrenceModification) -> None:
        self.occurrence_index = dto.index
        self.state = dto.state.value
        self.override_date = dto.overrides.date
        self.override_amount = dto.overrides.amount
        self.override_account_id = dto.overrides.account
        self.override_to_account_id = dto.overrides.to_account

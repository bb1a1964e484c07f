"""
Tests for ledger_scheduling.models.series.

Validates DTO conversion in both directions, the one-row-per-index
constraint, and the delete cascade onto modification rows.
"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from ledger_scheduling.domain.frequency import ZERO_OFFSET
from ledger_scheduling.domain.overlay import (
    ModificationOverlay,
    OccurrenceModification,
    OccurrenceOverrides,
    OccurrenceState,
)
from ledger_scheduling.domain.termination import NOccurrences, OneTime, UntilDate
from ledger_scheduling.domain.types import Operation
from ledger_scheduling.models import OccurrenceModificationModel, ScheduledSeriesModel
from tests.factories import SAVINGS_ACCOUNT, make_series


def _roundtrip(session, series):
    session.add(ScheduledSeriesModel.from_dto(series))
    session.flush()
    session.expunge_all()
    return session.get(ScheduledSeriesModel, series.id).to_dto()


# =============================================================================
# DTO conversion
# =============================================================================


class TestScheduledSeriesModelConversion:
    def test_columns_from_dto(self):
        series = make_series(termination=NOccurrences(4))
        model = ScheduledSeriesModel.from_dto(series)
        assert model.id == series.id
        assert model.name == "Gym membership"
        assert model.operation == "expense"
        assert model.frequency == "1mo"
        assert model.recurrence_type == "n-occurrences"
        assert model.occurrence_count == 4
        assert model.until_date is None

    def test_one_time_has_no_frequency(self):
        model = ScheduledSeriesModel.from_dto(make_series(termination=OneTime()))
        assert model.frequency is None
        assert model.recurrence_type == "one-time"

    def test_zero_frequency_stored_as_text(self):
        model = ScheduledSeriesModel.from_dto(make_series(frequency="garbage"))
        assert model.frequency == "0d"

    def test_roundtrip_with_overlay(self, session):
        series = make_series(
            termination=UntilDate(date(2025, 1, 1)),
            operation=Operation.TRANSFER,
            to_account=SAVINGS_ACCOUNT,
        ).with_overlay(
            ModificationOverlay(
                (
                    OccurrenceModification(
                        index=0,
                        overrides=OccurrenceOverrides(amount=Decimal("46.25")),
                        state=OccurrenceState.COMPLETED,
                    ),
                    OccurrenceModification(index=3, state=OccurrenceState.DELETED),
                    OccurrenceModification(
                        index=5,
                        overrides=OccurrenceOverrides(
                            date=date(2024, 6, 3), account=SAVINGS_ACCOUNT
                        ),
                    ),
                )
            )
        )
        assert _roundtrip(session, series) == series

    def test_roundtrip_zero_frequency(self, session):
        loaded = _roundtrip(session, make_series(frequency=""))
        assert loaded.pattern.frequency == ZERO_OFFSET

    def test_roundtrip_one_time(self, session):
        series = make_series(termination=OneTime())
        assert _roundtrip(session, series) == series


class TestApplyDto:
    def test_syncs_modification_rows_by_index(self, session):
        series = make_series().with_overlay(
            ModificationOverlay(
                (
                    OccurrenceModification(index=1, state=OccurrenceState.DELETED),
                    OccurrenceModification(index=2, state=OccurrenceState.DELETED),
                )
            )
        )
        model = ScheduledSeriesModel.from_dto(series)
        session.add(model)
        session.flush()
        kept_row_id = model.modifications[1].id

        revised = series.with_overlay(
            ModificationOverlay(
                (
                    OccurrenceModification(index=2, state=OccurrenceState.COMPLETED),
                    OccurrenceModification(index=7),
                )
            )
        )
        model.apply_dto(revised)
        session.flush()

        assert [m.occurrence_index for m in model.modifications] == [2, 7]
        assert model.modifications[0].id == kept_row_id
        assert model.modifications[0].state == "completed"


# =============================================================================
# Constraints
# =============================================================================


class TestConstraints:
    def test_duplicate_index_rejected(self, session):
        model = ScheduledSeriesModel.from_dto(make_series())
        session.add(model)
        session.flush()
        for _ in range(2):
            row = OccurrenceModificationModel.from_dto(OccurrenceModification(index=4))
            row.series_id = model.id
            session.add(row)
        with pytest.raises(IntegrityError):
            session.flush()

    def test_delete_cascades_to_modifications(self, session):
        series = make_series().with_overlay(
            ModificationOverlay((OccurrenceModification(index=0, state=OccurrenceState.DELETED),))
        )
        model = ScheduledSeriesModel.from_dto(series)
        session.add(model)
        session.flush()

        session.delete(model)
        session.flush()

        count = session.scalar(select(func.count()).select_from(OccurrenceModificationModel))
        assert count == 0

"""
Series repository: contract and SQLAlchemy implementation.

Contract:
    ``SeriesRepository`` is the persistence boundary of the recurrence
    engine.  It hands out and accepts whole ``ScheduledSeries`` documents
    (pattern + overlay together).

Architecture: ledger_scheduling/services.  The SQLAlchemy implementation
    flushes but never commits; the caller owns the transaction.

Known limitation:
    ``persist`` is a whole-document upsert with no version check.  Two
    sessions editing the same series resolve by last write wins.
"""

from __future__ import annotations

from datetime import date
from typing import Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from ledger_kernel.logging_config import get_logger
from ledger_scheduling.domain.types import ScheduledSeries
from ledger_scheduling.models.series import ScheduledSeriesModel

logger = get_logger("scheduling.repository")


@runtime_checkable
class SeriesRepository(Protocol):
    """Persistence contract consumed by the occurrence service."""

    def find_by_id(self, series_id: UUID) -> ScheduledSeries | None:
        ...

    def find_all(self) -> list[ScheduledSeries]:
        ...

    def find_where_date_before_or_equal(self, when: date) -> list[ScheduledSeries]:
        """Series whose start date is on or before ``when``."""
        ...

    def persist(self, series: ScheduledSeries) -> None:
        """Idempotent whole-document upsert."""
        ...

    def delete(self, series_id: UUID) -> bool:
        """Remove the series and its overlay.  False if it did not exist."""
        ...


class SqlAlchemySeriesRepository:
    """``SeriesRepository`` backed by ``scheduled_series`` tables."""

    def __init__(self, session: Session):
        self._session = session

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def find_by_id(self, series_id: UUID) -> ScheduledSeries | None:
        model = self._load(series_id)
        return model.to_dto() if model is not None else None

    def find_all(self) -> list[ScheduledSeries]:
        stmt = (
            select(ScheduledSeriesModel)
            .options(selectinload(ScheduledSeriesModel.modifications))
            .order_by(ScheduledSeriesModel.start_date, ScheduledSeriesModel.name)
        )
        return [m.to_dto() for m in self._session.scalars(stmt)]

    def find_where_date_before_or_equal(self, when: date) -> list[ScheduledSeries]:
        stmt = (
            select(ScheduledSeriesModel)
            .where(ScheduledSeriesModel.start_date <= when)
            .options(selectinload(ScheduledSeriesModel.modifications))
            .order_by(ScheduledSeriesModel.start_date, ScheduledSeriesModel.name)
        )
        return [m.to_dto() for m in self._session.scalars(stmt)]

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def persist(self, series: ScheduledSeries) -> None:
        model = self._load(series.id)
        if model is None:
            self._session.add(ScheduledSeriesModel.from_dto(series))
            is_new = True
        else:
            model.apply_dto(series)
            is_new = False
        self._session.flush()
        logger.debug(
            "series_persisted",
            extra={
                "series_id": str(series.id),
                "is_new": is_new,
                "modification_count": len(series.overlay),
            },
        )

    def delete(self, series_id: UUID) -> bool:
        model = self._load(series_id)
        if model is None:
            return False
        self._session.delete(model)
        self._session.flush()
        logger.debug("series_row_deleted", extra={"series_id": str(series_id)})
        return True

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _load(self, series_id: UUID) -> ScheduledSeriesModel | None:
        return self._session.get(
            ScheduledSeriesModel,
            series_id,
            options=[selectinload(ScheduledSeriesModel.modifications)],
        )

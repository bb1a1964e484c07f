"""ORM models for scheduled series. Importing this package registers the tables."""

from ledger_scheduling.models.series import (
    OccurrenceModificationModel,
    ScheduledSeriesModel,
)

__all__ = [
    "OccurrenceModificationModel",
    "ScheduledSeriesModel",
]

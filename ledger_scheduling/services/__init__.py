"""
Imperative shell of the recurrence engine: repository and occurrence service.

The service works on whatever session it is given and only flushes; the
caller owns the transaction.  Wiring it to the process-wide engine::

    from ledger_config import get_scheduling_config
    from ledger_kernel.db.engine import create_tables, init_engine_from_url, session_scope
    from ledger_scheduling.services import (
        ScheduledOccurrenceService,
        SqlAlchemySeriesRepository,
    )

    init_engine_from_url("sqlite:///budget.db")
    create_tables()
    settings = get_scheduling_config().settings

    with session_scope() as session:
        service = ScheduledOccurrenceService(
            SqlAlchemySeriesRepository(session), settings=settings
        )
        service.edit_amount(series_id, "49.99")
        upcoming = service.upcoming_within_days()
"""

from ledger_scheduling.services.occurrence_service import (
    LedgerRecorder,
    OccurrenceRecord,
    ScheduledOccurrenceService,
)
from ledger_scheduling.services.repository import (
    SeriesRepository,
    SqlAlchemySeriesRepository,
)

__all__ = [
    "LedgerRecorder",
    "OccurrenceRecord",
    "ScheduledOccurrenceService",
    "SeriesRepository",
    "SqlAlchemySeriesRepository",
]

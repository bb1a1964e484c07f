"""
ScheduledOccurrenceService -- query and edit occurrences of scheduled series.

Responsibility:
    The outward interface of the recurrence engine.  Loads series through a
    ``SeriesRepository``, runs the pure domain functions over them, persists
    the revised series and logs every state change.

Architecture position:
    Scheduling > Services -- imperative shell around
    ``ledger_scheduling.domain``.  The only place in the package that reads
    the clock, logs, or touches the repository.

Invariants enforced:
    - Occurrence-level edits on a non-recurring series fail fast.
    - Changing start date, frequency or the whole pattern clears the overlay.
    - Template edits keep the overlay.
    - A series is always written back as one document (pattern + overlay).
    - Flush-only: never commits or rolls back.

Failure modes:
    - SeriesNotFoundError: unknown series id.
    - OccurrenceNotFoundError: recording / looking up an index beyond the
      termination bound.
    - OccurrenceOutOfRangeError: editing, deleting or resetting an index
      beyond the termination bound, or any negative index.
    - NonRecurringSeriesError: occurrence-level operation on a series with
      no recurrence.
    - InvalidFrequencyError: ``edit_frequency`` with strict parsing on.
    - InvalidPatternError: a pattern edit produces an invalid combination.
    - InvalidTemplateError: ``edit_template`` names an unknown field or
      gives an unusable value.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Protocol, runtime_checkable
from uuid import UUID

from dateutil.relativedelta import relativedelta

from ledger_config.schema import SchedulingSettings
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.exceptions import (
    NonRecurringSeriesError,
    OccurrenceOutOfRangeError,
    SeriesNotFoundError,
)
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_scheduling.domain.frequency import parse_frequency, to_approximate_days
from ledger_scheduling.domain.generator import generate_up_to
from ledger_scheduling.domain.overlay import (
    OccurrenceOverrides,
    OccurrenceState,
    OverlayStats,
    mark_deleted,
    overlay_stats,
    reset_to_pending,
)
from ledger_scheduling.domain.pattern import (
    UNBOUNDED,
    RecurrencePattern,
    total_occurrences,
)
from ledger_scheduling.domain.projector import (
    materialize,
    monthly_equivalent_amount,
    nth,
    project,
)
from ledger_scheduling.domain.revision import (
    complete_occurrence,
    edit_overrides,
    rebase_after,
    replace_pattern,
    revise_template,
)
from ledger_scheduling.domain.types import (
    Occurrence,
    Operation,
    ScheduledSeries,
    SeriesTemplate,
)
from ledger_scheduling.services.repository import SeriesRepository

logger = get_logger("scheduling.occurrences")


def _chronological(occurrence: Occurrence) -> tuple[date, str, int]:
    """Sort key for occurrences drawn from several series."""
    return occurrence.date, str(occurrence.series_id), occurrence.index


# =============================================================================
# Ledger boundary
# =============================================================================


@dataclass(frozen=True)
class OccurrenceRecord:
    """A materialized occurrence handed to the ledger for recording."""

    series_id: UUID
    index: int
    date: date
    amount: Decimal
    operation: Operation
    account: UUID
    to_account: UUID | None
    name: str
    category: str
    subcategory: str | None
    permanent: bool


@runtime_checkable
class LedgerRecorder(Protocol):
    """Turns a recorded occurrence into a ledger transaction.

    Contract:
        Called once per ``record_occurrence`` before the series is revised.
        An exception aborts the recording; the series is left untouched.
    """

    def record(self, record: OccurrenceRecord) -> None:
        ...


# =============================================================================
# Service
# =============================================================================


class ScheduledOccurrenceService:
    """
    Query and edit occurrences of scheduled series.

    Contract:
        Accepts series ids and plain values, returns frozen domain DTOs.
        Mutating methods persist through the repository within the caller's
        transaction.

    Non-goals:
        - Does NOT commit -- the caller controls transaction boundaries.
        - Does NOT update account balances; that is the ``LedgerRecorder``.
        - Does NOT detect concurrent edits; last write wins.
    """

    def __init__(
        self,
        repository: SeriesRepository,
        clock: Clock | None = None,
        settings: SchedulingSettings | None = None,
        recorder: LedgerRecorder | None = None,
    ):
        self._repository = repository
        self._clock = clock or SystemClock()
        self._settings = settings or SchedulingSettings()
        self._recorder = recorder

    # -------------------------------------------------------------------------
    # Series lifecycle
    # -------------------------------------------------------------------------

    def create_series(
        self, template: SeriesTemplate, pattern: RecurrencePattern
    ) -> ScheduledSeries:
        series = ScheduledSeries(template=template, pattern=pattern)
        self._repository.persist(series)
        logger.info(
            "series_created",
            extra={
                "series_id": str(series.id),
                "series_name": template.name,
                "recurrence_type": pattern.termination.type.value,
                "frequency": str(pattern.frequency) if pattern.frequency else None,
                "start_date": pattern.start_date,
            },
        )
        return series

    def get_series(self, series_id: UUID) -> ScheduledSeries:
        series = self._repository.find_by_id(series_id)
        if series is None:
            raise SeriesNotFoundError(series_id)
        return series

    def delete_series(self, series_id: UUID) -> None:
        """Remove the series together with its pattern and overlay."""
        if not self._repository.delete(series_id):
            raise SeriesNotFoundError(series_id)
        logger.info("series_deleted", extra={"series_id": str(series_id)})

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list_occurrences_until(self, until: date) -> list[Occurrence]:
        """Effective occurrences of every series from its start up to ``until``.

        Ordered by effective date, then series id, then index.
        """
        occurrences: list[Occurrence] = []
        for series in self._repository.find_where_date_before_or_equal(until):
            occurrences.extend(
                project(
                    series,
                    series.pattern.start_date,
                    until,
                    max_iterations=self._settings.date_walk_limit,
                )
            )
        occurrences.sort(key=_chronological)
        return occurrences

    def get_occurrence(self, series_id: UUID, index: int) -> Occurrence:
        return nth(self.get_series(series_id), index)

    def upcoming_within_days(self, days: int | None = None) -> list[Occurrence]:
        """Effective occurrences dated from today through today + ``days``."""
        window = self._settings.upcoming_window_days if days is None else days
        today = self._clock.today()
        end = today + timedelta(days=window)
        occurrences: list[Occurrence] = []
        for series in self._repository.find_where_date_before_or_equal(end):
            occurrences.extend(
                project(series, today, end, max_iterations=self._settings.date_walk_limit)
            )
        occurrences.sort(key=_chronological)
        return occurrences

    def next_pending_occurrence(self, series_id: UUID) -> Occurrence | None:
        """First occurrence that is neither completed nor deleted.

        Searches at most ``generation_cap`` occurrences.
        """
        return self._next_pending(self.get_series(series_id))

    def next_months_expenses(self) -> list[Occurrence]:
        """Next pending occurrence of long-period expenses due next month or later.

        Only recurring expense series whose frequency spans at least
        ``long_period_min_days`` are considered.
        """
        first_of_next_month = self._clock.today().replace(day=1) + relativedelta(months=1)
        results: list[Occurrence] = []
        for series in self._repository.find_all():
            pattern = series.pattern
            if series.template.operation != Operation.EXPENSE or not pattern.is_recurring:
                continue
            if to_approximate_days(pattern.frequency) < self._settings.long_period_min_days:
                continue
            occurrence = self._next_pending(series)
            if occurrence is not None and occurrence.date >= first_of_next_month:
                results.append(occurrence)
        results.sort(key=_chronological)
        return results

    def monthly_estimate(self, series_id: UUID) -> Decimal:
        """Signed monthly-equivalent amount of the series (reporting only)."""
        return monthly_equivalent_amount(self.get_series(series_id))

    def overlay_stats(self, series_id: UUID) -> OverlayStats:
        return overlay_stats(self.get_series(series_id).overlay)

    # -------------------------------------------------------------------------
    # Occurrence edits
    # -------------------------------------------------------------------------

    def record_occurrence(
        self,
        series_id: UUID,
        index: int,
        actual_date: date | None,
        actual_amount: Decimal | None,
        permanent: bool = False,
        actual_account: UUID | None = None,
        actual_to_account: UUID | None = None,
    ) -> ScheduledSeries | None:
        """Record occurrence ``index`` in the ledger and revise the series.

        Missing actual values fall back to the occurrence's effective ones.

        Non-permanent: the occurrence is marked completed with the values
        actually used; the pattern is untouched.

        Permanent: the actual amount and accounts become the template for
        every later occurrence, and occurrence ``index + 1`` becomes the new
        first occurrence.  The series is deleted when none remains.

        Returns:
            The revised series, or ``None`` if it was exhausted and deleted.
        """
        with LogContext.bind(series_id=str(series_id)):
            series = self.get_series(series_id)
            self._require_recurring(series, "record")
            occurrence = nth(series, index)

            record = OccurrenceRecord(
                series_id=series.id,
                index=index,
                date=actual_date or occurrence.date,
                amount=actual_amount if actual_amount is not None else occurrence.amount,
                operation=series.template.operation,
                account=actual_account or occurrence.account,
                to_account=actual_to_account or occurrence.to_account,
                name=series.template.name,
                category=series.template.category,
                subcategory=series.template.subcategory,
                permanent=permanent,
            )
            if self._recorder is not None:
                self._recorder.record(record)

            if not permanent:
                revised = complete_occurrence(
                    series,
                    index,
                    OccurrenceOverrides(
                        date=record.date,
                        amount=record.amount,
                        account=record.account,
                        to_account=record.to_account,
                    ),
                )
                self._repository.persist(revised)
                logger.info(
                    "occurrence_recorded",
                    extra={"index": index, "date": record.date, "amount": record.amount},
                )
                return revised

            template = replace(
                series.template,
                amount=record.amount,
                account=record.account,
                to_account=record.to_account,
            )
            revised = rebase_after(series, index, template)
            if revised is None:
                self._repository.delete(series.id)
                logger.info("series_exhausted", extra={"index": index})
                return None

            self._repository.persist(revised)
            logger.info(
                "series_rebased",
                extra={
                    "index": index,
                    "new_start_date": revised.pattern.start_date,
                    "amount": template.amount,
                    "kept_modifications": len(revised.overlay),
                },
            )
            return revised

    def edit_occurrence(
        self, series_id: UUID, index: int, overrides: OccurrenceOverrides
    ) -> ScheduledSeries:
        """Merge ``overrides`` into occurrence ``index``, keeping its state."""
        with LogContext.bind(series_id=str(series_id)):
            series = self._load_for_occurrence_edit(series_id, index, "edit")
            revised = edit_overrides(series, index, overrides)
            self._repository.persist(revised)
            logger.info(
                "occurrence_edited",
                extra={
                    "index": index,
                    "override_fields": [
                        name
                        for name in ("date", "amount", "account", "to_account")
                        if getattr(overrides, name) is not None
                    ],
                },
            )
            return revised

    def delete_occurrence(self, series_id: UUID, index: int) -> ScheduledSeries:
        with LogContext.bind(series_id=str(series_id)):
            series = self._load_for_occurrence_edit(series_id, index, "delete")
            revised = series.with_overlay(mark_deleted(series.overlay, index))
            self._repository.persist(revised)
            logger.info("occurrence_deleted", extra={"index": index})
            return revised

    def reset_occurrence(self, series_id: UUID, index: int) -> ScheduledSeries:
        """Return occurrence ``index`` to pending, keeping field overrides."""
        with LogContext.bind(series_id=str(series_id)):
            series = self._load_for_occurrence_edit(series_id, index, "reset")
            revised = series.with_overlay(reset_to_pending(series.overlay, index))
            self._repository.persist(revised)
            logger.info("occurrence_reset", extra={"index": index})
            return revised

    # -------------------------------------------------------------------------
    # Template edits
    # -------------------------------------------------------------------------

    def edit_template(self, series_id: UUID, **changes: Any) -> ScheduledSeries:
        """Change template fields for every occurrence not individually overridden.

        Nothing is recorded.  The overlay is kept as is, so per-occurrence
        overrides still win over the new values.
        """
        with LogContext.bind(series_id=str(series_id)):
            series = self.get_series(series_id)
            revised = revise_template(series, **changes)
            self._repository.persist(revised)
            logger.info(
                "template_edited",
                extra={
                    "changed_fields": sorted(changes),
                    "kept_modifications": len(revised.overlay),
                },
            )
            return revised

    def edit_amount(self, series_id: UUID, amount: Decimal | str) -> ScheduledSeries:
        return self.edit_template(series_id, amount=amount)

    # -------------------------------------------------------------------------
    # Pattern edits
    # -------------------------------------------------------------------------

    def edit_pattern(self, series_id: UUID, pattern: RecurrencePattern) -> ScheduledSeries:
        """Replace the pattern.  Always clears the overlay."""
        with LogContext.bind(series_id=str(series_id)):
            series = self.get_series(series_id)
            return self._replace_pattern(series, pattern)

    def edit_frequency(self, series_id: UUID, frequency: str) -> ScheduledSeries:
        with LogContext.bind(series_id=str(series_id)):
            series = self.get_series(series_id)
            offset = parse_frequency(
                frequency, strict=self._settings.strict_frequency_parsing
            )
            return self._replace_pattern(series, series.pattern.with_frequency(offset))

    def edit_start_date(self, series_id: UUID, start_date: date) -> ScheduledSeries:
        with LogContext.bind(series_id=str(series_id)):
            series = self.get_series(series_id)
            return self._replace_pattern(series, series.pattern.with_start_date(start_date))

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _replace_pattern(
        self, series: ScheduledSeries, pattern: RecurrencePattern
    ) -> ScheduledSeries:
        cleared = len(series.overlay)
        revised = replace_pattern(series, pattern)
        self._repository.persist(revised)
        logger.info(
            "pattern_edited",
            extra={
                "start_date": pattern.start_date,
                "frequency": str(pattern.frequency) if pattern.frequency else None,
                "recurrence_type": pattern.termination.type.value,
            },
        )
        if cleared:
            logger.info("overlay_cleared", extra={"cleared_modifications": cleared})
        return revised

    def _next_pending(self, series: ScheduledSeries) -> Occurrence | None:
        modifications = series.overlay.as_dict()
        for index, raw_date in generate_up_to(series.pattern, self._settings.generation_cap):
            occurrence = materialize(series, index, raw_date, modifications.get(index))
            if occurrence.state == OccurrenceState.PENDING:
                return occurrence
        return None

    def _load_for_occurrence_edit(
        self, series_id: UUID, index: int, operation: str
    ) -> ScheduledSeries:
        series = self.get_series(series_id)
        self._require_recurring(series, operation)
        total = total_occurrences(series.pattern, walk_limit=self._settings.date_walk_limit)
        if index < 0 or (total != UNBOUNDED and index >= total):
            raise OccurrenceOutOfRangeError(index, total, series.id)
        return series

    @staticmethod
    def _require_recurring(series: ScheduledSeries, operation: str) -> None:
        if not series.pattern.is_recurring:
            raise NonRecurringSeriesError(series.id, operation)

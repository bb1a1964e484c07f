"""
Recurrence engine domain: pure functions over frozen values.

Architecture: ledger_scheduling/domain.  ZERO I/O, no logging, no clock.
"""

from ledger_scheduling.domain.frequency import (
    DAYS_PER_MONTH,
    ZERO_OFFSET,
    FrequencyOffset,
    monthly_factor,
    next_date,
    normalize_date,
    parse_frequency,
    to_approximate_days,
)
from ledger_scheduling.domain.generator import (
    DEFAULT_MAX_COUNT,
    generate_until,
    generate_up_to,
    generate_within_days,
    iter_occurrences,
)
from ledger_scheduling.domain.overlay import (
    EMPTY_OVERLAY,
    ModificationOverlay,
    OccurrenceModification,
    OccurrenceOverrides,
    OccurrenceState,
    OverlayStats,
    clear_all,
    mark_completed,
    mark_deleted,
    overlay_stats,
    reset_to_pending,
    upsert,
)
from ledger_scheduling.domain.pattern import (
    UNBOUNDED,
    RecurrencePattern,
    is_within_termination,
    occurrence_date,
    one_time,
    total_occurrences,
)
from ledger_scheduling.domain.projector import (
    monthly_equivalent_amount,
    nth,
    project,
)
from ledger_scheduling.domain.termination import (
    Infinite,
    NOccurrences,
    OneTime,
    RecurrenceTermination,
    RecurrenceType,
    UntilDate,
    build_termination,
)
from ledger_scheduling.domain.types import (
    Occurrence,
    Operation,
    ScheduledSeries,
    SeriesTemplate,
)

__all__ = [
    "DAYS_PER_MONTH",
    "DEFAULT_MAX_COUNT",
    "EMPTY_OVERLAY",
    "UNBOUNDED",
    "ZERO_OFFSET",
    "FrequencyOffset",
    "Infinite",
    "ModificationOverlay",
    "NOccurrences",
    "Occurrence",
    "OccurrenceModification",
    "OccurrenceOverrides",
    "OccurrenceState",
    "OneTime",
    "Operation",
    "OverlayStats",
    "RecurrencePattern",
    "RecurrenceTermination",
    "RecurrenceType",
    "ScheduledSeries",
    "SeriesTemplate",
    "UntilDate",
    "build_termination",
    "clear_all",
    "generate_until",
    "generate_up_to",
    "generate_within_days",
    "is_within_termination",
    "iter_occurrences",
    "mark_completed",
    "mark_deleted",
    "monthly_equivalent_amount",
    "monthly_factor",
    "next_date",
    "normalize_date",
    "nth",
    "occurrence_date",
    "one_time",
    "overlay_stats",
    "parse_frequency",
    "project",
    "reset_to_pending",
    "to_approximate_days",
    "total_occurrences",
    "upsert",
]

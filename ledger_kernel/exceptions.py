"""
Typed Exception Hierarchy for the ledger packages.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the recurrence engine must be able to tell "this series does not
exist" from "you asked for something the series cannot do" without parsing
message strings.  Every error therefore:
  1. Has a TYPED exception class (catch by type, not message)
  2. Has a CODE attribute (machine-readable, API-safe)
  3. Carries structured DATA (not just a message string)

Example:
    try:
        service.record_occurrence(series_id, 12, ...)
    except OccurrenceNotFoundError as e:
        api_response(code=e.code, index=e.index, bound=e.bound)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    LedgerKernelError (base)
    |
    +-- NotFoundError
    |   +-- SeriesNotFoundError
    |   +-- OccurrenceNotFoundError
    |
    +-- InvalidArgumentError
        +-- InvalidFrequencyError
        +-- InvalidTerminationError
        +-- InvalidPatternError
        +-- InvalidTemplateError
        +-- NonRecurringSeriesError
        +-- OccurrenceOutOfRangeError

Nothing in the engine retries or swallows these; they propagate to the
caller as soon as the condition is detected.
"""

from datetime import date
from uuid import UUID


class LedgerKernelError(Exception):
    """
    Base exception for all ledger errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "LEDGER_KERNEL_ERROR"


# Not-found errors


class NotFoundError(LedgerKernelError):
    """Base exception for lookups that found nothing."""

    code: str = "NOT_FOUND"


class SeriesNotFoundError(NotFoundError):
    """Scheduled series with given ID was not found."""

    code: str = "SERIES_NOT_FOUND"

    def __init__(self, series_id: UUID | str):
        self.series_id = str(series_id)
        super().__init__(f"Scheduled series not found: {series_id}")


class OccurrenceNotFoundError(NotFoundError):
    """Occurrence index lies beyond the series' termination bound."""

    code: str = "OCCURRENCE_NOT_FOUND"

    def __init__(
        self,
        index: int,
        bound: int,
        series_id: UUID | str | None = None,
    ):
        self.index = index
        self.bound = bound
        self.series_id = str(series_id) if series_id is not None else None
        super().__init__(
            f"Occurrence {index} does not exist "
            f"(series has {bound} occurrence(s))"
        )


# Invalid-argument errors


class InvalidArgumentError(LedgerKernelError):
    """Base exception for requests the engine refuses to carry out."""

    code: str = "INVALID_ARGUMENT"


class InvalidFrequencyError(InvalidArgumentError):
    """Frequency text is not a complete, non-zero frequency (strict parsing)."""

    code: str = "INVALID_FREQUENCY"

    def __init__(self, text: str | None):
        self.text = text
        super().__init__(f"Invalid frequency: {text!r}")


class InvalidTerminationError(InvalidArgumentError):
    """Termination condition cannot be constructed as requested."""

    code: str = "INVALID_TERMINATION"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid termination: {reason}")


class InvalidPatternError(InvalidArgumentError):
    """Start date, frequency and termination do not form a valid pattern."""

    code: str = "INVALID_PATTERN"

    def __init__(self, reason: str, start_date: date | None = None):
        self.reason = reason
        self.start_date = start_date
        super().__init__(f"Invalid recurrence pattern: {reason}")


class InvalidTemplateError(InvalidArgumentError):
    """Template edit names an unknown field or supplies an unusable value."""

    code: str = "INVALID_TEMPLATE"

    def __init__(self, reason: str, field: str | None = None):
        self.reason = reason
        self.field = field
        super().__init__(f"Invalid series template: {reason}")


class NonRecurringSeriesError(InvalidArgumentError):
    """Occurrence-level operation attempted on a series that does not recur."""

    code: str = "NON_RECURRING_SERIES"

    def __init__(self, series_id: UUID | str, operation: str):
        self.series_id = str(series_id)
        self.operation = operation
        super().__init__(
            f"Cannot {operation} an occurrence of non-recurring series {series_id}"
        )


class OccurrenceOutOfRangeError(InvalidArgumentError):
    """Modification targets an index the series can never produce."""

    code: str = "OCCURRENCE_OUT_OF_RANGE"

    def __init__(
        self,
        index: int,
        total: int,
        series_id: UUID | str | None = None,
    ):
        self.index = index
        self.total = total
        self.series_id = str(series_id) if series_id is not None else None
        if index < 0:
            message = f"Occurrence index must be non-negative, got {index}"
        else:
            message = f"Occurrence index {index} is past the last occurrence ({total} total)"
        super().__init__(message)

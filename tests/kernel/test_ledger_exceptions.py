"""
Tests for the ledger exception hierarchy.

Validates categories, error codes, structured attributes and message
formatting.
"""

from datetime import date
from uuid import uuid4

import pytest

from ledger_kernel.exceptions import (
    InvalidArgumentError,
    InvalidFrequencyError,
    InvalidPatternError,
    InvalidTemplateError,
    InvalidTerminationError,
    LedgerKernelError,
    NonRecurringSeriesError,
    NotFoundError,
    OccurrenceNotFoundError,
    OccurrenceOutOfRangeError,
    SeriesNotFoundError,
)


# =============================================================================
# Exception hierarchy tests
# =============================================================================


class TestExceptionHierarchy:
    @pytest.mark.parametrize("exc_type", [SeriesNotFoundError, OccurrenceNotFoundError])
    def test_not_found_category(self, exc_type):
        assert issubclass(exc_type, NotFoundError)
        assert issubclass(exc_type, LedgerKernelError)

    @pytest.mark.parametrize(
        "exc_type",
        [
            InvalidFrequencyError,
            InvalidTerminationError,
            InvalidPatternError,
            InvalidTemplateError,
            NonRecurringSeriesError,
            OccurrenceOutOfRangeError,
        ],
    )
    def test_invalid_argument_category(self, exc_type):
        assert issubclass(exc_type, InvalidArgumentError)
        assert not issubclass(exc_type, NotFoundError)

    def test_category_codes(self):
        assert LedgerKernelError.code == "LEDGER_KERNEL_ERROR"
        assert NotFoundError.code == "NOT_FOUND"
        assert InvalidArgumentError.code == "INVALID_ARGUMENT"


# =============================================================================
# Exception construction tests
# =============================================================================


class TestSeriesNotFoundError:
    def test_construction(self):
        series_id = uuid4()
        exc = SeriesNotFoundError(series_id)
        assert exc.series_id == str(series_id)
        assert str(series_id) in str(exc)
        assert exc.code == "SERIES_NOT_FOUND"


class TestOccurrenceNotFoundError:
    def test_construction(self):
        exc = OccurrenceNotFoundError(12, 10, "ser-1")
        assert exc.index == 12
        assert exc.bound == 10
        assert exc.series_id == "ser-1"
        assert "12" in str(exc)
        assert exc.code == "OCCURRENCE_NOT_FOUND"

    def test_series_id_optional(self):
        assert OccurrenceNotFoundError(1, 1).series_id is None


class TestInvalidArgumentErrors:
    def test_invalid_frequency(self):
        exc = InvalidFrequencyError("monthly")
        assert exc.text == "monthly"
        assert "'monthly'" in str(exc)
        assert exc.code == "INVALID_FREQUENCY"

    def test_invalid_termination(self):
        exc = InvalidTerminationError("count must be positive, got 0")
        assert exc.reason.startswith("count")
        assert exc.code == "INVALID_TERMINATION"

    def test_invalid_pattern(self):
        exc = InvalidPatternError("bad", date(2024, 1, 1))
        assert exc.start_date == date(2024, 1, 1)
        assert exc.code == "INVALID_PATTERN"

    def test_invalid_template(self):
        exc = InvalidTemplateError("name must not be blank", "name")
        assert exc.field == "name"
        assert str(exc) == "Invalid series template: name must not be blank"
        assert exc.code == "INVALID_TEMPLATE"

    def test_non_recurring(self):
        exc = NonRecurringSeriesError("ser-9", "delete")
        assert exc.operation == "delete"
        assert "delete" in str(exc)
        assert "ser-9" in str(exc)
        assert exc.code == "NON_RECURRING_SERIES"

    def test_out_of_range_past_end(self):
        exc = OccurrenceOutOfRangeError(5, 3)
        assert exc.index == 5
        assert exc.total == 3
        assert "past the last occurrence" in str(exc)

    def test_out_of_range_negative(self):
        exc = OccurrenceOutOfRangeError(-1, -1)
        assert "non-negative" in str(exc)
        assert exc.code == "OCCURRENCE_OUT_OF_RANGE"

"""
Property-based tests for the recurrence engine.

Hypothesis generates frequencies, start dates and overlay edit sequences and
checks the properties that must hold for every input:
- canonical frequency text re-parses to the same offset
- permissive parsing never raises; strict parsing agrees or raises
- stepping a non-zero offset always moves forward
- generated sequences are strictly increasing with consecutive indices
- UntilDate on the last date and NOccurrences(n) generate the same sequence
- overlay operations never mutate their input
- rebasing keeps every later occurrence on its original date
"""

from datetime import date

from hypothesis import given, settings
from hypothesis import strategies as st
from hypothesis.strategies import composite

from ledger_kernel.exceptions import InvalidFrequencyError
from ledger_scheduling.domain.frequency import FrequencyOffset, next_date, parse_frequency
from ledger_scheduling.domain.generator import generate_up_to
from ledger_scheduling.domain.overlay import (
    EMPTY_OVERLAY,
    OccurrenceModification,
    OccurrenceOverrides,
    mark_completed,
    mark_deleted,
    reset_to_pending,
    upsert,
)
from ledger_scheduling.domain.pattern import RecurrencePattern
from ledger_scheduling.domain.projector import project
from ledger_scheduling.domain.revision import rebase_after
from ledger_scheduling.domain.termination import NOccurrences, UntilDate
from ledger_scheduling.domain.types import ScheduledSeries
from tests.factories import make_template

START_DATES = st.dates(min_value=date(2000, 1, 1), max_value=date(2100, 12, 31))


@composite
def offsets(draw, allow_zero=False):
    """Offsets small enough that a hundred steps stay inside the calendar."""
    offset = FrequencyOffset(
        years=draw(st.integers(min_value=0, max_value=3)),
        months=draw(st.integers(min_value=0, max_value=24)),
        days=draw(st.integers(min_value=0, max_value=60)),
    )
    if not allow_zero and offset.is_zero:
        offset = FrequencyOffset(days=1)
    return offset


@composite
def bounded_patterns(draw):
    start = draw(START_DATES)
    count = draw(st.integers(min_value=2, max_value=30))
    return RecurrencePattern(start, draw(offsets()), NOccurrences(count))


# =============================================================================
# Frequency
# =============================================================================


class TestFrequencyProperties:
    @given(offset=offsets(allow_zero=True))
    def test_canonical_text_reparses(self, offset):
        assert parse_frequency(offset.to_string()) == offset

    @given(
        years=st.integers(min_value=0, max_value=99),
        months=st.integers(min_value=0, max_value=99),
        weeks=st.integers(min_value=0, max_value=99),
        days=st.integers(min_value=0, max_value=99),
    )
    def test_weeks_fold_into_days(self, years, months, weeks, days):
        offset = parse_frequency(f"{years}y{months}mo{weeks}w{days}d")
        assert offset == FrequencyOffset(years=years, months=months, days=weeks * 7 + days)

    @given(text=st.text(max_size=30))
    def test_permissive_never_raises(self, text):
        assert isinstance(parse_frequency(text), FrequencyOffset)

    @given(text=st.text(alphabet="0123456789ymowd ", max_size=12))
    def test_strict_agrees_or_raises(self, text):
        try:
            strict = parse_frequency(text, strict=True)
        except InvalidFrequencyError:
            return
        assert strict == parse_frequency(text)
        assert not strict.is_zero

    @given(start=START_DATES, offset=offsets())
    def test_step_moves_forward(self, start, offset):
        assert next_date(start, offset) > start


# =============================================================================
# Generation
# =============================================================================


class TestGenerationProperties:
    @given(pattern=bounded_patterns())
    @settings(max_examples=200)
    def test_strictly_increasing_consecutive(self, pattern):
        slots = generate_up_to(pattern)
        assert [i for i, _ in slots] == list(range(len(slots)))
        dates = [d for _, d in slots]
        assert all(a < b for a, b in zip(dates, dates[1:]))
        assert len(slots) == pattern.termination.count

    @given(pattern=bounded_patterns())
    @settings(max_examples=200)
    def test_until_last_date_matches_count(self, pattern):
        by_count = generate_up_to(pattern)
        by_date = generate_up_to(
            RecurrencePattern(pattern.start_date, pattern.frequency, UntilDate(by_count[-1][1]))
        )
        assert by_date == by_count


# =============================================================================
# Overlay and revisions
# =============================================================================


OVERLAY_OPERATIONS = st.lists(
    st.tuples(
        st.sampled_from(["upsert", "complete", "delete", "reset"]),
        st.integers(min_value=0, max_value=10),
    ),
    max_size=25,
)


def _apply(overlay, operation, index):
    if operation == "upsert":
        return upsert(
            overlay,
            OccurrenceModification(
                index=index, overrides=OccurrenceOverrides(date=date(2024, 1, 1 + index))
            ),
        )
    if operation == "complete":
        return mark_completed(overlay, index)
    if operation == "delete":
        return mark_deleted(overlay, index)
    return reset_to_pending(overlay, index)


class TestOverlayProperties:
    @given(operations=OVERLAY_OPERATIONS)
    def test_operations_never_mutate_input(self, operations):
        overlay = EMPTY_OVERLAY
        for operation, index in operations:
            before = tuple(overlay.modifications)
            revised = _apply(overlay, operation, index)
            assert tuple(overlay.modifications) == before
            overlay = revised
        assert len(EMPTY_OVERLAY) == 0

    @given(operations=OVERLAY_OPERATIONS)
    def test_indices_unique_and_sorted(self, operations):
        overlay = EMPTY_OVERLAY
        for operation, index in operations:
            overlay = _apply(overlay, operation, index)
        indices = [m.index for m in overlay]
        assert indices == sorted(set(indices))

    @given(pattern=bounded_patterns(), data=st.data())
    def test_deleting_removes_exactly_one(self, pattern, data):
        series = ScheduledSeries(template=make_template(), pattern=pattern)
        index = data.draw(st.integers(min_value=0, max_value=pattern.termination.count - 1))
        window = (date(1900, 1, 1), date(9000, 1, 1))

        before = project(series, *window)
        after = project(series.with_overlay(mark_deleted(series.overlay, index)), *window)
        assert [o for o in before if o.index != index] == after


class TestRebaseProperties:
    @given(pattern=bounded_patterns(), data=st.data())
    @settings(max_examples=200)
    def test_later_dates_preserved(self, pattern, data):
        series = ScheduledSeries(template=make_template(), pattern=pattern)
        count = pattern.termination.count
        index = data.draw(st.integers(min_value=0, max_value=count - 2))

        rebased = rebase_after(series, index, series.template)
        original = [d for _, d in generate_up_to(pattern)]
        assert [d for _, d in generate_up_to(rebased.pattern)] == original[index + 1:]
        assert rebased.pattern.termination == NOccurrences(count - index - 1)

"""
Tests for ledger_kernel.db.engine.

Exercises the module-level engine against in-memory SQLite: initialization,
table creation, session_scope commit/rollback semantics and the text-backed
Decimal column type.
"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import func, inspect, select

from ledger_kernel.db.base import DecimalText
from ledger_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from ledger_scheduling.models.series import ScheduledSeriesModel
from ledger_scheduling.services import ScheduledOccurrenceService, SqlAlchemySeriesRepository
from tests.factories import make_series


@pytest.fixture
def sqlite_engine():
    reset_engine()
    engine = init_engine_from_url("sqlite:///:memory:")
    create_tables()
    yield engine
    reset_engine()


class TestEngineLifecycle:
    def test_get_engine_before_init_raises(self):
        reset_engine()
        with pytest.raises(RuntimeError, match="not initialized"):
            get_engine()

    def test_get_session_before_init_raises(self):
        reset_engine()
        with pytest.raises(RuntimeError, match="not initialized"):
            get_session()

    def test_init_logs(self, captured_logs):
        reset_engine()
        init_engine_from_url("sqlite:///:memory:")
        try:
            logs = captured_logs()
            assert any(
                r["message"] == "engine_initialized" and r["dialect"] == "sqlite"
                for r in logs
            )
        finally:
            reset_engine()

    def test_create_tables(self, sqlite_engine):
        tables = inspect(sqlite_engine).get_table_names()
        assert "scheduled_series" in tables
        assert "occurrence_modifications" in tables

    def test_drop_tables(self, sqlite_engine):
        drop_tables()
        assert inspect(sqlite_engine).get_table_names() == []


class TestSessionScope:
    def test_commits_on_success(self, sqlite_engine):
        series = make_series()
        with session_scope() as session:
            session.add(ScheduledSeriesModel.from_dto(series))

        with session_scope() as session:
            count = session.scalar(select(func.count()).select_from(ScheduledSeriesModel))
        assert count == 1

    def test_rolls_back_on_error(self, sqlite_engine, captured_logs):
        with pytest.raises(ValueError):
            with session_scope() as session:
                session.add(ScheduledSeriesModel.from_dto(make_series()))
                session.flush()
                raise ValueError("abort")

        with session_scope() as session:
            count = session.scalar(select(func.count()).select_from(ScheduledSeriesModel))
        assert count == 0
        assert any(r["message"] == "transaction_rolled_back" for r in captured_logs())

    def test_service_changes_survive_the_scope(self, sqlite_engine):
        series = make_series()
        with session_scope() as session:
            service = ScheduledOccurrenceService(SqlAlchemySeriesRepository(session))
            service.create_series(series.template, series.pattern)

        with session_scope() as session:
            service = ScheduledOccurrenceService(SqlAlchemySeriesRepository(session))
            created = service.list_occurrences_until(date(2024, 1, 31))
            service.edit_amount(created[0].series_id, "49.99")

        with session_scope() as session:
            service = ScheduledOccurrenceService(SqlAlchemySeriesRepository(session))
            [occurrence] = service.list_occurrences_until(date(2024, 1, 31))
        assert str(occurrence.amount) == "49.99"


class TestDecimalText:
    @pytest.mark.parametrize("text", ["45.00", "46.5", "-0.10", "1E+3"])
    def test_exponent_survives(self, text):
        column = DecimalText()
        stored = column.process_bind_param(Decimal(text), None)
        assert stored == text
        assert str(column.process_result_value(stored, None)) == text

    def test_none(self):
        column = DecimalText()
        assert column.process_bind_param(None, None) is None
        assert column.process_result_value(None, None) is None

    def test_plain_numbers_stored_as_decimal_text(self):
        assert DecimalText().process_bind_param(12, None) == "12"

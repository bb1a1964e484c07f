"""
Shared fixtures.

Logging is configured once per session at DEBUG so every event reaches
``captured_logs``.  Database fixtures run against an in-memory SQLite
database holding the scheduling tables; series builders live in
tests/factories.py.
"""

import json
import logging
from datetime import date
from io import StringIO

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import ledger_scheduling.models  # noqa: F401  (registers tables)
from ledger_kernel.db.base import Base
from ledger_kernel.domain.clock import DeterministicClock
from ledger_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)

TEST_TODAY = date(2024, 1, 1)


@pytest.fixture(autouse=True, scope="session")
def _structured_logging():
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _fresh_log_context():
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """Return a callable yielding every ``ledger`` record so far as a dict.

    ::

        service.delete_occurrence(series_id, 2)
        assert "occurrence_deleted" in [r["message"] for r in captured_logs()]
    """
    buffer = StringIO()
    capture = logging.StreamHandler(buffer)
    capture.setFormatter(StructuredFormatter())

    ledger_root = get_logger("x").parent
    saved_level = ledger_root.level
    ledger_root.setLevel(logging.DEBUG)
    ledger_root.addHandler(capture)
    try:
        yield lambda: [json.loads(line) for line in buffer.getvalue().splitlines() if line]
    finally:
        ledger_root.removeHandler(capture)
        ledger_root.setLevel(saved_level)


@pytest.fixture
def engine():
    """Single shared in-memory connection so every session sees the same data."""
    sqlite = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(sqlite)
    try:
        yield sqlite
    finally:
        sqlite.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def session(session_factory):
    with session_factory() as sess:
        yield sess
        sess.rollback()


@pytest.fixture
def clock():
    return DeterministicClock(TEST_TODAY)

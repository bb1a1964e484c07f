"""
Process-wide engine and session factory.

``init_engine_from_url`` is the one place a database connection is
configured.  Services only flush; ``session_scope`` owns commit and
rollback.

SQLite URLs get a StaticPool so that an in-memory database is visible to
every session of the process.  Any other URL gets a pre-pinged QueuePool
at READ COMMITTED.

``create_tables`` imports the scheduling models lazily, which keeps this
module free of upward imports at load time.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from ledger_kernel.db.base import Base
from ledger_kernel.logging_config import get_logger

logger = get_logger("db.engine")

_NOT_INITIALIZED = "Engine not initialized. Call init_engine_from_url() first."


@dataclass
class _Binding:
    engine: Engine
    sessions: sessionmaker[Session]


_binding: _Binding | None = None


def _build_engine(
    url: str,
    *,
    echo: bool,
    pool_size: int,
    max_overflow: int,
    pool_pre_ping: bool,
) -> Engine:
    if url.startswith("sqlite"):
        return create_engine(
            url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return create_engine(
        url,
        echo=echo,
        poolclass=QueuePool,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=pool_pre_ping,
        isolation_level="READ COMMITTED",
    )


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 5,
    max_overflow: int = 10,
    pool_pre_ping: bool = True,
) -> Engine:
    """Create the engine for *database_url*, replacing any earlier one.

    The pool arguments only apply to server databases.
    """
    global _binding

    reset_engine()
    engine = _build_engine(
        database_url,
        echo=echo,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=pool_pre_ping,
    )
    _binding = _Binding(engine, sessionmaker(bind=engine, expire_on_commit=False))

    logger.info(
        "engine_initialized",
        extra={"dialect": engine.dialect.name, "echo": echo},
    )
    return engine


def _current() -> _Binding:
    if _binding is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _binding


def get_engine() -> Engine:
    return _current().engine


def get_session_factory() -> sessionmaker[Session]:
    return _current().sessions


def get_session() -> Session:
    """A new, unmanaged session.  The caller commits and closes it."""
    return _current().sessions()


@contextmanager
def session_scope() -> Iterator[Session]:
    """Commit on clean exit, roll back and re-raise on error, always close.

    ::

        with session_scope() as session:
            repository = SqlAlchemySeriesRepository(session)
            ScheduledOccurrenceService(repository).delete_occurrence(series_id, 3)
    """
    with get_session() as session:
        logger.debug("transaction_started")
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            logger.warning("transaction_rolled_back", exc_info=True)
            raise
        logger.debug("transaction_committed")


def create_tables() -> None:
    """Create the scheduling tables on the current engine."""
    import ledger_scheduling.models  # noqa: F401  (registers tables)

    Base.metadata.create_all(get_engine())


def drop_tables() -> None:
    """Drop every table known to ``Base.metadata``.  Destroys data."""
    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """Dispose of the engine and forget it."""
    global _binding

    if _binding is not None:
        _binding.engine.dispose()
    _binding = None

"""
Declarative bases shared by every ORM model.

Rows are keyed by a uuid4 stored as text so the same schema runs on SQLite
and PostgreSQL.  ``Decimal`` annotations default to Numeric(38, 9); columns
whose exact representation must survive a reload use ``DecimalText``.
Floats never reach the database.

Nothing here may import ledger_scheduling or ledger_config.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, ClassVar
from uuid import UUID, uuid4

from sqlalchemy import Date, DateTime, Integer, Numeric, String, func
from sqlalchemy.engine import Dialect
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """``uuid.UUID`` in Python, 36-character text in the database."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Dialect) -> str | None:
        return None if value is None else str(value)

    def process_result_value(self, value: Any, dialect: Dialect) -> UUID | None:
        if value is None or isinstance(value, UUID):
            return value
        return UUID(value)


class DecimalText(TypeDecorator):
    """``Decimal`` stored as its canonical text.

    Unlike Numeric, the value comes back with the exponent it went in with:
    ``Decimal("45.00")`` reads back as ``Decimal("45.00")``, not
    ``Decimal("45.000000000")``.
    """

    impl = String(64)
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Dialect) -> str | None:
        if value is None:
            return None
        return str(value if isinstance(value, Decimal) else Decimal(str(value)))

    def process_result_value(self, value: Any, dialect: Dialect) -> Decimal | None:
        return None if value is None else Decimal(value)


class Base(DeclarativeBase):
    """Root of the model hierarchy; contributes the ``id`` primary key."""

    type_annotation_map: ClassVar[dict[type, Any]] = {
        UUID: UUIDString(),
        Decimal: Numeric(38, 9),
        date: Date,
        datetime: DateTime(timezone=True),
        int: Integer,
    }

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """Adds server-stamped ``created_at`` and ``updated_at`` columns.

    ``updated_at`` is refreshed by the ORM on every UPDATE it issues.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )

"""
Module: inventory_kernel.db.base
Responsibility: Declarative roots for the inventory schema.
Architecture position: Kernel > DB.  Imported by every models/ module;
    imports nothing from the kernel itself.

Column conventions set here:
    - primary keys are uuid4 values kept in a 36-character string column,
      which behaves the same on SQLite and PostgreSQL
    - ``Decimal`` annotations become Numeric(38, 9); costs are never floats
    - ``int`` annotations become BigInteger (signed whole units of stock)
    - ``datetime`` annotations are timezone-aware
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """``uuid.UUID`` on the Python side, its canonical text in the database."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else UUID(value)


class Base(DeclarativeBase):
    """Root of every mapped class; supplies the ``id`` column."""

    type_annotation_map = {
        UUID: UUIDString(),
        Decimal: Numeric(38, 9),
        int: BigInteger,
        datetime: DateTime(timezone=True),
    }

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Abstract base for mutable catalog and document tables.

    ``updated_at`` is refreshed by the database on every UPDATE, including
    the relative ``current_qty = current_qty + :delta`` statements issued
    for stock rows.  Ledger rows are append-only and use ``Base`` instead.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(),
    )


__all__ = ["Base", "TrackedBase", "UUID", "UUIDString"]

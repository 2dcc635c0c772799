"""
Module: inventory_kernel.models.location
Responsibility: Locations (stores, warehouses, online channels) and the
    per-location stock row for each item.
Architecture position: Kernel > Models.  Inherits from TrackedBase.

Invariants enforced:
    - At most one LocationStock row per (location, item kind, item)
      (UNIQUE).  Stock writes are upserts against this key.
    - Thresholds (min_qty, full_qty) are never negative (CHECK).
    - A Product row keeps current_qty == 0; Product stock is derived.
      Enforced by the ORM guard in db/immutability.py.

Failure modes:
    - IntegrityError on a second row for the same key (resolved by the
      ledger service's savepoint retry).
"""

from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import TrackedBase, UUIDString
from inventory_kernel.db.types import LONG_TEXT, NAME, enum_column
from inventory_kernel.domain.values import ItemKind


class Location(TrackedBase):
    """A place that holds stock."""

    __tablename__ = "locations"

    name: Mapped[str] = mapped_column(NAME, nullable=False, unique=True)
    address: Mapped[str | None] = mapped_column(LONG_TEXT, nullable=True)
    is_online: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Location {self.name}>"


class LocationStock(TrackedBase):
    """
    Stock and thresholds of one item at one location.

    current_qty may go negative; the engine reports rather than clamps.
    """

    __tablename__ = "location_stock"

    __table_args__ = (
        UniqueConstraint(
            "location_id", "item_kind", "item_id", name="uq_location_stock_item",
        ),
        CheckConstraint("min_qty >= 0", name="ck_location_stock_min"),
        CheckConstraint("full_qty >= 0", name="ck_location_stock_full"),
        Index("idx_location_stock_item", "item_kind", "item_id"),
    )

    location_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("locations.id"),
        nullable=False,
    )
    item_kind: Mapped[ItemKind] = mapped_column(enum_column(ItemKind), nullable=False)
    item_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    current_qty: Mapped[int] = mapped_column(nullable=False, default=0)
    min_qty: Mapped[int] = mapped_column(nullable=False, default=0)
    full_qty: Mapped[int] = mapped_column(nullable=False, default=0)

    def __repr__(self) -> str:
        return (
            f"<LocationStock {self.item_kind.value}:{self.item_id} "
            f"@{self.location_id} qty={self.current_qty}>"
        )

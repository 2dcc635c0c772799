"""
Module: inventory_kernel.models.transfer
Responsibility: Bulk transfer orders and their item lines.
Architecture position: Kernel > Models.  Inherits from TrackedBase.

Invariants enforced:
    - transfer_number is unique.
    - Orders are never hard-deleted (db/immutability.py); cancellation is
      a status.
    - Item lines snapshot name, SKU and the stock available at the source
      when the line was added.  Snapshots are informational only; the
      movement uses live stock at execution time.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import TrackedBase, UUIDString
from inventory_kernel.db.types import LONG_TEXT, NAME, SHORT_CODE, enum_column
from inventory_kernel.domain.values import ItemKind, TransferStatus


class BulkTransferOrder(TrackedBase):
    """A batch movement of items from one location to another."""

    __tablename__ = "bulk_transfer_orders"

    __table_args__ = (
        Index("idx_transfer_status", "status"),
        Index("idx_transfer_locations", "from_location_id", "to_location_id"),
    )

    transfer_number: Mapped[str] = mapped_column(SHORT_CODE, nullable=False, unique=True)
    from_location_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("locations.id"),
        nullable=False,
    )
    to_location_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("locations.id"),
        nullable=False,
    )
    status: Mapped[TransferStatus] = mapped_column(
        enum_column(TransferStatus),
        nullable=False,
        default=TransferStatus.CREATED,
    )
    transfer_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    shipped_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    delivered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    notes: Mapped[str | None] = mapped_column(LONG_TEXT, nullable=True)
    tracking_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    created_by: Mapped[str | None] = mapped_column(String(100), nullable=True)

    items: Mapped[list["BulkTransferItem"]] = relationship(
        back_populates="transfer",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="BulkTransferItem.created_at",
    )

    @property
    def total_units(self) -> int:
        return sum(item.quantity for item in self.items)

    def __repr__(self) -> str:
        return f"<BulkTransferOrder {self.transfer_number} {self.status.value}>"


class BulkTransferItem(TrackedBase):
    """One item line on a bulk transfer."""

    __tablename__ = "bulk_transfer_items"

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_transfer_item_quantity_positive"),
        Index("idx_transfer_item_transfer", "transfer_id"),
    )

    transfer_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("bulk_transfer_orders.id"),
        nullable=False,
    )
    item_kind: Mapped[ItemKind] = mapped_column(enum_column(ItemKind), nullable=False)
    item_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    name_snapshot: Mapped[str] = mapped_column(NAME, nullable=False)
    sku_snapshot: Mapped[str] = mapped_column(SHORT_CODE, nullable=False)
    quantity: Mapped[int] = mapped_column(nullable=False)
    available_stock_snapshot: Mapped[int] = mapped_column(nullable=False, default=0)
    notes: Mapped[str | None] = mapped_column(LONG_TEXT, nullable=True)

    transfer: Mapped["BulkTransferOrder"] = relationship(back_populates="items")

    def __repr__(self) -> str:
        return f"<BulkTransferItem {self.sku_snapshot} x{self.quantity}>"

"""
Module: inventory_kernel.models.purchase_order
Responsibility: Purchase orders and their lines.  Receiving a line posts
    Purchase ledger entries at the line's destination location.
Architecture position: Kernel > Models.  Inherits from TrackedBase.

Invariants enforced:
    - po_number is unique.
    - quantity_ordered > 0 and quantity_received >= 0 (CHECK).
    - total_cost = quantity_ordered * unit_cost, set by ReceivingService.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import TrackedBase, UUIDString
from inventory_kernel.db.types import LONG_TEXT, MONEY, NAME, SHORT_CODE, enum_column
from inventory_kernel.domain.values import ItemKind, PurchaseOrderStatus


class PurchaseOrder(TrackedBase):
    """An order placed with a supplier."""

    __tablename__ = "purchase_orders"

    __table_args__ = (
        Index("idx_po_status", "status"),
    )

    po_number: Mapped[str] = mapped_column(SHORT_CODE, nullable=False, unique=True)
    po_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[PurchaseOrderStatus] = mapped_column(
        enum_column(PurchaseOrderStatus),
        nullable=False,
        default=PurchaseOrderStatus.CREATED,
    )
    supplier_name: Mapped[str] = mapped_column(NAME, nullable=False)
    supplier_contact: Mapped[str | None] = mapped_column(String(200), nullable=True)
    expected_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    actual_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    notes: Mapped[str | None] = mapped_column(LONG_TEXT, nullable=True)

    items: Mapped[list["PurchaseOrderItem"]] = relationship(
        back_populates="purchase_order",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def total_value(self) -> Decimal:
        return sum((item.total_cost for item in self.items), Decimal("0"))

    @property
    def is_fully_received(self) -> bool:
        return bool(self.items) and all(
            item.quantity_received >= item.quantity_ordered for item in self.items
        )

    def __repr__(self) -> str:
        return f"<PurchaseOrder {self.po_number} {self.status.value}>"


class PurchaseOrderItem(TrackedBase):
    """One ordered item, destined for a specific location."""

    __tablename__ = "purchase_order_items"

    __table_args__ = (
        CheckConstraint("quantity_ordered > 0", name="ck_po_item_ordered_positive"),
        CheckConstraint("quantity_received >= 0", name="ck_po_item_received_nonneg"),
        Index("idx_po_item_po", "purchase_order_id"),
    )

    purchase_order_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("purchase_orders.id"),
        nullable=False,
    )
    item_kind: Mapped[ItemKind] = mapped_column(enum_column(ItemKind), nullable=False)
    item_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    location_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("locations.id"),
        nullable=False,
    )
    quantity_ordered: Mapped[int] = mapped_column(nullable=False)
    quantity_received: Mapped[int] = mapped_column(nullable=False, default=0)
    unit_cost: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    total_cost: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    notes: Mapped[str | None] = mapped_column(LONG_TEXT, nullable=True)

    purchase_order: Mapped["PurchaseOrder"] = relationship(back_populates="items")

    @property
    def quantity_outstanding(self) -> int:
        return max(self.quantity_ordered - self.quantity_received, 0)

    def __repr__(self) -> str:
        return (
            f"<PurchaseOrderItem {self.item_kind.value}:{self.item_id} "
            f"{self.quantity_received}/{self.quantity_ordered}>"
        )

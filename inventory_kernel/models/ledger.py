"""
Module: inventory_kernel.models.ledger
Responsibility: The append-only stock ledger.  One row per stock movement
    (or per audited Product transaction), paired with the LocationStock
    change it explains.
Architecture position: Kernel > Models.  Inherits from Base (no updated_at:
    rows are never updated).  item_id is polymorphic over Components and
    Products and therefore has no foreign key.

Invariants enforced:
    - Append-only: no UPDATE or DELETE (db/immutability.py).
    - seq is unique and strictly increasing in insertion order.
    - For every Component and location, the sum of quantity_delta equals
      LocationStock.current_qty (maintained by LedgerService, checked by
      LedgerSelector.verify_stock_consistency).

Audit relevance:
    reference_type/reference_id tie a row to the transfer, purchase order or
    transformation that caused it.  parent_entry_id links component
    expansion rows to the Product row; reversal_of_id links a transfer
    reversal row to the execution row it undoes.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, UUIDString
from inventory_kernel.db.types import LONG_TEXT, enum_column
from inventory_kernel.domain.values import ItemKind, TransactionKind


class LedgerEntry(Base):
    """
    Immutable record of one stock movement.

    Contract:
        Created only through LedgerService.  quantity_delta is signed:
        positive adds stock, negative consumes it.
    """

    __tablename__ = "ledger_entries"

    __table_args__ = (
        UniqueConstraint("seq", name="uq_ledger_seq"),
        Index("idx_ledger_item_location", "item_kind", "item_id", "location_id"),
        Index("idx_ledger_reference", "reference_type", "reference_id"),
        Index("idx_ledger_occurred_at", "occurred_at"),
    )

    seq: Mapped[int] = mapped_column(nullable=False)

    kind: Mapped[TransactionKind] = mapped_column(
        enum_column(TransactionKind), nullable=False,
    )
    item_kind: Mapped[ItemKind] = mapped_column(enum_column(ItemKind), nullable=False)
    item_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    location_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("locations.id"),
        nullable=False,
    )
    quantity_delta: Mapped[int] = mapped_column(nullable=False)
    note: Mapped[str | None] = mapped_column(LONG_TEXT, nullable=True)
    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # Source document traceability
    reference_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    reference_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    # Component expansion row -> Product row
    parent_entry_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("ledger_entries.id"),
        nullable=True,
    )

    # Reversal row -> row it undoes
    reversal_of_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("ledger_entries.id"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return (
            f"<LedgerEntry #{self.seq} {self.kind.value} "
            f"{self.item_kind.value}:{self.item_id} {self.quantity_delta:+d}>"
        )

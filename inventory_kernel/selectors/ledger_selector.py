"""
Module: inventory_kernel.selectors.ledger_selector
Responsibility: Read access to the stock ledger and verification of the
    ledger-sum invariant against stored stock.
Architecture position: Kernel > Selectors.  Read-only.

Invariants enforced:
    - For every (Component, location): sum(quantity_delta) ==
      LocationStock.current_qty.  verify_stock_consistency() reports every
      pair where this does not hold; an empty result means the store is
      consistent.

Audit relevance:
    entries_for_reference() reconstructs everything a transfer, purchase
    order or transformation did to stock.  expansions_of() shows which
    component rows a Product transaction produced.
"""

from uuid import UUID

from sqlalchemy import func, select

from inventory_kernel.domain.dtos import LedgerEntryDTO, StockDiscrepancy
from inventory_kernel.domain.values import ItemKind, ItemRef, Reference
from inventory_kernel.models.ledger import LedgerEntry
from inventory_kernel.models.location import LocationStock
from inventory_kernel.selectors.base import BaseSelector


def _to_dto(entry: LedgerEntry) -> LedgerEntryDTO:
    return LedgerEntryDTO(
        id=entry.id,
        seq=entry.seq,
        kind=entry.kind,
        item_kind=entry.item_kind,
        item_id=entry.item_id,
        location_id=entry.location_id,
        quantity_delta=entry.quantity_delta,
        note=entry.note,
        occurred_at=entry.occurred_at,
        reference_type=entry.reference_type,
        reference_id=entry.reference_id,
        parent_entry_id=entry.parent_entry_id,
        reversal_of_id=entry.reversal_of_id,
    )


class LedgerSelector(BaseSelector[LedgerEntry]):
    """Read-only ledger queries, ordered by seq."""

    def entries_for(
        self,
        item: ItemRef,
        location_id: UUID | None = None,
    ) -> list[LedgerEntryDTO]:
        stmt = select(LedgerEntry).where(
            LedgerEntry.item_kind == item.kind,
            LedgerEntry.item_id == item.item_id,
        )
        if location_id is not None:
            stmt = stmt.where(LedgerEntry.location_id == location_id)
        entries = self.session.execute(stmt.order_by(LedgerEntry.seq)).scalars()
        return [_to_dto(e) for e in entries]

    def entries_at(self, location_id: UUID) -> list[LedgerEntryDTO]:
        entries = self.session.execute(
            select(LedgerEntry)
            .where(LedgerEntry.location_id == location_id)
            .order_by(LedgerEntry.seq)
        ).scalars()
        return [_to_dto(e) for e in entries]

    def entries_for_reference(self, reference: Reference) -> list[LedgerEntryDTO]:
        entries = self.session.execute(
            select(LedgerEntry)
            .where(
                LedgerEntry.reference_type == reference.reference_type,
                LedgerEntry.reference_id == reference.reference_id,
            )
            .order_by(LedgerEntry.seq)
        ).scalars()
        return [_to_dto(e) for e in entries]

    def expansions_of(self, entry_id: UUID) -> list[LedgerEntryDTO]:
        entries = self.session.execute(
            select(LedgerEntry)
            .where(LedgerEntry.parent_entry_id == entry_id)
            .order_by(LedgerEntry.seq)
        ).scalars()
        return [_to_dto(e) for e in entries]

    def ledger_sum(self, item: ItemRef, location_id: UUID) -> int:
        """Sum of quantity_delta for an item at a location."""
        total = self.session.execute(
            select(func.coalesce(func.sum(LedgerEntry.quantity_delta), 0)).where(
                LedgerEntry.item_kind == item.kind,
                LedgerEntry.item_id == item.item_id,
                LedgerEntry.location_id == location_id,
            )
        ).scalar_one()
        return int(total)

    def count(self) -> int:
        return self.session.execute(select(func.count(LedgerEntry.id))).scalar_one()

    def verify_stock_consistency(
        self,
        location_id: UUID | None = None,
    ) -> list[StockDiscrepancy]:
        """
        Compare stored Component stock with the ledger sums.

        Pairs present on only one side are compared against 0.
        """
        sums_stmt = (
            select(
                LedgerEntry.location_id,
                LedgerEntry.item_id,
                func.sum(LedgerEntry.quantity_delta),
            )
            .where(LedgerEntry.item_kind == ItemKind.COMPONENT)
            .group_by(LedgerEntry.location_id, LedgerEntry.item_id)
        )
        stored_stmt = select(
            LocationStock.location_id,
            LocationStock.item_id,
            LocationStock.current_qty,
        ).where(LocationStock.item_kind == ItemKind.COMPONENT)
        if location_id is not None:
            sums_stmt = sums_stmt.where(LedgerEntry.location_id == location_id)
            stored_stmt = stored_stmt.where(LocationStock.location_id == location_id)

        ledger = {
            (loc, item): int(total)
            for loc, item, total in self.session.execute(sums_stmt).all()
        }
        stored = {
            (loc, item): qty
            for loc, item, qty in self.session.execute(stored_stmt).all()
        }

        discrepancies: list[StockDiscrepancy] = []
        for loc, item in sorted(set(ledger) | set(stored), key=lambda k: (str(k[0]), str(k[1]))):
            stored_qty = stored.get((loc, item), 0)
            ledger_qty = ledger.get((loc, item), 0)
            if stored_qty != ledger_qty:
                discrepancies.append(StockDiscrepancy(
                    location_id=loc,
                    component_id=item,
                    stored_quantity=stored_qty,
                    ledger_quantity=ledger_qty,
                ))
        return discrepancies

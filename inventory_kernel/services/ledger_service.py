"""
LedgerService -- the only write path for stock.

Responsibility:
    Appends ledger entries and applies the matching stock delta in the same
    flush.  Product transactions are recorded for audit and expanded over
    the bill of materials into component movements; Product stock itself is
    never stored.

Architecture position:
    Kernel > Services -- imperative shell.  Called by InventoryEngine.record
    and by TransferService, TransformationService and ReceivingService,
    which all move stock through ``post_component_delta``.

Invariants enforced:
    - Ledger-stock pairing: every change to a Component's current_qty is
      accompanied by exactly one ledger row with the same delta.
    - Relative updates: stock is changed with ``current_qty + :delta``,
      never read-modify-write.
    - Expansion direction: Sale consumes components, Purchase and Return
      restore them, Adjustment follows the sign of the delta.  The magnitude
      is ``required * |delta|``.  Other kinds record the Product row only.
    - Ordering: every row gets the next value of the ``ledger_entry``
      sequence.

Failure modes:
    - InvalidQuantityError / MissingSelectionError -- before any store access.
    - ItemNotFoundError / LocationNotFoundError -- unknown ids.
    - InsufficientStockError -- only when negative stock is disallowed.

Audit relevance:
    Component rows produced by expanding a Product row carry its id in
    parent_entry_id.  Rows caused by a document carry reference_type and
    reference_id.
"""

from uuid import UUID

from sqlalchemy.orm import Session

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.values import (
    ItemKind,
    ItemRef,
    Reference,
    TransactionKind,
    component_direction,
)
from inventory_kernel.exceptions import InsufficientStockError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.catalog import Product
from inventory_kernel.models.ledger import LedgerEntry
from inventory_kernel.models.location import LocationStock
from inventory_kernel.selectors.stock_selector import StockSelector
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.lookups import require_item, require_location
from inventory_kernel.services.sequence_service import SequenceService
from inventory_kernel.services.stock_level_service import upsert_location_stock
from inventory_kernel.services.validation import require_nonzero, require_selection

logger = get_logger("services.ledger")


class LedgerService(BaseService[LedgerEntry]):
    """
    Records ledger entries and keeps component stock in step with them.

    Contract:
        Flush-only.  The caller commits or rolls back, so a Product
        transaction and all of its component rows land together or not
        at all.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        sequences: SequenceService | None = None,
        allow_negative_stock: bool = True,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._sequences = sequences or SequenceService(session)
        self._stock = StockSelector(session)
        self._allow_negative_stock = allow_negative_stock

    def record(
        self,
        kind: TransactionKind,
        item: ItemRef,
        location_id: UUID,
        quantity_delta: int,
        note: str | None = None,
        reference: Reference | None = None,
    ) -> LedgerEntry:
        """
        Record a transaction for a Component or a Product.

        Returns the primary entry: the Component row, or the Product row
        whose component expansions can be listed with
        ``LedgerSelector.expansions_of``.
        """
        require_selection("item", item)
        require_selection("location_id", location_id)
        require_nonzero("quantity_delta", quantity_delta)

        catalog_item = require_item(self.session, item)
        require_location(self.session, location_id)

        if not item.is_product:
            entry = self.post_component_delta(
                kind, item.item_id, location_id, quantity_delta,
                note=note, reference=reference,
            )
            logger.info(
                "ledger_entry_recorded",
                extra={
                    "entry_id": entry.id,
                    "seq": entry.seq,
                    "kind": kind,
                    "item_kind": item.kind,
                    "item_id": item.item_id,
                    "location_id": location_id,
                    "quantity_delta": quantity_delta,
                },
            )
            return entry

        product: Product = catalog_item
        entry = self._append(
            kind, item, location_id, quantity_delta, note=note, reference=reference,
        )
        expansions = self._expand_product(entry, product, kind, location_id, quantity_delta, reference)

        logger.info(
            "ledger_entry_recorded",
            extra={
                "entry_id": entry.id,
                "seq": entry.seq,
                "kind": kind,
                "item_kind": item.kind,
                "item_id": item.item_id,
                "location_id": location_id,
                "quantity_delta": quantity_delta,
                "expansion_count": len(expansions),
            },
        )
        return entry

    def post_component_delta(
        self,
        kind: TransactionKind,
        component_id: UUID,
        location_id: UUID,
        delta: int,
        note: str | None = None,
        reference: Reference | None = None,
        parent_entry_id: UUID | None = None,
        reversal_of_id: UUID | None = None,
    ) -> LedgerEntry:
        """
        Append one Component ledger row and apply the same delta to stock.

        Callers are responsible for having validated the ids.
        """
        require_nonzero("quantity_delta", delta)

        if delta < 0:
            available = self._stock.component_stock(component_id, location_id)
            if available + delta < 0:
                if not self._allow_negative_stock:
                    raise InsufficientStockError(
                        item_id=str(component_id),
                        location_id=str(location_id),
                        available=available,
                        requested=-delta,
                    )
                logger.warning(
                    "stock_driven_negative",
                    extra={
                        "component_id": component_id,
                        "location_id": location_id,
                        "available": available,
                        "quantity_delta": delta,
                    },
                )

        entry = self._append(
            kind,
            ItemRef.component(component_id),
            location_id,
            delta,
            note=note,
            reference=reference,
            parent_entry_id=parent_entry_id,
            reversal_of_id=reversal_of_id,
        )
        upsert_location_stock(
            self.session,
            location_id,
            ItemKind.COMPONENT,
            component_id,
            update_values={"current_qty": LocationStock.current_qty + delta},
            insert_values={"current_qty": delta},
        )
        return entry

    def _expand_product(
        self,
        product_entry: LedgerEntry,
        product: Product,
        kind: TransactionKind,
        location_id: UUID,
        quantity_delta: int,
        reference: Reference | None,
    ) -> list[LedgerEntry]:
        direction = component_direction(kind, quantity_delta)
        if direction == 0:
            logger.debug(
                "product_entry_not_expanded",
                extra={"product_id": product.id, "kind": kind},
            )
            return []
        if not product.bom_lines:
            logger.warning(
                "product_without_bill_of_materials",
                extra={"product_id": product.id, "sku": product.sku},
            )
            return []

        magnitude = abs(quantity_delta)
        expansions = []
        for line in product.bom_lines:
            expansions.append(self.post_component_delta(
                kind,
                line.component_id,
                location_id,
                line.quantity * magnitude * direction,
                note=f"{kind.value.replace('_', ' ').capitalize()} of {product.sku} x{magnitude}",
                reference=reference,
                parent_entry_id=product_entry.id,
            ))
        return expansions

    def _append(
        self,
        kind: TransactionKind,
        item: ItemRef,
        location_id: UUID,
        quantity_delta: int,
        note: str | None = None,
        reference: Reference | None = None,
        parent_entry_id: UUID | None = None,
        reversal_of_id: UUID | None = None,
    ) -> LedgerEntry:
        entry = LedgerEntry(
            seq=self._sequences.next_value(SequenceService.LEDGER_ENTRY),
            kind=kind,
            item_kind=item.kind,
            item_id=item.item_id,
            location_id=location_id,
            quantity_delta=quantity_delta,
            note=note,
            occurred_at=self._clock.now(),
            reference_type=reference.reference_type if reference else None,
            reference_id=reference.reference_id if reference else None,
            parent_entry_id=parent_entry_id,
            reversal_of_id=reversal_of_id,
        )
        self.session.add(entry)
        self.session.flush()
        logger.debug(
            "ledger_row_appended",
            extra={
                "entry_id": entry.id,
                "seq": entry.seq,
                "kind": kind,
                "item_id": item.item_id,
                "quantity_delta": quantity_delta,
            },
        )
        return entry

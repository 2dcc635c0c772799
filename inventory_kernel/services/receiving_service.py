"""
ReceivingService -- purchase orders and receipt of ordered stock.

Responsibility:
    Creates purchase orders and their lines, moves orders through their
    statuses, and posts received quantities into stock.

Architecture position:
    Kernel > Services -- imperative shell.  Receipts move stock through
    ``LedgerService.post_component_delta``.

Invariants enforced:
    - Receipts are incremental: each receipt adds its quantity to the
      line's quantity_received.
    - A Component line posts one Purchase row of ``+quantity`` at the
      line's location.  A Product line posts ``+quantity * required`` for
      each BOM component and no row for the Product itself.
    - Every row references the purchase order.
    - Over-receipt is logged and allowed unless the service was built with
      ``allow_over_receipt=False``.
    - Status changes never move stock.

Failure modes:
    - PurchaseOrderNotFoundError / PurchaseOrderItemNotFoundError.
    - OverReceiptError in strict receiving mode.
    - InvalidQuantityError for non-positive quantities, before any write.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.dtos import PurchaseOrderLine, ReceiptLine
from inventory_kernel.domain.lifecycles import PURCHASE_ORDER_WORKFLOW
from inventory_kernel.domain.values import (
    ItemKind,
    ItemRef,
    PurchaseOrderStatus,
    Reference,
    TransactionKind,
)
from inventory_kernel.domain.workflow import TransitionPolicy
from inventory_kernel.exceptions import (
    OverReceiptError,
    PurchaseOrderItemNotFoundError,
    PurchaseOrderNotFoundError,
)
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.models.catalog import Product
from inventory_kernel.models.ledger import LedgerEntry
from inventory_kernel.models.purchase_order import PurchaseOrder, PurchaseOrderItem
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.ledger_service import LedgerService
from inventory_kernel.services.lookups import require_item, require_location
from inventory_kernel.services.sequence_service import SequenceService
from inventory_kernel.services.validation import (
    require_non_negative,
    require_positive,
    require_selection,
)

logger = get_logger("services.receiving")

_PO_POLICY = TransitionPolicy.from_workflow(PURCHASE_ORDER_WORKFLOW)


class ReceivingService(BaseService[PurchaseOrder]):
    """
    Purchase order lifecycle and receiving.

    Contract:
        Flush-only.  All lines of one ``receive_items`` call land in the
        caller's transaction together.
    """

    def __init__(
        self,
        session: Session,
        ledger: LedgerService,
        clock: Clock | None = None,
        sequences: SequenceService | None = None,
        number_prefix: str = "PO",
        allow_over_receipt: bool = True,
    ):
        super().__init__(session)
        self._ledger = ledger
        self._clock = clock or SystemClock()
        self._sequences = sequences or SequenceService(session)
        self._number_prefix = number_prefix
        self._allow_over_receipt = allow_over_receipt

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def create_purchase_order(
        self,
        supplier_name: str,
        lines: Sequence[PurchaseOrderLine] = (),
        po_date: date | None = None,
        supplier_contact: str | None = None,
        expected_date: date | None = None,
        notes: str | None = None,
    ) -> PurchaseOrder:
        require_selection("supplier_name", supplier_name)
        for line in lines:
            self._validate_line(line)

        now = self._clock.now()
        order = PurchaseOrder(
            po_number=self._sequences.next_document_number(self._number_prefix, now),
            po_date=po_date or now.date(),
            status=PurchaseOrderStatus.CREATED,
            supplier_name=supplier_name,
            supplier_contact=supplier_contact,
            expected_date=expected_date,
            notes=notes,
        )
        self.session.add(order)
        self.session.flush()
        LogContext.set(reference_id=str(order.id))

        for line in lines:
            self._add_line(order, line)

        logger.info(
            "purchase_order_created",
            extra={
                "purchase_order_id": order.id,
                "po_number": order.po_number,
                "supplier_name": supplier_name,
                "line_count": len(order.items),
            },
        )
        return order

    def add_purchase_order_item(
        self,
        purchase_order_id: UUID,
        line: PurchaseOrderLine,
    ) -> PurchaseOrderItem:
        require_selection("purchase_order_id", purchase_order_id)
        self._validate_line(line)
        order = self.get(purchase_order_id)
        item = self._add_line(order, line)
        logger.info(
            "purchase_order_item_added",
            extra={
                "purchase_order_id": order.id,
                "item_kind": item.item_kind,
                "item_id": item.item_id,
                "quantity_ordered": item.quantity_ordered,
            },
        )
        return item

    def get(self, purchase_order_id: UUID) -> PurchaseOrder:
        order = self.session.get(PurchaseOrder, purchase_order_id)
        if order is None:
            raise PurchaseOrderNotFoundError(str(purchase_order_id))
        return order

    def update_status(
        self,
        purchase_order_id: UUID,
        new_status: PurchaseOrderStatus,
        timestamp: datetime | None = None,
    ) -> PurchaseOrder:
        """Change status only; Received and Completed stamp actual_date."""
        require_selection("purchase_order_id", purchase_order_id)
        require_selection("new_status", new_status)
        order = self.get(purchase_order_id)
        current = order.status
        if new_status == current:
            return order

        if not _PO_POLICY.is_allowed(current.value, new_status.value):
            logger.warning(
                "purchase_order_transition_outside_policy",
                extra={
                    "purchase_order_id": order.id,
                    "from_status": current,
                    "to_status": new_status,
                },
            )

        if new_status in (PurchaseOrderStatus.RECEIVED, PurchaseOrderStatus.COMPLETED):
            order.actual_date = timestamp or self._clock.now()
        order.status = new_status
        self.session.flush()

        logger.info(
            "purchase_order_status_changed",
            extra={
                "purchase_order_id": order.id,
                "po_number": order.po_number,
                "from_status": current,
                "to_status": new_status,
            },
        )
        return order

    # ------------------------------------------------------------------
    # Receiving
    # ------------------------------------------------------------------

    def receive_items(
        self,
        purchase_order_id: UUID,
        receipts: Sequence[ReceiptLine],
    ) -> list[LedgerEntry]:
        """
        Receive quantities against lines of one purchase order.

        Returns every Component ledger row posted, in posting order.
        """
        require_selection("purchase_order_id", purchase_order_id)
        for receipt in receipts:
            require_selection("purchase_order_item_id", receipt.purchase_order_item_id)
            require_positive("quantity", receipt.quantity)

        order = self.get(purchase_order_id)
        lines = {item.id: item for item in order.items}
        reference = Reference(Reference.PURCHASE_ORDER, order.id)

        entries: list[LedgerEntry] = []
        for receipt in receipts:
            line = lines.get(receipt.purchase_order_item_id)
            if line is None:
                raise PurchaseOrderItemNotFoundError(
                    str(order.id), str(receipt.purchase_order_item_id),
                )

            received = line.quantity_received + receipt.quantity
            if received > line.quantity_ordered:
                if not self._allow_over_receipt:
                    raise OverReceiptError(str(line.id), line.quantity_ordered, received)
                logger.warning(
                    "purchase_order_over_receipt",
                    extra={
                        "purchase_order_id": order.id,
                        "purchase_order_item_id": line.id,
                        "quantity_ordered": line.quantity_ordered,
                        "quantity_received": received,
                    },
                )

            entries.extend(self._post_receipt(order, line, receipt.quantity, reference))
            line.quantity_received = received

        self.session.flush()
        logger.info(
            "purchase_order_items_received",
            extra={
                "purchase_order_id": order.id,
                "po_number": order.po_number,
                "line_count": len(receipts),
                "ledger_rows": len(entries),
                "fully_received": order.is_fully_received,
            },
        )
        return entries

    def _post_receipt(
        self,
        order: PurchaseOrder,
        line: PurchaseOrderItem,
        quantity: int,
        reference: Reference,
    ) -> list[LedgerEntry]:
        note = f"Received on {order.po_number}"
        if line.item_kind is ItemKind.COMPONENT:
            return [self._ledger.post_component_delta(
                TransactionKind.PURCHASE,
                line.item_id,
                line.location_id,
                quantity,
                note=note,
                reference=reference,
            )]

        product = self.session.get(Product, line.item_id)
        if product is None or not product.bom_lines:
            logger.warning(
                "received_product_without_bill_of_materials",
                extra={"purchase_order_item_id": line.id, "product_id": line.item_id},
            )
            return []
        return [
            self._ledger.post_component_delta(
                TransactionKind.PURCHASE,
                bom_line.component_id,
                line.location_id,
                bom_line.quantity * quantity,
                note=f"{note} ({product.sku} x{quantity})",
                reference=reference,
            )
            for bom_line in product.bom_lines
        ]

    # ------------------------------------------------------------------
    # Lines
    # ------------------------------------------------------------------

    @staticmethod
    def _validate_line(line: PurchaseOrderLine) -> None:
        require_selection("item", line.item)
        require_selection("location_id", line.location_id)
        require_positive("quantity_ordered", line.quantity_ordered)
        if line.unit_cost is not None:
            require_non_negative("unit_cost", line.unit_cost)

    def _add_line(self, order: PurchaseOrder, line: PurchaseOrderLine) -> PurchaseOrderItem:
        catalog_item = require_item(self.session, line.item)
        require_location(self.session, line.location_id)
        unit_cost = line.unit_cost if line.unit_cost is not None else catalog_item.unit_cost
        unit_cost = Decimal(unit_cost)
        item = PurchaseOrderItem(
            item_kind=line.item.kind,
            item_id=line.item.item_id,
            location_id=line.location_id,
            quantity_ordered=line.quantity_ordered,
            quantity_received=0,
            unit_cost=unit_cost,
            total_cost=unit_cost * line.quantity_ordered,
            notes=line.notes,
        )
        order.items.append(item)
        self.session.flush()
        return item


def reorder_lines(suggestions, location_id: UUID) -> list[PurchaseOrderLine]:
    """Purchase order lines for a location's reorder suggestions."""
    return [
        PurchaseOrderLine(
            item=ItemRef(suggestion.item_kind, suggestion.item_id),
            location_id=location_id,
            quantity_ordered=suggestion.quantity,
            unit_cost=suggestion.unit_cost,
        )
        for suggestion in suggestions
    ]

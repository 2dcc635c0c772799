"""
TransferService -- bulk transfer lifecycle and stock movement.

Responsibility:
    Creates bulk transfer orders, adds item lines, and moves orders between
    statuses.  Reaching COMPLETED moves stock from the source to the
    destination; leaving COMPLETED moves it back.

Architecture position:
    Kernel > Services -- imperative shell.  Moves stock exclusively through
    ``LedgerService.post_component_delta``.

Invariants enforced:
    - Execution: for every item, Components move their own quantity and
      Products move ``required * quantity`` of each BOM component.  No
      ledger row is written for the Product itself.
    - Reversal: leaving COMPLETED posts the exact negation of every
      execution row not yet reversed, linked by reversal_of_id, before the
      status changes.  Stock after execute+revert equals stock before.
    - Same-status updates are no-ops (no ledger rows, no timestamps).
    - Transition policy: a transition outside the policy table is logged
      and carried out, unless the policy is enforced, in which case
      TransferTransitionError is raised before anything is written.

Failure modes:
    - TransferNotFoundError, LocationNotFoundError, ItemNotFoundError.
    - InvalidTransferError when source and destination are the same.
    - TransferNotEditableError when adding items to a completed or
      cancelled order.
    - InsufficientStockError from the ledger in strict stock mode.

Audit relevance:
    Every execution and reversal row references the transfer
    (reference_type ``bulk_transfer``), so
    ``LedgerSelector.entries_for_reference`` shows the full history of
    each execute/revert cycle.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, aliased

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.lifecycles import BULK_TRANSFER_WORKFLOW
from inventory_kernel.domain.values import (
    ItemKind,
    ItemRef,
    Reference,
    TransactionKind,
    TransferStatus,
)
from inventory_kernel.domain.workflow import TransitionPolicy
from inventory_kernel.exceptions import (
    InvalidTransferError,
    TransferNotEditableError,
    TransferNotFoundError,
    TransferTransitionError,
)
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.models.catalog import Product
from inventory_kernel.models.ledger import LedgerEntry
from inventory_kernel.models.transfer import BulkTransferItem, BulkTransferOrder
from inventory_kernel.selectors.stock_selector import StockSelector
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.ledger_service import LedgerService
from inventory_kernel.services.lookups import require_item, require_location
from inventory_kernel.services.sequence_service import SequenceService
from inventory_kernel.services.validation import require_positive, require_selection

logger = get_logger("services.transfer")

_NOT_EDITABLE = (TransferStatus.COMPLETED, TransferStatus.CANCELLED)


class TransferService(BaseService[BulkTransferOrder]):
    """
    Bulk transfer state machine.

    Contract:
        Flush-only; the caller owns the transaction, so a status change and
        the stock movement it triggers commit together.
    """

    def __init__(
        self,
        session: Session,
        ledger: LedgerService,
        clock: Clock | None = None,
        policy: TransitionPolicy | None = None,
        sequences: SequenceService | None = None,
        number_prefix: str = "TRF",
    ):
        super().__init__(session)
        self._ledger = ledger
        self._clock = clock or SystemClock()
        self._policy = policy or TransitionPolicy.from_workflow(BULK_TRANSFER_WORKFLOW)
        self._sequences = sequences or SequenceService(session)
        self._number_prefix = number_prefix
        self._stock = StockSelector(session)

    # ------------------------------------------------------------------
    # Orders and items
    # ------------------------------------------------------------------

    def create_transfer_order(
        self,
        from_location_id: UUID,
        to_location_id: UUID,
        notes: str | None = None,
        tracking_number: str | None = None,
        created_by: str | None = None,
        transfer_date: datetime | None = None,
    ) -> BulkTransferOrder:
        require_selection("from_location_id", from_location_id)
        require_selection("to_location_id", to_location_id)
        if from_location_id == to_location_id:
            raise InvalidTransferError("source and destination locations must differ")

        require_location(self.session, from_location_id)
        require_location(self.session, to_location_id)

        now = self._clock.now()
        transfer = BulkTransferOrder(
            transfer_number=self._sequences.next_document_number(self._number_prefix, now),
            from_location_id=from_location_id,
            to_location_id=to_location_id,
            status=TransferStatus.CREATED,
            transfer_date=transfer_date or now,
            notes=notes,
            tracking_number=tracking_number,
            created_by=created_by,
        )
        self.session.add(transfer)
        self.session.flush()
        LogContext.set(reference_id=str(transfer.id))

        logger.info(
            "transfer_created",
            extra={
                "transfer_id": transfer.id,
                "transfer_number": transfer.transfer_number,
                "from_location_id": from_location_id,
                "to_location_id": to_location_id,
            },
        )
        return transfer

    def add_transfer_item(
        self,
        transfer_id: UUID,
        item: ItemRef,
        quantity: int,
        notes: str | None = None,
    ) -> BulkTransferItem:
        require_selection("transfer_id", transfer_id)
        require_selection("item", item)
        require_positive("quantity", quantity)

        transfer = self.get(transfer_id)
        if transfer.status in _NOT_EDITABLE:
            raise TransferNotEditableError(str(transfer.id), transfer.status.value)

        catalog_item = require_item(self.session, item)
        line = BulkTransferItem(
            item_kind=item.kind,
            item_id=item.item_id,
            name_snapshot=catalog_item.name,
            sku_snapshot=catalog_item.sku,
            quantity=quantity,
            available_stock_snapshot=self._stock.stock_of(item, transfer.from_location_id),
            notes=notes,
        )
        transfer.items.append(line)
        self.session.flush()

        logger.info(
            "transfer_item_added",
            extra={
                "transfer_id": transfer.id,
                "item_kind": item.kind,
                "item_id": item.item_id,
                "quantity": quantity,
                "available_stock": line.available_stock_snapshot,
            },
        )
        return line

    def get(self, transfer_id: UUID) -> BulkTransferOrder:
        transfer = self.session.get(BulkTransferOrder, transfer_id)
        if transfer is None:
            raise TransferNotFoundError(str(transfer_id))
        return transfer

    # ------------------------------------------------------------------
    # Status changes
    # ------------------------------------------------------------------

    def update_status(
        self,
        transfer_id: UUID,
        new_status: TransferStatus,
        timestamp: datetime | None = None,
    ) -> BulkTransferOrder:
        """
        Move a transfer to ``new_status``.

        Entering COMPLETED executes the movement; leaving COMPLETED
        reverses it first.  ``timestamp`` stamps the milestone
        (shipped/delivered/completed/cancelled); defaults to the clock.
        """
        require_selection("transfer_id", transfer_id)
        require_selection("new_status", new_status)

        transfer = self.get(transfer_id)
        current = transfer.status

        if new_status == current:
            logger.info(
                "transfer_status_unchanged",
                extra={"transfer_id": transfer.id, "status": current},
            )
            return transfer

        if not self._policy.is_allowed(current.value, new_status.value):
            if self._policy.enforce:
                logger.warning(
                    "transfer_transition_rejected",
                    extra={
                        "transfer_id": transfer.id,
                        "from_status": current,
                        "to_status": new_status,
                    },
                )
                raise TransferTransitionError(str(transfer.id), current.value, new_status.value)
            logger.warning(
                "transfer_transition_outside_policy",
                extra={
                    "transfer_id": transfer.id,
                    "from_status": current,
                    "to_status": new_status,
                },
            )

        when = timestamp or self._clock.now()

        if current is TransferStatus.COMPLETED:
            self._reverse_movement(transfer)
            transfer.completed_at = None
        if current is TransferStatus.CANCELLED:
            transfer.cancelled_at = None

        if new_status is TransferStatus.COMPLETED:
            self._execute_movement(transfer)
            transfer.completed_at = when
        elif new_status is TransferStatus.IN_TRANSIT:
            transfer.shipped_at = when
        elif new_status is TransferStatus.DELIVERED:
            transfer.delivered_at = when
        elif new_status is TransferStatus.CANCELLED:
            transfer.cancelled_at = when

        transfer.status = new_status
        self.session.flush()

        logger.info(
            "transfer_status_changed",
            extra={
                "transfer_id": transfer.id,
                "transfer_number": transfer.transfer_number,
                "from_status": current,
                "to_status": new_status,
            },
        )
        return transfer

    def execute(self, transfer_id: UUID) -> BulkTransferOrder:
        """Shorthand for ``update_status(transfer_id, COMPLETED)``."""
        return self.update_status(transfer_id, TransferStatus.COMPLETED)

    # ------------------------------------------------------------------
    # Stock movement
    # ------------------------------------------------------------------

    def _component_movements(self, item: BulkTransferItem) -> list[tuple[UUID, int]]:
        if item.item_kind is ItemKind.COMPONENT:
            return [(item.item_id, item.quantity)]
        product = self.session.get(Product, item.item_id)
        if product is None or not product.bom_lines:
            logger.warning(
                "transfer_item_moves_nothing",
                extra={"item_id": item.item_id, "sku": item.sku_snapshot},
            )
            return []
        return [(line.component_id, line.quantity * item.quantity) for line in product.bom_lines]

    def _execute_movement(self, transfer: BulkTransferOrder) -> list[LedgerEntry]:
        source = require_location(self.session, transfer.from_location_id)
        destination = require_location(self.session, transfer.to_location_id)
        reference = Reference(Reference.BULK_TRANSFER, transfer.id)

        entries: list[LedgerEntry] = []
        for item in transfer.items:
            label = f"{item.sku_snapshot} x{item.quantity}"
            for component_id, quantity in self._component_movements(item):
                entries.append(self._ledger.post_component_delta(
                    TransactionKind.TRANSFER,
                    component_id,
                    source.id,
                    -quantity,
                    note=f"Transfer {transfer.transfer_number} to {destination.name} ({label})",
                    reference=reference,
                ))
                entries.append(self._ledger.post_component_delta(
                    TransactionKind.TRANSFER,
                    component_id,
                    destination.id,
                    quantity,
                    note=f"Transfer {transfer.transfer_number} from {source.name} ({label})",
                    reference=reference,
                ))

        logger.info(
            "transfer_executed",
            extra={
                "transfer_id": transfer.id,
                "transfer_number": transfer.transfer_number,
                "item_count": len(transfer.items),
                "ledger_rows": len(entries),
            },
        )
        return entries

    def _reverse_movement(self, transfer: BulkTransferOrder) -> list[LedgerEntry]:
        reversal = aliased(LedgerEntry)
        already_reversed = select(reversal.reversal_of_id).where(
            reversal.reversal_of_id.is_not(None),
            reversal.reference_type == Reference.BULK_TRANSFER,
            reversal.reference_id == transfer.id,
        )
        originals = self.session.execute(
            select(LedgerEntry)
            .where(
                LedgerEntry.reference_type == Reference.BULK_TRANSFER,
                LedgerEntry.reference_id == transfer.id,
                LedgerEntry.reversal_of_id.is_(None),
                LedgerEntry.id.not_in(already_reversed),
            )
            .order_by(LedgerEntry.seq)
        ).scalars().all()

        reference = Reference(Reference.BULK_TRANSFER, transfer.id)
        entries = [
            self._ledger.post_component_delta(
                TransactionKind.TRANSFER,
                original.item_id,
                original.location_id,
                -original.quantity_delta,
                note=f"Reversal of transfer {transfer.transfer_number}",
                reference=reference,
                reversal_of_id=original.id,
            )
            for original in originals
        ]

        logger.info(
            "transfer_reversed",
            extra={
                "transfer_id": transfer.id,
                "transfer_number": transfer.transfer_number,
                "ledger_rows": len(entries),
            },
        )
        return entries

"""
inventory_services.engine -- the programmatic surface of the stock engine.

Responsibility:
    Builds every kernel service once per session, wires them to the
    configuration, and runs each mutating call as one unit of work: commit
    on success, rollback and re-raise on any failure.

Architecture position:
    Services -- above ``inventory_kernel`` and ``inventory_config``.  The
    only layer that calls ``session.commit()``.

Invariants enforced:
    - Atomicity: a ledger row and its expansions, a transfer execution or
      reversal together with the status change, a transformation, and all
      lines of a receipt each commit together or not at all.
    - Store errors are re-raised unchanged after rollback; nothing is
      retried.

Usage:
    from inventory_services import open_engine

    with open_engine() as inventory:
        inventory.record(TransactionKind.SALE, ItemRef.product(pid), loc_id, -1)
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date, datetime
from typing import Iterator, Sequence
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from inventory_config.bridges import transition_policy_from_config
from inventory_config.schema import EngineConfig, NumberingConfig, StockPolicyConfig
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.dtos import (
    LedgerEntryDTO,
    PurchaseOrderLine,
    ReceiptLine,
    ReorderSuggestion,
    StockAlert,
    StockDiscrepancy,
    StockLevel,
)
from inventory_kernel.domain.lifecycles import BULK_TRANSFER_WORKFLOW
from inventory_kernel.domain.values import (
    ComponentQuantity,
    ItemRef,
    PurchaseOrderStatus,
    TransactionKind,
    TransferStatus,
    TransformationType,
)
from inventory_kernel.domain.workflow import TransitionPolicy
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.models.catalog import BillOfMaterialsLine
from inventory_kernel.models.ledger import LedgerEntry
from inventory_kernel.models.purchase_order import PurchaseOrder, PurchaseOrderItem
from inventory_kernel.models.transfer import BulkTransferItem, BulkTransferOrder
from inventory_kernel.models.transformation import ComponentTransformation
from inventory_kernel.selectors.ledger_selector import LedgerSelector
from inventory_kernel.selectors.stock_selector import StockSelector
from inventory_kernel.services.bom_service import BillOfMaterialsService
from inventory_kernel.services.ledger_service import LedgerService
from inventory_kernel.services.receiving_service import ReceivingService, reorder_lines
from inventory_kernel.services.sequence_service import SequenceService
from inventory_kernel.services.stock_level_service import StockLevelService
from inventory_kernel.services.transfer_service import TransferService
from inventory_kernel.services.transformation_service import TransformationService
from inventory_kernel.services.validation import require_selection

logger = get_logger("services.engine")


class InventoryEngine:
    """Stock engine bound to one session.

    Contract:
        Receives a Session and an optional EngineConfig and Clock.  Each
        mutating method commits; each read method only queries.

    Non-goals:
        - Does NOT own the Session lifecycle (no close).
    """

    def __init__(
        self,
        session: Session,
        config: EngineConfig | None = None,
        clock: Clock | None = None,
        actor_id: str | None = None,
    ) -> None:
        self._session = session
        self._clock = clock or SystemClock()
        self._actor_id = actor_id

        if config is not None:
            policy = transition_policy_from_config(config)
            stock_policy = config.stock_policy
            numbering = config.numbering
        else:
            policy = TransitionPolicy.from_workflow(BULK_TRANSFER_WORKFLOW)
            stock_policy = StockPolicyConfig()
            numbering = NumberingConfig()

        self._sequences = SequenceService(session)
        self._stock = StockSelector(session)
        self._ledger_selector = LedgerSelector(session)
        self._ledger = LedgerService(
            session,
            clock=self._clock,
            sequences=self._sequences,
            allow_negative_stock=stock_policy.allow_negative_stock,
        )
        self._stock_levels = StockLevelService(session)
        self._bom = BillOfMaterialsService(session)
        self._transfers = TransferService(
            session,
            self._ledger,
            clock=self._clock,
            policy=policy,
            sequences=self._sequences,
            number_prefix=numbering.transfer_prefix,
        )
        self._transformations = TransformationService(session, self._ledger, clock=self._clock)
        self._receiving = ReceivingService(
            session,
            self._ledger,
            clock=self._clock,
            sequences=self._sequences,
            number_prefix=numbering.purchase_order_prefix,
            allow_over_receipt=stock_policy.allow_over_receipt,
        )

    @property
    def session(self) -> Session:
        return self._session

    @contextmanager
    def _unit_of_work(
        self, operation: str, reference_id: UUID | None = None,
    ) -> Iterator[None]:
        with LogContext.bind(
            correlation_id=str(uuid4()),
            actor_id=self._actor_id,
            operation=operation,
            reference_id=reference_id,
        ):
            try:
                yield
                self._session.commit()
            except Exception:
                self._session.rollback()
                logger.warning("operation_rolled_back", exc_info=True)
                raise

    # =========================================================================
    # Stock resolver
    # =========================================================================

    def get_component_stock(self, component_id: UUID, location_id: UUID) -> int:
        require_selection("component_id", component_id)
        require_selection("location_id", location_id)
        return self._stock.component_stock(component_id, location_id)

    def get_product_stock(self, product_id: UUID, location_id: UUID) -> int:
        require_selection("product_id", product_id)
        require_selection("location_id", location_id)
        return self._stock.product_stock(product_id, location_id)

    def get_stock(self, item: ItemRef, location_id: UUID) -> int:
        require_selection("item", item)
        require_selection("location_id", location_id)
        return self._stock.stock_of(item, location_id)

    def get_minimum_stock(self, item: ItemRef, location_id: UUID) -> int:
        require_selection("item", item)
        require_selection("location_id", location_id)
        return self._stock.minimum_stock(item, location_id)

    def set_minimum_stock(self, item: ItemRef, location_id: UUID, value: int) -> None:
        with self._unit_of_work("set_minimum_stock"):
            self._stock_levels.set_minimum_stock(item, location_id, value)

    def get_full_stock(self, item: ItemRef, location_id: UUID) -> int:
        require_selection("item", item)
        require_selection("location_id", location_id)
        return self._stock.full_stock(item, location_id)

    def set_full_stock(self, item: ItemRef, location_id: UUID, value: int) -> None:
        with self._unit_of_work("set_full_stock"):
            self._stock_levels.set_full_stock(item, location_id, value)

    def stock_levels(self, location_id: UUID) -> list[StockLevel]:
        require_selection("location_id", location_id)
        return self._stock.stock_levels(location_id)

    def low_stock_alerts(self, location_id: UUID | None = None) -> list[StockAlert]:
        return self._stock.low_stock_alerts(location_id)

    def reorder_suggestions(self, location_id: UUID) -> list[ReorderSuggestion]:
        require_selection("location_id", location_id)
        return self._stock.reorder_suggestions(location_id)

    # =========================================================================
    # Ledger
    # =========================================================================

    def record(
        self,
        kind: TransactionKind,
        item: ItemRef,
        location_id: UUID,
        quantity_delta: int,
        note: str | None = None,
    ) -> LedgerEntry:
        with self._unit_of_work("record"):
            return self._ledger.record(kind, item, location_id, quantity_delta, note=note)

    def ledger_entries(
        self,
        item: ItemRef,
        location_id: UUID | None = None,
    ) -> list[LedgerEntryDTO]:
        require_selection("item", item)
        return self._ledger_selector.entries_for(item, location_id)

    def verify_ledger_consistency(
        self,
        location_id: UUID | None = None,
    ) -> list[StockDiscrepancy]:
        discrepancies = self._ledger_selector.verify_stock_consistency(location_id)
        if discrepancies:
            logger.warning(
                "ledger_stock_discrepancies_found",
                extra={"discrepancy_count": len(discrepancies)},
            )
        return discrepancies

    # =========================================================================
    # Bill of materials
    # =========================================================================

    def get_bill_of_materials(self, product_id: UUID) -> list[ComponentQuantity]:
        require_selection("product_id", product_id)
        return self._stock.bill_of_materials(product_id)

    def replace_bill_of_materials(
        self,
        product_id: UUID,
        lines: Sequence[ComponentQuantity],
    ) -> list[BillOfMaterialsLine]:
        with self._unit_of_work("replace_bill_of_materials"):
            return self._bom.replace(product_id, lines)

    # =========================================================================
    # Bulk transfers
    # =========================================================================

    def create_bulk_transfer_order(
        self,
        from_location_id: UUID,
        to_location_id: UUID,
        notes: str | None = None,
        tracking_number: str | None = None,
        created_by: str | None = None,
        transfer_date: datetime | None = None,
    ) -> BulkTransferOrder:
        with self._unit_of_work("create_bulk_transfer_order"):
            return self._transfers.create_transfer_order(
                from_location_id,
                to_location_id,
                notes=notes,
                tracking_number=tracking_number,
                created_by=created_by or self._actor_id,
                transfer_date=transfer_date,
            )

    def add_bulk_transfer_item(
        self,
        transfer_id: UUID,
        item: ItemRef,
        quantity: int,
        notes: str | None = None,
    ) -> BulkTransferItem:
        with self._unit_of_work("add_bulk_transfer_item", transfer_id):
            return self._transfers.add_transfer_item(transfer_id, item, quantity, notes=notes)

    def update_transfer_status(
        self,
        transfer_id: UUID,
        new_status: TransferStatus,
        timestamp: datetime | None = None,
    ) -> BulkTransferOrder:
        with self._unit_of_work("update_transfer_status", transfer_id):
            return self._transfers.update_status(transfer_id, new_status, timestamp)

    def execute_transfer(self, transfer_id: UUID) -> BulkTransferOrder:
        with self._unit_of_work("execute_transfer", transfer_id):
            return self._transfers.execute(transfer_id)

    def get_bulk_transfer_order(self, transfer_id: UUID) -> BulkTransferOrder:
        return self._transfers.get(transfer_id)

    # =========================================================================
    # Purchase orders
    # =========================================================================

    def create_purchase_order(
        self,
        supplier_name: str,
        lines: Sequence[PurchaseOrderLine] = (),
        po_date: date | None = None,
        supplier_contact: str | None = None,
        expected_date: date | None = None,
        notes: str | None = None,
    ) -> PurchaseOrder:
        with self._unit_of_work("create_purchase_order"):
            return self._receiving.create_purchase_order(
                supplier_name,
                lines,
                po_date=po_date,
                supplier_contact=supplier_contact,
                expected_date=expected_date,
                notes=notes,
            )

    def add_purchase_order_item(
        self,
        purchase_order_id: UUID,
        line: PurchaseOrderLine,
    ) -> PurchaseOrderItem:
        with self._unit_of_work("add_purchase_order_item", purchase_order_id):
            return self._receiving.add_purchase_order_item(purchase_order_id, line)

    def update_purchase_order_status(
        self,
        purchase_order_id: UUID,
        new_status: PurchaseOrderStatus,
        timestamp: datetime | None = None,
    ) -> PurchaseOrder:
        with self._unit_of_work("update_purchase_order_status", purchase_order_id):
            return self._receiving.update_status(purchase_order_id, new_status, timestamp)

    def receive_purchase_order_items(
        self,
        purchase_order_id: UUID,
        receipts: Sequence[ReceiptLine],
    ) -> list[LedgerEntry]:
        with self._unit_of_work("receive_purchase_order_items", purchase_order_id):
            return self._receiving.receive_items(purchase_order_id, receipts)

    def create_reorder_purchase_order(
        self,
        location_id: UUID,
        supplier_name: str,
        notes: str | None = None,
    ) -> PurchaseOrder | None:
        """Purchase order for every low-stock item at a location, or None."""
        require_selection("location_id", location_id)
        with self._unit_of_work("create_reorder_purchase_order"):
            suggestions = self._stock.reorder_suggestions(location_id)
            if not suggestions:
                logger.info(
                    "reorder_not_needed",
                    extra={"location_id": location_id},
                )
                return None
            return self._receiving.create_purchase_order(
                supplier_name,
                reorder_lines(suggestions, location_id),
                notes=notes,
            )

    def get_purchase_order(self, purchase_order_id: UUID) -> PurchaseOrder:
        return self._receiving.get(purchase_order_id)

    # =========================================================================
    # Transformations
    # =========================================================================

    def execute_transformation(
        self,
        transformation_type: TransformationType,
        sources: Sequence[ComponentQuantity],
        results: Sequence[ComponentQuantity],
        location_id: UUID,
        notes: str | None = None,
    ) -> ComponentTransformation:
        with self._unit_of_work("execute_transformation"):
            return self._transformations.execute(
                transformation_type,
                list(sources),
                list(results),
                location_id,
                notes=notes,
            )

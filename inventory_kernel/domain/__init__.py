"""
Pure domain layer.

Value objects, DTOs, workflow definitions and the clock abstraction, with
NO dependencies on the ORM, the database, or I/O.
"""

from inventory_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from inventory_kernel.domain.dtos import (
    LedgerEntryDTO,
    PurchaseOrderLine,
    ReceiptLine,
    ReorderSuggestion,
    StockAlert,
    StockDiscrepancy,
    StockLevel,
)
from inventory_kernel.domain.lifecycles import (
    BULK_TRANSFER_WORKFLOW,
    PURCHASE_ORDER_WORKFLOW,
)
from inventory_kernel.domain.values import (
    ComponentQuantity,
    ItemKind,
    ItemRef,
    PurchaseOrderStatus,
    Reference,
    TransactionKind,
    TransferStatus,
    TransformationType,
    component_direction,
)
from inventory_kernel.domain.workflow import Transition, TransitionPolicy, Workflow

__all__ = [
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "ItemKind",
    "ItemRef",
    "ComponentQuantity",
    "Reference",
    "TransactionKind",
    "TransferStatus",
    "PurchaseOrderStatus",
    "TransformationType",
    "component_direction",
    "StockLevel",
    "StockAlert",
    "ReorderSuggestion",
    "LedgerEntryDTO",
    "StockDiscrepancy",
    "ReceiptLine",
    "PurchaseOrderLine",
    "Transition",
    "Workflow",
    "TransitionPolicy",
    "BULK_TRANSFER_WORKFLOW",
    "PURCHASE_ORDER_WORKFLOW",
]

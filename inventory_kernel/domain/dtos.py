"""
DTOs -- read-side data transfer objects.

Responsibility:
    Immutable results returned by selectors (stock levels, alerts, reorder
    suggestions, ledger consistency findings) and the request lines accepted
    by receiving.  Selectors return these instead of ORM instances.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from inventory_kernel.domain.values import ItemKind, ItemRef, TransactionKind


@dataclass(frozen=True)
class StockLevel:
    """Current stock and thresholds of one item at one location.

    For Products ``current`` is derived from component stock.
    """

    location_id: UUID
    item_kind: ItemKind
    item_id: UUID
    sku: str
    name: str
    current: int
    minimum: int
    full: int

    @property
    def is_below_minimum(self) -> bool:
        return self.minimum > 0 and self.current < self.minimum

    @property
    def shortfall_to_full(self) -> int:
        return max(self.full - self.current, 0)


@dataclass(frozen=True)
class StockAlert:
    """An item whose stock has fallen below its minimum at a location."""

    location_id: UUID
    location_name: str
    item_kind: ItemKind
    item_id: UUID
    sku: str
    name: str
    current: int
    minimum: int


@dataclass(frozen=True)
class ReorderSuggestion:
    """Quantity to order to bring a low-stock item back to its minimum."""

    location_id: UUID
    item_kind: ItemKind
    item_id: UUID
    sku: str
    name: str
    quantity: int
    unit_cost: Decimal

    @property
    def total_cost(self) -> Decimal:
        return self.unit_cost * self.quantity


@dataclass(frozen=True)
class LedgerEntryDTO:
    """One immutable ledger row."""

    id: UUID
    seq: int
    kind: TransactionKind
    item_kind: ItemKind
    item_id: UUID
    location_id: UUID
    quantity_delta: int
    note: str | None
    occurred_at: datetime
    reference_type: str | None
    reference_id: UUID | None
    parent_entry_id: UUID | None
    reversal_of_id: UUID | None


@dataclass(frozen=True)
class StockDiscrepancy:
    """A stock row whose quantity disagrees with the sum of its ledger rows."""

    location_id: UUID
    component_id: UUID
    stored_quantity: int
    ledger_quantity: int

    @property
    def difference(self) -> int:
        return self.stored_quantity - self.ledger_quantity


@dataclass(frozen=True)
class ReceiptLine:
    """Quantity received in one receiving operation against a PO line."""

    purchase_order_item_id: UUID
    quantity: int


@dataclass(frozen=True)
class PurchaseOrderLine:
    """An item to order for delivery to a location.

    ``unit_cost`` defaults to the catalog item's unit cost when omitted.
    """

    item: ItemRef
    location_id: UUID
    quantity_ordered: int
    unit_cost: Decimal | None = None
    notes: str | None = None

"""
Value objects for the inventory kernel.

Responsibility:
    Enumerations and small immutable value types shared by models,
    selectors and services: what kind of item a row refers to, what kind
    of business transaction produced a ledger entry, and the lifecycle
    status sets of transfers and purchase orders.

Architecture position:
    Kernel > Domain -- pure value objects.  ZERO I/O.  No imports from
    ``db/``, ``services/``, ``selectors/``, or outer layers.

Invariants enforced:
    - ItemRef always names both the kind and the id, so a bare UUID can
      never be interpreted as the wrong kind of item.
    - ComponentQuantity carries whole units; sign and range checks are
      done by the services that accept them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID


class ItemKind(str, Enum):
    """Whether a stock row or ledger entry refers to a Component or a Product."""

    COMPONENT = "component"
    PRODUCT = "product"


class TransactionKind(str, Enum):
    """Business reason for a ledger entry."""

    SALE = "sale"
    PURCHASE = "purchase"
    TRANSFER = "transfer"
    ADJUSTMENT = "adjustment"
    RETURN = "return"
    BREAK_DOWN = "break_down"
    DAMAGE = "damage"
    EXPIRY = "expiry"


class TransferStatus(str, Enum):
    """Lifecycle status of a bulk transfer order."""

    CREATED = "created"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PurchaseOrderStatus(str, Enum):
    """Lifecycle status of a purchase order."""

    CREATED = "created"
    ORDERED = "ordered"
    SHIPPED = "shipped"
    RECEIVED = "received"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TransformationType(str, Enum):
    """Break one component into several, or combine several into one."""

    BREAK_DOWN = "break_down"
    COMBINE = "combine"


# Multiplier applied to each bill-of-materials line when a Product
# transaction is expanded into component movements.
_EXPANSION_DIRECTION: dict[TransactionKind, int] = {
    TransactionKind.SALE: -1,
    TransactionKind.PURCHASE: 1,
    TransactionKind.RETURN: 1,
}


def component_direction(kind: TransactionKind, quantity_delta: int) -> int:
    """
    Direction of component movement when a Product transaction is expanded.

    Sale consumes components, Purchase and Return restore them, Adjustment
    follows the sign of the delta.  Every other kind returns 0: the Product
    row is recorded but no component moves.
    """
    if kind is TransactionKind.ADJUSTMENT:
        return 1 if quantity_delta > 0 else -1
    return _EXPANSION_DIRECTION.get(kind, 0)


@dataclass(frozen=True)
class ItemRef:
    """Reference to a Component or Product by kind and id."""

    kind: ItemKind
    item_id: UUID

    @classmethod
    def component(cls, item_id: UUID) -> ItemRef:
        return cls(ItemKind.COMPONENT, item_id)

    @classmethod
    def product(cls, item_id: UUID) -> ItemRef:
        return cls(ItemKind.PRODUCT, item_id)

    @property
    def is_product(self) -> bool:
        return self.kind is ItemKind.PRODUCT


@dataclass(frozen=True)
class ComponentQuantity:
    """A component and a whole-unit quantity (BOM line, transformation line)."""

    component_id: UUID
    quantity: int


@dataclass(frozen=True)
class Reference:
    """The document that caused a ledger entry (transfer, PO, transformation)."""

    reference_type: str
    reference_id: UUID

    BULK_TRANSFER = "bulk_transfer"
    PURCHASE_ORDER = "purchase_order"
    TRANSFORMATION = "component_transformation"

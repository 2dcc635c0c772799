"""ORM models for the inventory kernel."""

from inventory_kernel.models.catalog import (
    BillOfMaterialsLine,
    CatalogItemMixin,
    Component,
    Product,
)
from inventory_kernel.models.ledger import LedgerEntry
from inventory_kernel.models.location import Location, LocationStock
from inventory_kernel.models.purchase_order import PurchaseOrder, PurchaseOrderItem
from inventory_kernel.models.sequence import SequenceCounter
from inventory_kernel.models.transfer import BulkTransferItem, BulkTransferOrder
from inventory_kernel.models.transformation import (
    ComponentTransformation,
    TransformationLine,
)

__all__ = [
    "CatalogItemMixin",
    "Component",
    "Product",
    "BillOfMaterialsLine",
    "Location",
    "LocationStock",
    "LedgerEntry",
    "BulkTransferOrder",
    "BulkTransferItem",
    "PurchaseOrder",
    "PurchaseOrderItem",
    "ComponentTransformation",
    "TransformationLine",
    "SequenceCounter",
]

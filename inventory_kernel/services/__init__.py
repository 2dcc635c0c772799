"""Services for the inventory kernel (write side)."""

from inventory_kernel.services.bom_service import BillOfMaterialsService
from inventory_kernel.services.ledger_service import LedgerService
from inventory_kernel.services.receiving_service import ReceivingService, reorder_lines
from inventory_kernel.services.sequence_service import SequenceService
from inventory_kernel.services.stock_level_service import (
    StockLevelService,
    upsert_location_stock,
)
from inventory_kernel.services.transfer_service import TransferService
from inventory_kernel.services.transformation_service import TransformationService

__all__ = [
    "BillOfMaterialsService",
    "LedgerService",
    "ReceivingService",
    "SequenceService",
    "StockLevelService",
    "TransferService",
    "TransformationService",
    "reorder_lines",
    "upsert_location_stock",
]

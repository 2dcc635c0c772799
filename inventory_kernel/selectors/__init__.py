"""Selectors for the inventory kernel (read side)."""

from inventory_kernel.selectors.ledger_selector import LedgerSelector
from inventory_kernel.selectors.stock_selector import StockSelector, derive_product_stock

__all__ = [
    "LedgerSelector",
    "StockSelector",
    "derive_product_stock",
]

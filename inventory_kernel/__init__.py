"""
Inventory Kernel

A ledger-backed, multi-location stock engine with:
- Append-only stock ledger paired with every stock change
- Derived (never stored) stock for composite products
- Bulk transfers with reversible execution
- Component transformations (break down / combine)
- Purchase-order receiving
"""

__version__ = "0.1.0"

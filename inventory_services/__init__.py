"""Service layer: the InventoryEngine facade and its bootstrap."""

from inventory_services.bootstrap import build_session_factory, open_engine
from inventory_services.engine import InventoryEngine

__all__ = [
    "InventoryEngine",
    "build_session_factory",
    "open_engine",
]

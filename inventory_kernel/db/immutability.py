"""
ORM-Level Integrity Guards.

===============================================================================
WHY THIS EXISTS
===============================================================================

The stock ledger is the explanation for every stock number the engine
reports.  If a ledger row could be edited or deleted, a stock quantity
could no longer be traced back to the movements that produced it.

SQLAlchemy fires events before INSERT/UPDATE/DELETE operations reach the
database.  We register listeners that intercept these events:

    session.flush()
         |
         v
    [before_insert / before_update / before_delete]
         |
         +--> guard raises ImmutabilityViolationError / DerivedStockViolationError
         |
         v
    SQL sent to database (only if checks pass)

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity              | Rule                                   | Why
--------------------|----------------------------------------|--------------------------
LedgerEntry         | No UPDATE of any column, no DELETE     | Ledger is append-only
BulkTransferOrder   | No DELETE                              | Cancellation is a status
LocationStock       | Product rows keep current_qty == 0     | Product stock is derived

Relative Core UPDATEs issued by LedgerService (``current_qty + :delta``)
bypass mapper events by design of SQLAlchemy; they only ever target
Component rows.

===============================================================================
USAGE
===============================================================================

Called once at startup (inventory_services.bootstrap does this):

    from inventory_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
"""

from sqlalchemy import event
from sqlalchemy import inspect as sa_inspect

from inventory_kernel.exceptions import (
    DerivedStockViolationError,
    ImmutabilityViolationError,
)
from inventory_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _changed_columns(target) -> list[str]:
    """Column attributes with pending changes (collections excluded)."""
    state = sa_inspect(target)
    return [
        attr.key
        for attr in state.mapper.column_attrs
        if state.attrs[attr.key].history.has_changes()
    ]


def _check_ledger_entry_immutability(mapper, connection, target):
    """
    Prevent updates to LedgerEntry records.

    before_update also fires for objects that are dirty only through a
    relationship collection, so only real column changes are rejected.
    """
    changed = _changed_columns(target)
    if not changed:
        return

    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "LedgerEntry",
            "entity_id": str(target.id),
            "attempted_operation": "UPDATE",
            "fields": changed,
        },
    )
    raise ImmutabilityViolationError(
        entity_type="LedgerEntry",
        entity_id=str(target.id),
        reason=f"Ledger entries are append-only (attempted change: {', '.join(changed)})",
    )


def _check_ledger_entry_delete(mapper, connection, target):
    """Prevent deletion of LedgerEntry records."""
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "LedgerEntry",
            "entity_id": str(target.id),
            "attempted_operation": "DELETE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="LedgerEntry",
        entity_id=str(target.id),
        reason="Ledger entries cannot be deleted",
    )


def _check_transfer_delete(mapper, connection, target):
    """Bulk transfer orders are cancelled, never deleted."""
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "BulkTransferOrder",
            "entity_id": str(target.id),
            "attempted_operation": "DELETE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="BulkTransferOrder",
        entity_id=str(target.id),
        reason="Bulk transfer orders cannot be deleted; cancel them instead",
    )


def _check_product_stock(mapper, connection, target):
    """A Product's stock row may hold thresholds only."""
    from inventory_kernel.domain.values import ItemKind

    if target.item_kind is not ItemKind.PRODUCT:
        return
    if not target.current_qty:
        return

    logger.error(
        "derived_stock_violation_blocked",
        extra={
            "product_id": str(target.item_id),
            "location_id": str(target.location_id),
            "current_qty": target.current_qty,
        },
    )
    raise DerivedStockViolationError(
        product_id=str(target.item_id),
        quantity=target.current_qty,
    )


def _listeners():
    from inventory_kernel.models.ledger import LedgerEntry
    from inventory_kernel.models.location import LocationStock
    from inventory_kernel.models.transfer import BulkTransferOrder

    return (
        (LedgerEntry, "before_update", _check_ledger_entry_immutability),
        (LedgerEntry, "before_delete", _check_ledger_entry_delete),
        (BulkTransferOrder, "before_delete", _check_transfer_delete),
        (LocationStock, "before_insert", _check_product_stock),
        (LocationStock, "before_update", _check_product_stock),
    )


def register_immutability_listeners() -> None:
    """
    Register all integrity guard event listeners (idempotent).

    Call this after all models are imported but before any database
    operations begin.
    """
    for target, event_name, listener_fn in _listeners():
        if not event.contains(target, event_name, listener_fn):
            event.listen(target, event_name, listener_fn)


def unregister_immutability_listeners() -> None:
    """
    Remove integrity guard event listeners.

    WARNING: Only use this in tests where you need to intentionally
    violate the rules to verify detection.
    """
    for target, event_name, listener_fn in _listeners():
        if event.contains(target, event_name, listener_fn):
            event.remove(target, event_name, listener_fn)

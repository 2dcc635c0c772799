"""
StockLevelService -- location stock row upserts and threshold settings.

Responsibility:
    Owns the write path for ``location_stock`` rows.  Stock quantities are
    only ever changed through ``upsert_location_stock`` with a *relative*
    update, so two concurrent movements of the same item never overwrite
    each other.  Minimum and full thresholds are set here.

Invariants enforced:
    - One row per (location, item kind, item).  A missing row is inserted
      inside a SAVEPOINT; if a concurrent insert wins, the update is
      retried against the row it created.
    - Setting a threshold never touches current_qty.
    - Thresholds are >= 0.

Failure modes:
    - InvalidQuantityError / MissingSelectionError on bad input.
    - ItemNotFoundError / LocationNotFoundError on unknown ids.
    - IntegrityError from the INSERT is re-raised when the retried update
      still finds no row, so the caller's ledger row rolls back with it.
"""

from typing import Any
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from inventory_kernel.domain.values import ItemKind, ItemRef
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.location import LocationStock
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.lookups import require_item, require_location
from inventory_kernel.services.validation import require_non_negative, require_selection

logger = get_logger("services.stock_level")


def upsert_location_stock(
    session: Session,
    location_id: UUID,
    item_kind: ItemKind,
    item_id: UUID,
    update_values: dict[str, Any],
    insert_values: dict[str, Any],
) -> None:
    """
    UPDATE the stock row for the key, or INSERT it if it does not exist.

    ``update_values`` may hold SQL expressions such as
    ``LocationStock.current_qty + delta``; ``insert_values`` are the
    literal column values for a brand-new row.
    """
    stmt = (
        update(LocationStock)
        .where(
            LocationStock.location_id == location_id,
            LocationStock.item_kind == item_kind,
            LocationStock.item_id == item_id,
        )
        .values(**update_values)
        .execution_options(synchronize_session=False)
    )
    if session.execute(stmt).rowcount:
        return

    savepoint = session.begin_nested()
    try:
        session.add(LocationStock(
            location_id=location_id,
            item_kind=item_kind,
            item_id=item_id,
            **insert_values,
        ))
        session.flush()
        savepoint.commit()
    except IntegrityError:
        savepoint.rollback()
        # A concurrent transaction may have created the row first
        if not session.execute(stmt).rowcount:
            raise
        logger.debug(
            "location_stock_insert_race_retry",
            extra={"location_id": location_id, "item_id": item_id},
        )


class StockLevelService(BaseService[LocationStock]):
    """Minimum and full thresholds per item and location."""

    def set_minimum_stock(self, item: ItemRef, location_id: UUID, value: int) -> None:
        self._set_threshold(item, location_id, "min_qty", value)

    def set_full_stock(self, item: ItemRef, location_id: UUID, value: int) -> None:
        self._set_threshold(item, location_id, "full_qty", value)

    def _set_threshold(
        self, item: ItemRef, location_id: UUID, column: str, value: int,
    ) -> None:
        require_selection("item", item)
        require_selection("location_id", location_id)
        require_non_negative(column, value)

        require_item(self.session, item)
        require_location(self.session, location_id)

        upsert_location_stock(
            self.session,
            location_id,
            item.kind,
            item.item_id,
            update_values={column: value},
            insert_values={"current_qty": 0, column: value},
        )
        logger.info(
            "stock_threshold_set",
            extra={
                "item_kind": item.kind,
                "item_id": item.item_id,
                "location_id": location_id,
                "threshold": column,
                "value": value,
            },
        )


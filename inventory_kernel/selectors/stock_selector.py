"""
Module: inventory_kernel.selectors.stock_selector
Responsibility: The Stock Resolver.  Answers "how many units of X are at
    location L" for Components (stored) and Products (derived), plus
    thresholds, low-stock alerts and reorder suggestions.
Architecture position: Kernel > Selectors.  Read-only.

Invariants enforced:
    - Bottleneck rule: Product stock at L is the minimum over its BOM lines
      of floor(component stock at L / required quantity).  A missing
      component stock row counts as 0.  An empty BOM yields 0.
    - Stock is reported as stored, including negative values; nothing is
      clamped.  Floor division keeps a negative component stock negative
      in the derived Product figure.

Failure modes:
    - None beyond store errors.  Unknown ids resolve to 0 stock.
"""

from decimal import Decimal
from typing import Iterable
from uuid import UUID

from sqlalchemy import and_, func, select

from inventory_kernel.domain.dtos import ReorderSuggestion, StockAlert, StockLevel
from inventory_kernel.domain.values import ComponentQuantity, ItemKind, ItemRef
from inventory_kernel.models.catalog import BillOfMaterialsLine, Component, Product
from inventory_kernel.models.location import Location, LocationStock
from inventory_kernel.selectors.base import BaseSelector


def derive_product_stock(
    requirements: Iterable[tuple[int, int]],
) -> int:
    """
    Apply the bottleneck rule to ``(required, available)`` pairs.

    >>> derive_product_stock([(2, 10), (1, 3)])
    3
    >>> derive_product_stock([])
    0
    """
    buildable = [available // required for required, available in requirements]
    if not buildable:
        return 0
    return min(buildable)


class StockSelector(BaseSelector[LocationStock]):
    """
    Read-only stock queries.

    Contract:
        Every method is side-effect free and returns plain ints or DTOs.
    """

    # ------------------------------------------------------------------
    # Stock quantities
    # ------------------------------------------------------------------

    def component_stock(self, component_id: UUID, location_id: UUID) -> int:
        """Stored stock of a Component at a location (0 if no row)."""
        value = self.session.execute(
            select(LocationStock.current_qty).where(
                LocationStock.location_id == location_id,
                LocationStock.item_kind == ItemKind.COMPONENT,
                LocationStock.item_id == component_id,
            )
        ).scalar_one_or_none()
        return value or 0

    def product_stock(self, product_id: UUID, location_id: UUID) -> int:
        """Derived stock of a Product at a location (bottleneck rule)."""
        rows = self.session.execute(
            select(
                BillOfMaterialsLine.quantity,
                func.coalesce(LocationStock.current_qty, 0),
            )
            .select_from(BillOfMaterialsLine)
            .outerjoin(
                LocationStock,
                and_(
                    LocationStock.item_id == BillOfMaterialsLine.component_id,
                    LocationStock.item_kind == ItemKind.COMPONENT,
                    LocationStock.location_id == location_id,
                ),
            )
            .where(BillOfMaterialsLine.product_id == product_id)
        ).all()
        return derive_product_stock((required, available) for required, available in rows)

    def stock_of(self, item: ItemRef, location_id: UUID) -> int:
        """Stock of either kind of item."""
        if item.is_product:
            return self.product_stock(item.item_id, location_id)
        return self.component_stock(item.item_id, location_id)

    def component_stock_map(self, location_id: UUID) -> dict[UUID, int]:
        """All stored Component stock at a location, keyed by component id."""
        rows = self.session.execute(
            select(LocationStock.item_id, LocationStock.current_qty).where(
                LocationStock.location_id == location_id,
                LocationStock.item_kind == ItemKind.COMPONENT,
            )
        ).all()
        return {item_id: qty for item_id, qty in rows}

    # ------------------------------------------------------------------
    # Thresholds
    # ------------------------------------------------------------------

    def thresholds(self, item: ItemRef, location_id: UUID) -> tuple[int, int]:
        """``(minimum, full)`` for an item at a location; ``(0, 0)`` if unset."""
        row = self.session.execute(
            select(LocationStock.min_qty, LocationStock.full_qty).where(
                LocationStock.location_id == location_id,
                LocationStock.item_kind == item.kind,
                LocationStock.item_id == item.item_id,
            )
        ).one_or_none()
        if row is None:
            return 0, 0
        return row[0], row[1]

    def minimum_stock(self, item: ItemRef, location_id: UUID) -> int:
        return self.thresholds(item, location_id)[0]

    def full_stock(self, item: ItemRef, location_id: UUID) -> int:
        return self.thresholds(item, location_id)[1]

    # ------------------------------------------------------------------
    # Bill of materials
    # ------------------------------------------------------------------

    def bill_of_materials(self, product_id: UUID) -> list[ComponentQuantity]:
        rows = self.session.execute(
            select(BillOfMaterialsLine.component_id, BillOfMaterialsLine.quantity)
            .where(BillOfMaterialsLine.product_id == product_id)
            .order_by(BillOfMaterialsLine.created_at, BillOfMaterialsLine.component_id)
        ).all()
        return [ComponentQuantity(component_id=c, quantity=q) for c, q in rows]

    # ------------------------------------------------------------------
    # Overviews
    # ------------------------------------------------------------------

    def stock_levels(self, location_id: UUID) -> list[StockLevel]:
        """
        One StockLevel per active Component and Product at a location.

        Component stock is loaded once; Product stock is derived from it
        in memory.
        """
        stock_map = self.component_stock_map(location_id)
        threshold_rows = self.session.execute(
            select(
                LocationStock.item_kind,
                LocationStock.item_id,
                LocationStock.min_qty,
                LocationStock.full_qty,
            ).where(LocationStock.location_id == location_id)
        ).all()
        thresholds = {(kind, item_id): (mn, full) for kind, item_id, mn, full in threshold_rows}

        levels: list[StockLevel] = []
        components = self.session.execute(
            select(Component).where(Component.is_active.is_(True)).order_by(Component.sku)
        ).scalars()
        for component in components:
            mn, full = thresholds.get((ItemKind.COMPONENT, component.id), (0, 0))
            levels.append(StockLevel(
                location_id=location_id,
                item_kind=ItemKind.COMPONENT,
                item_id=component.id,
                sku=component.sku,
                name=component.name,
                current=stock_map.get(component.id, 0),
                minimum=mn,
                full=full,
            ))

        products = self.session.execute(
            select(Product).where(Product.is_active.is_(True)).order_by(Product.sku)
        ).scalars()
        for product in products:
            mn, full = thresholds.get((ItemKind.PRODUCT, product.id), (0, 0))
            current = derive_product_stock(
                (line.quantity, stock_map.get(line.component_id, 0))
                for line in product.bom_lines
            )
            levels.append(StockLevel(
                location_id=location_id,
                item_kind=ItemKind.PRODUCT,
                item_id=product.id,
                sku=product.sku,
                name=product.name,
                current=current,
                minimum=mn,
                full=full,
            ))
        return levels

    def low_stock_alerts(self, location_id: UUID | None = None) -> list[StockAlert]:
        """Items whose stock is below a positive minimum, per location."""
        stmt = (
            select(LocationStock, Location.name)
            .join(Location, Location.id == LocationStock.location_id)
            .where(LocationStock.min_qty > 0)
            .order_by(Location.name)
            # relative UPDATEs bypass the identity map
            .execution_options(populate_existing=True)
        )
        if location_id is not None:
            stmt = stmt.where(LocationStock.location_id == location_id)

        alerts: list[StockAlert] = []
        for row, location_name in self.session.execute(stmt).all():
            catalog_item = self._catalog_item(row.item_kind, row.item_id)
            if catalog_item is None or not catalog_item.is_active:
                continue
            if row.item_kind is ItemKind.PRODUCT:
                current = self.product_stock(row.item_id, row.location_id)
            else:
                current = row.current_qty
            if current >= row.min_qty:
                continue
            alerts.append(StockAlert(
                location_id=row.location_id,
                location_name=location_name,
                item_kind=row.item_kind,
                item_id=row.item_id,
                sku=catalog_item.sku,
                name=catalog_item.name,
                current=current,
                minimum=row.min_qty,
            ))
        return alerts

    def reorder_suggestions(self, location_id: UUID) -> list[ReorderSuggestion]:
        """
        What to order for every low-stock item at a location.

        Quantity is ``max(minimum - current, 1)``.  Products are priced at
        their unit price, Components at their unit cost.
        """
        suggestions: list[ReorderSuggestion] = []
        for alert in self.low_stock_alerts(location_id):
            catalog_item = self._catalog_item(alert.item_kind, alert.item_id)
            if alert.item_kind is ItemKind.PRODUCT:
                unit_cost = catalog_item.unit_price
            else:
                unit_cost = catalog_item.unit_cost
            suggestions.append(ReorderSuggestion(
                location_id=alert.location_id,
                item_kind=alert.item_kind,
                item_id=alert.item_id,
                sku=alert.sku,
                name=alert.name,
                quantity=max(alert.minimum - alert.current, 1),
                unit_cost=unit_cost if unit_cost is not None else Decimal("0"),
            ))
        return suggestions

    def _catalog_item(self, kind: ItemKind, item_id: UUID) -> Component | Product | None:
        model = Product if kind is ItemKind.PRODUCT else Component
        return self.session.get(model, item_id)

"""Load-or-raise helpers for catalog items and locations."""

from uuid import UUID

from sqlalchemy.orm import Session

from inventory_kernel.domain.values import ItemRef
from inventory_kernel.exceptions import ItemNotFoundError, LocationNotFoundError
from inventory_kernel.models.catalog import Component, Product
from inventory_kernel.models.location import Location


def require_item(session: Session, item: ItemRef) -> Component | Product:
    model = Product if item.is_product else Component
    catalog_item = session.get(model, item.item_id)
    if catalog_item is None:
        raise ItemNotFoundError(item.kind.value, str(item.item_id))
    return catalog_item


def require_component(session: Session, component_id: UUID) -> Component:
    return require_item(session, ItemRef.component(component_id))


def require_location(session: Session, location_id: UUID) -> Location:
    location = session.get(Location, location_id)
    if location is None:
        raise LocationNotFoundError(str(location_id))
    return location

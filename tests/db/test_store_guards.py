"""
Store-level tests: ORM guards, sequence counters, stock row upserts and
the session scope helper.
"""

from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from inventory_kernel.db.engine import (
    create_engine_from_url,
    create_session_factory,
    create_tables,
    session_scope,
)
from inventory_kernel.domain.values import ItemKind, ItemRef, TransactionKind
from inventory_kernel.exceptions import DerivedStockViolationError, InvalidQuantityError
from inventory_kernel.models.catalog import Component
from inventory_kernel.models.location import Location, LocationStock
from inventory_kernel.services.stock_level_service import upsert_location_stock


class TestProductStockGuard:
    def test_product_row_with_quantity_rejected(self, session, make_product, location_a):
        product = make_product()
        session.add(LocationStock(
            location_id=location_a.id,
            item_kind=ItemKind.PRODUCT,
            item_id=product.id,
            current_qty=5,
        ))

        with pytest.raises(DerivedStockViolationError):
            session.flush()
        session.rollback()

    def test_product_row_with_thresholds_only_allowed(
        self, inventory, make_product, location_a,
    ):
        product = make_product()
        inventory.set_minimum_stock(ItemRef.product(product.id), location_a.id, 3)
        assert inventory.get_minimum_stock(ItemRef.product(product.id), location_a.id) == 3


class TestLocationStockRows:
    def test_one_row_per_location_and_item(
        self, session, inventory, make_component, location_a,
    ):
        component = make_component()
        item = ItemRef.component(component.id)
        inventory.set_full_stock(item, location_a.id, 30)
        inventory.record(TransactionKind.PURCHASE, item, location_a.id, 4)
        inventory.set_minimum_stock(item, location_a.id, 2)

        rows = session.execute(
            select(LocationStock)
            .where(LocationStock.item_id == component.id)
            .execution_options(populate_existing=True)
        ).scalars().all()
        assert [(r.current_qty, r.min_qty, r.full_qty) for r in rows] == [(4, 2, 30)]

    def test_threshold_must_not_be_negative(self, inventory, make_component, location_a):
        with pytest.raises(InvalidQuantityError):
            inventory.set_minimum_stock(
                ItemRef.component(make_component().id), location_a.id, -1,
            )

    def test_failed_insert_with_no_row_to_retry_raises(
        self, session, make_component, location_a,
    ):
        component = make_component()

        with pytest.raises(IntegrityError):
            upsert_location_stock(
                session,
                location_a.id,
                ItemKind.COMPONENT,
                component.id,
                update_values={"min_qty": 1},
                insert_values={"current_qty": 0, "min_qty": -1},
            )

        assert session.execute(
            select(func.count(LocationStock.id)).where(LocationStock.item_id == component.id)
        ).scalar_one() == 0


class TestSequenceService:
    def test_values_strictly_increase(self, sequence_service):
        values = [sequence_service.next_value("pick-list") for _ in range(3)]
        assert values == [1, 2, 3]
        assert sequence_service.current_value("pick-list") == 3

    def test_unused_sequence_has_no_value(self, sequence_service):
        assert sequence_service.current_value("never-used") is None

    def test_document_numbers_count_per_prefix(self, sequence_service):
        on = datetime(2024, 3, 9, 15, 30)
        assert sequence_service.next_document_number("TRF", on) == "TRF-20240309-00001"
        assert sequence_service.next_document_number("PO", on) == "PO-20240309-00001"
        assert sequence_service.next_document_number("TRF", on) == "TRF-20240309-00002"


class TestSessionScope:
    @pytest.fixture
    def factory(self):
        engine = create_engine_from_url("sqlite://")
        create_tables(engine)
        yield create_session_factory(engine)
        engine.dispose()

    def test_commits_on_success(self, factory):
        with session_scope(factory) as session:
            session.add(Location(name="Pop-up"))

        with session_scope(factory) as session:
            assert session.execute(select(func.count(Location.id))).scalar_one() == 1

    def test_rolls_back_and_reraises(self, factory):
        with pytest.raises(RuntimeError):
            with session_scope(factory) as session:
                session.add(Component(
                    sku="LOST", name="Lost", unit_cost=Decimal("1"), unit_price=Decimal("2"),
                ))
                session.flush()
                raise RuntimeError("abort")

        with session_scope(factory) as session:
            assert session.execute(select(func.count(Component.id))).scalar_one() == 0

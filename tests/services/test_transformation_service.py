"""
Transformation engine tests: break down and combine.
"""

from uuid import uuid4

import pytest
from sqlalchemy import func, select

from inventory_kernel.domain.values import (
    ComponentQuantity,
    Reference,
    TransactionKind,
    TransformationType,
)
from inventory_kernel.exceptions import (
    InsufficientStockError,
    InvalidQuantityError,
    InvalidTransformationError,
    ItemNotFoundError,
)
from inventory_kernel.models.transformation import ComponentTransformation
from inventory_kernel.selectors.ledger_selector import LedgerSelector


@pytest.fixture
def ledger_selector(session) -> LedgerSelector:
    return LedgerSelector(session)


class TestBreakDown:
    def test_one_source_into_two_results(
        self, inventory, ledger_selector, make_component, location_a, stock_up,
    ):
        source = make_component(sku="STRAND")
        x = make_component()
        y = make_component()
        stock_up(source, location_a, 5)

        transformation = inventory.execute_transformation(
            TransformationType.BREAK_DOWN,
            [ComponentQuantity(source.id, 1)],
            [ComponentQuantity(x.id, 2), ComponentQuantity(y.id, 1)],
            location_a.id,
        )

        rows = ledger_selector.entries_for_reference(
            Reference(Reference.TRANSFORMATION, transformation.id)
        )
        assert len(rows) == 3
        assert [(r.item_id, r.kind, r.quantity_delta) for r in rows] == [
            (source.id, TransactionKind.BREAK_DOWN, -1),
            (x.id, TransactionKind.ADJUSTMENT, 2),
            (y.id, TransactionKind.ADJUSTMENT, 1),
        ]
        assert rows[0].note == "Break down transformation: STRAND x1"
        assert inventory.get_component_stock(source.id, location_a.id) == 4
        assert inventory.get_component_stock(x.id, location_a.id) == 2
        assert inventory.get_component_stock(y.id, location_a.id) == 1

    def test_audit_row_lists_inputs_and_outputs(self, inventory, make_component, location_a):
        source = make_component()
        x = make_component()

        transformation = inventory.execute_transformation(
            TransformationType.BREAK_DOWN,
            [ComponentQuantity(source.id, 3)],
            [ComponentQuantity(x.id, 6)],
            location_a.id,
            notes="cut chain",
        )

        assert transformation.transformation_type is TransformationType.BREAK_DOWN
        assert [(l.component_id, l.quantity) for l in transformation.inputs] == [(source.id, 3)]
        assert [(l.component_id, l.quantity) for l in transformation.outputs] == [(x.id, 6)]
        assert transformation.notes == "cut chain"

    def test_requires_exactly_one_source(self, inventory, make_component, location_a):
        a, b, x = make_component(), make_component(), make_component()
        with pytest.raises(InvalidTransformationError):
            inventory.execute_transformation(
                TransformationType.BREAK_DOWN,
                [ComponentQuantity(a.id, 1), ComponentQuantity(b.id, 1)],
                [ComponentQuantity(x.id, 1)],
                location_a.id,
            )

    def test_requires_a_result(self, inventory, make_component, location_a):
        with pytest.raises(InvalidTransformationError):
            inventory.execute_transformation(
                TransformationType.BREAK_DOWN,
                [ComponentQuantity(make_component().id, 1)],
                [],
                location_a.id,
            )


class TestCombine:
    def test_many_sources_into_one_result(
        self, inventory, ledger_selector, make_component, location_a, stock_up,
    ):
        a = make_component()
        b = make_component()
        result = make_component()
        stock_up(a, location_a, 4)
        stock_up(b, location_a, 4)

        transformation = inventory.execute_transformation(
            TransformationType.COMBINE,
            [ComponentQuantity(a.id, 2), ComponentQuantity(b.id, 1)],
            [ComponentQuantity(result.id, 1)],
            location_a.id,
        )

        rows = ledger_selector.entries_for_reference(
            Reference(Reference.TRANSFORMATION, transformation.id)
        )
        assert all(r.kind is TransactionKind.ADJUSTMENT for r in rows)
        assert [r.quantity_delta for r in rows] == [-2, -1, 1]
        assert inventory.get_component_stock(a.id, location_a.id) == 2
        assert inventory.get_component_stock(b.id, location_a.id) == 3
        assert inventory.get_component_stock(result.id, location_a.id) == 1

    def test_requires_exactly_one_result(self, inventory, make_component, location_a):
        a, x, y = make_component(), make_component(), make_component()
        with pytest.raises(InvalidTransformationError):
            inventory.execute_transformation(
                TransformationType.COMBINE,
                [ComponentQuantity(a.id, 1)],
                [ComponentQuantity(x.id, 1), ComponentQuantity(y.id, 1)],
                location_a.id,
            )

    def test_sources_may_go_negative(self, inventory, make_component, location_a):
        a = make_component()
        result = make_component()
        inventory.execute_transformation(
            TransformationType.COMBINE,
            [ComponentQuantity(a.id, 2)],
            [ComponentQuantity(result.id, 1)],
            location_a.id,
        )
        assert inventory.get_component_stock(a.id, location_a.id) == -2

    def test_shortage_on_later_source_rolls_back_whole_combine(
        self, session, strict_inventory, ledger_selector, make_component, location_a, stock_up,
    ):
        a = make_component()
        b = make_component()
        result = make_component()
        stock_up(a, location_a, 5)
        ledger_rows = ledger_selector.count()
        audit_rows = session.execute(select(func.count(ComponentTransformation.id))).scalar_one()

        with pytest.raises(InsufficientStockError):
            strict_inventory.execute_transformation(
                TransformationType.COMBINE,
                [ComponentQuantity(a.id, 2), ComponentQuantity(b.id, 1)],
                [ComponentQuantity(result.id, 1)],
                location_a.id,
            )

        assert strict_inventory.get_component_stock(a.id, location_a.id) == 5
        assert strict_inventory.get_component_stock(result.id, location_a.id) == 0
        assert ledger_selector.count() == ledger_rows
        assert session.execute(
            select(func.count(ComponentTransformation.id))
        ).scalar_one() == audit_rows


class TestValidation:
    def test_non_positive_quantity_rejected(self, inventory, make_component, location_a):
        with pytest.raises(InvalidQuantityError):
            inventory.execute_transformation(
                TransformationType.BREAK_DOWN,
                [ComponentQuantity(make_component().id, 0)],
                [ComponentQuantity(make_component().id, 1)],
                location_a.id,
            )

    def test_unknown_component_writes_nothing(
        self, inventory, ledger_selector, make_component, location_a,
    ):
        before = ledger_selector.count()
        with pytest.raises(ItemNotFoundError):
            inventory.execute_transformation(
                TransformationType.BREAK_DOWN,
                [ComponentQuantity(make_component().id, 1)],
                [ComponentQuantity(uuid4(), 1)],
                location_a.id,
            )
        assert ledger_selector.count() == before

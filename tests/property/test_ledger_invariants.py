"""
Property-based tests for the stock ledger.

Properties checked:
- Stored Component stock always equals the sum of its ledger rows.
- Product stock is the floor-divided bottleneck over its bill of materials.
- Completing a transfer and then leaving Completed restores both
  locations exactly.
- Selling and then returning a Product restores every component.

Each example builds fresh catalog items so examples never share stock.
"""

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from inventory_kernel.domain.values import ItemRef, TransactionKind, TransferStatus
from inventory_kernel.selectors.ledger_selector import LedgerSelector
from inventory_kernel.selectors.stock_selector import derive_product_stock

_FIXTURE_SETTINGS = settings(
    max_examples=40,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
)

non_zero_deltas = st.integers(min_value=-50, max_value=50).filter(lambda d: d != 0)

bom_requirements = st.lists(
    st.tuples(
        st.integers(min_value=1, max_value=10),
        st.integers(min_value=-20, max_value=200),
    ),
    min_size=1,
    max_size=6,
)


@pytest.fixture
def ledger_selector(session) -> LedgerSelector:
    return LedgerSelector(session)


class TestBottleneckProperty:
    @given(requirements=bom_requirements)
    @settings(max_examples=200)
    def test_result_is_the_tightest_component(self, requirements):
        result = derive_product_stock(requirements)

        assert all(result <= available // required for required, available in requirements)
        assert any(result == available // required for required, available in requirements)

    @given(requirements=bom_requirements, extra=st.integers(min_value=1, max_value=50))
    @settings(max_examples=200)
    def test_more_stock_never_lowers_the_result(self, requirements, extra):
        richer = [(required, available + extra) for required, available in requirements]
        assert derive_product_stock(richer) >= derive_product_stock(requirements)


class TestLedgerSumProperty:
    @given(deltas=st.lists(non_zero_deltas, min_size=1, max_size=12))
    @_FIXTURE_SETTINGS
    def test_stock_equals_ledger_sum(
        self, deltas, inventory, ledger_selector, make_component, location_a,
    ):
        item = ItemRef.component(make_component().id)
        for delta in deltas:
            inventory.record(TransactionKind.ADJUSTMENT, item, location_a.id, delta)

        assert inventory.get_component_stock(item.item_id, location_a.id) == sum(deltas)
        assert ledger_selector.ledger_sum(item, location_a.id) == sum(deltas)
        assert not [
            d for d in inventory.verify_ledger_consistency(location_a.id)
            if d.component_id == item.item_id
        ]


class TestTransferRoundTrip:
    @given(
        stocks=st.lists(st.integers(min_value=0, max_value=40), min_size=1, max_size=4),
        quantity=st.integers(min_value=1, max_value=10),
    )
    @_FIXTURE_SETTINGS
    def test_complete_then_reopen_restores_both_locations(
        self, stocks, quantity, inventory, make_component, make_product,
        location_a, location_b, stock_up,
    ):
        components = [make_component() for _ in stocks]
        for component, stock in zip(components, stocks):
            if stock:
                stock_up(component, location_a, stock)
        product = make_product(bom=[(c, i + 1) for i, c in enumerate(components)])

        def snapshot():
            return [
                (
                    inventory.get_component_stock(c.id, location_a.id),
                    inventory.get_component_stock(c.id, location_b.id),
                )
                for c in components
            ]

        before = snapshot()
        transfer = inventory.create_bulk_transfer_order(location_a.id, location_b.id)
        inventory.add_bulk_transfer_item(transfer.id, ItemRef.product(product.id), quantity)
        inventory.add_bulk_transfer_item(transfer.id, ItemRef.component(components[0].id), 1)

        inventory.update_transfer_status(transfer.id, TransferStatus.COMPLETED)
        moved = snapshot()
        inventory.update_transfer_status(transfer.id, TransferStatus.DELIVERED)

        assert snapshot() == before
        for (src_before, dst_before), (src_moved, dst_moved) in zip(before, moved):
            assert src_before - src_moved == dst_moved - dst_before


class TestSaleReturnRoundTrip:
    @given(
        requirements=st.lists(st.integers(min_value=1, max_value=5), min_size=1, max_size=4),
        quantity=st.integers(min_value=1, max_value=8),
    )
    @_FIXTURE_SETTINGS
    def test_return_undoes_sale(
        self, requirements, quantity, inventory, make_component, make_product, location_a,
    ):
        components = [make_component() for _ in requirements]
        product = make_product(bom=list(zip(components, requirements)))
        item = ItemRef.product(product.id)

        inventory.record(TransactionKind.SALE, item, location_a.id, -quantity)
        after_sale = [inventory.get_component_stock(c.id, location_a.id) for c in components]
        inventory.record(TransactionKind.RETURN, item, location_a.id, quantity)

        assert after_sale == [-quantity * r for r in requirements]
        assert all(inventory.get_component_stock(c.id, location_a.id) == 0 for c in components)

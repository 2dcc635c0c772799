"""
Bill-of-materials replacement tests.
"""

from uuid import uuid4

import pytest

from inventory_kernel.domain.values import ComponentQuantity
from inventory_kernel.exceptions import (
    InvalidBillOfMaterialsError,
    InvalidQuantityError,
    ItemNotFoundError,
)


class TestReplaceBillOfMaterials:
    def test_replaces_all_lines(self, inventory, make_component, make_product):
        a, b, c = make_component(), make_component(), make_component()
        product = make_product(bom=[(a, 2), (b, 1)])

        inventory.replace_bill_of_materials(
            product.id, [ComponentQuantity(b.id, 3), ComponentQuantity(c.id, 1)],
        )

        assert sorted(
            (line.component_id, line.quantity)
            for line in inventory.get_bill_of_materials(product.id)
        ) == sorted([(b.id, 3), (c.id, 1)])

    def test_empty_replacement_clears_the_list(
        self, inventory, make_component, make_product, location_a, stock_up,
    ):
        a = make_component()
        product = make_product(bom=[(a, 1)])
        stock_up(a, location_a, 5)

        inventory.replace_bill_of_materials(product.id, [])

        assert inventory.get_bill_of_materials(product.id) == []
        assert inventory.get_product_stock(product.id, location_a.id) == 0

    def test_new_quantities_change_derived_stock(
        self, inventory, make_component, make_product, location_a, stock_up,
    ):
        a = make_component()
        product = make_product(bom=[(a, 1)])
        stock_up(a, location_a, 9)

        inventory.replace_bill_of_materials(product.id, [ComponentQuantity(a.id, 4)])

        assert inventory.get_product_stock(product.id, location_a.id) == 2

    def test_duplicate_component_rejected(self, inventory, make_component, make_product):
        a = make_component()
        product = make_product(bom=[(a, 1)])

        with pytest.raises(InvalidBillOfMaterialsError):
            inventory.replace_bill_of_materials(
                product.id, [ComponentQuantity(a.id, 1), ComponentQuantity(a.id, 2)],
            )
        assert [line.quantity for line in inventory.get_bill_of_materials(product.id)] == [1]

    def test_zero_quantity_rejected(self, inventory, make_component, make_product):
        product = make_product()
        with pytest.raises(InvalidQuantityError):
            inventory.replace_bill_of_materials(
                product.id, [ComponentQuantity(make_component().id, 0)],
            )

    def test_unknown_component_leaves_old_list(self, inventory, make_component, make_product):
        a = make_component()
        product = make_product(bom=[(a, 2)])

        with pytest.raises(ItemNotFoundError):
            inventory.replace_bill_of_materials(product.id, [ComponentQuantity(uuid4(), 1)])

        assert [
            (line.component_id, line.quantity)
            for line in inventory.get_bill_of_materials(product.id)
        ] == [(a.id, 2)]

    def test_unknown_product_rejected(self, inventory, make_component):
        with pytest.raises(ItemNotFoundError):
            inventory.replace_bill_of_materials(
                uuid4(), [ComponentQuantity(make_component().id, 1)],
            )

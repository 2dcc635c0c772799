"""
BillOfMaterialsService -- atomic replacement of a Product's component list.

Invariants enforced:
    - Replacement is delete-then-insert within the caller's transaction;
      readers never observe a half-replaced bill of materials.
    - Each component appears at most once, with quantity >= 1.
"""

from typing import Sequence
from uuid import UUID

from inventory_kernel.domain.values import ComponentQuantity, ItemRef
from inventory_kernel.exceptions import InvalidBillOfMaterialsError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.catalog import BillOfMaterialsLine, Product
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.lookups import require_component, require_item
from inventory_kernel.services.validation import require_positive, require_selection

logger = get_logger("services.bom")


class BillOfMaterialsService(BaseService[BillOfMaterialsLine]):
    """Writes bill-of-materials lines."""

    def replace(
        self,
        product_id: UUID,
        lines: Sequence[ComponentQuantity],
    ) -> list[BillOfMaterialsLine]:
        require_selection("product_id", product_id)
        seen: set[UUID] = set()
        for line in lines:
            require_selection("component_id", line.component_id)
            require_positive("quantity", line.quantity)
            if line.component_id in seen:
                raise InvalidBillOfMaterialsError(
                    str(product_id),
                    f"component {line.component_id} listed more than once",
                )
            seen.add(line.component_id)

        product: Product = require_item(self.session, ItemRef.product(product_id))
        for line in lines:
            require_component(self.session, line.component_id)

        previous = len(product.bom_lines)
        product.bom_lines.clear()
        # Old rows must be gone before re-inserting the same (product, component)
        self.session.flush()

        for line in lines:
            product.bom_lines.append(BillOfMaterialsLine(
                component_id=line.component_id,
                quantity=line.quantity,
            ))
        self.session.flush()

        logger.info(
            "bill_of_materials_replaced",
            extra={
                "product_id": product_id,
                "previous_line_count": previous,
                "line_count": len(lines),
            },
        )
        return list(product.bom_lines)

"""
Module: inventory_kernel.models.catalog
Responsibility: Catalog ORM models -- Components (stocked parts), Products
    (composites with stock derived from their components) and the bill of
    materials that links them.
Architecture position: Kernel > Models.  Inherits from TrackedBase.
    Categories are owned outside the engine and referenced by UUID with
    no foreign key.

Invariants enforced:
    - SKU is unique within Components and within Products.
    - A Product lists a Component at most once in its bill of materials,
      with a required quantity of at least 1 (UNIQUE + CHECK).
    - Products carry no stock column; see selectors.stock_selector.

Failure modes:
    - IntegrityError on duplicate SKU, duplicate BOM line, or BOM
      quantity < 1.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import TrackedBase, UUIDString
from inventory_kernel.db.types import LONG_TEXT, MONEY, NAME, SHORT_CODE
from inventory_kernel.domain.values import ItemKind


class CatalogItemMixin:
    """Columns shared by Components and Products."""

    sku: Mapped[str] = mapped_column(SHORT_CODE, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(NAME, nullable=False)
    description: Mapped[str | None] = mapped_column(LONG_TEXT, nullable=True)
    category_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    unit_cost: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    unit_price: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class Component(CatalogItemMixin, TrackedBase):
    """
    A stocked part.  Components are the only items with stored stock.
    """

    __tablename__ = "components"

    item_kind = ItemKind.COMPONENT

    def __repr__(self) -> str:
        return f"<Component {self.sku}>"


class Product(CatalogItemMixin, TrackedBase):
    """
    A composite item assembled from Components.

    Guarantees:
        - bom_lines are loaded eagerly and deleted with the Product.
    """

    __tablename__ = "products"

    item_kind = ItemKind.PRODUCT

    bom_lines: Mapped[list["BillOfMaterialsLine"]] = relationship(
        back_populates="product",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Product {self.sku} bom_lines={len(self.bom_lines)}>"


class BillOfMaterialsLine(TrackedBase):
    """How many units of one Component a single Product unit requires."""

    __tablename__ = "bill_of_materials"

    __table_args__ = (
        UniqueConstraint("product_id", "component_id", name="uq_bom_product_component"),
        CheckConstraint("quantity >= 1", name="ck_bom_quantity_positive"),
        Index("idx_bom_component", "component_id"),
    )

    product_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
    )
    component_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("components.id"),
        nullable=False,
    )
    quantity: Mapped[int] = mapped_column(nullable=False)

    product: Mapped["Product"] = relationship(back_populates="bom_lines")
    component: Mapped["Component"] = relationship(lazy="joined")

    def __repr__(self) -> str:
        return (
            f"<BillOfMaterialsLine product={self.product_id} "
            f"component={self.component_id} qty={self.quantity}>"
        )

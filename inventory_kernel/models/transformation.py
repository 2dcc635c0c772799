"""
Module: inventory_kernel.models.transformation
Responsibility: Audit log of component transformations (break down and
    combine).  Every ledger row a transformation posts references its
    ComponentTransformation row.
Architecture position: Kernel > Models.  Inherits from TrackedBase.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import TrackedBase, UUIDString
from inventory_kernel.db.types import LONG_TEXT, enum_column
from inventory_kernel.domain.values import TransformationType


class ComponentTransformation(TrackedBase):
    """One executed break-down or combine."""

    __tablename__ = "component_transformations"

    __table_args__ = (
        Index("idx_transformation_location", "location_id"),
    )

    transformation_type: Mapped[TransformationType] = mapped_column(
        enum_column(TransformationType), nullable=False,
    )
    location_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("locations.id"),
        nullable=False,
    )
    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    notes: Mapped[str | None] = mapped_column(LONG_TEXT, nullable=True)

    lines: Mapped[list["TransformationLine"]] = relationship(
        back_populates="transformation",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def inputs(self) -> list["TransformationLine"]:
        return [line for line in self.lines if line.is_input]

    @property
    def outputs(self) -> list["TransformationLine"]:
        return [line for line in self.lines if not line.is_input]


class TransformationLine(TrackedBase):
    """A consumed (input) or produced (output) component quantity."""

    __tablename__ = "component_transformation_lines"

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_transformation_line_quantity"),
    )

    transformation_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("component_transformations.id"),
        nullable=False,
    )
    component_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("components.id"),
        nullable=False,
    )
    quantity: Mapped[int] = mapped_column(nullable=False)
    is_input: Mapped[bool] = mapped_column(Boolean, nullable=False)

    transformation: Mapped["ComponentTransformation"] = relationship(back_populates="lines")

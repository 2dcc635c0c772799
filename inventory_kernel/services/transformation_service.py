"""
TransformationService -- break one component down, or combine several.

Responsibility:
    Expresses a transformation as paired Component ledger rows at a single
    location and keeps an audit row of what was consumed and produced.

Architecture position:
    Kernel > Services -- imperative shell.  Moves stock through
    ``LedgerService.post_component_delta``.

Invariants enforced:
    - BreakDown: exactly one source, at least one result.  The source is
      reduced by a BreakDown-kind row; each result is increased by an
      Adjustment-kind row.
    - Combine: at least one source, exactly one result.  Sources are
      reduced and the result increased by Adjustment-kind rows.
    - Every ledger row references the ComponentTransformation audit row.
    - Source stock is NOT checked for sufficiency unless the ledger runs
      with negative stock disallowed.

Failure modes:
    - InvalidTransformationError -- wrong cardinality.
    - InvalidQuantityError -- a quantity <= 0.
    - ItemNotFoundError / LocationNotFoundError -- unknown ids.
"""

from uuid import UUID

from sqlalchemy.orm import Session

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.values import (
    ComponentQuantity,
    Reference,
    TransactionKind,
    TransformationType,
)
from inventory_kernel.exceptions import InvalidTransformationError
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.models.catalog import Component
from inventory_kernel.models.transformation import (
    ComponentTransformation,
    TransformationLine,
)
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.ledger_service import LedgerService
from inventory_kernel.services.lookups import require_component, require_location
from inventory_kernel.services.validation import require_positive, require_selection

logger = get_logger("services.transformation")


def _validate_cardinality(
    transformation_type: TransformationType,
    sources: list[ComponentQuantity],
    results: list[ComponentQuantity],
) -> None:
    if transformation_type is TransformationType.BREAK_DOWN:
        if len(sources) != 1:
            raise InvalidTransformationError(
                transformation_type.value, "requires exactly one source component",
            )
        if not results:
            raise InvalidTransformationError(
                transformation_type.value, "requires at least one result component",
            )
    else:
        if not sources:
            raise InvalidTransformationError(
                transformation_type.value, "requires at least one source component",
            )
        if len(results) != 1:
            raise InvalidTransformationError(
                transformation_type.value, "requires exactly one result component",
            )


class TransformationService(BaseService[ComponentTransformation]):
    """Posts break-down and combine transformations."""

    def __init__(
        self,
        session: Session,
        ledger: LedgerService,
        clock: Clock | None = None,
    ):
        super().__init__(session)
        self._ledger = ledger
        self._clock = clock or SystemClock()

    def execute(
        self,
        transformation_type: TransformationType,
        sources: list[ComponentQuantity],
        results: list[ComponentQuantity],
        location_id: UUID,
        notes: str | None = None,
    ) -> ComponentTransformation:
        require_selection("transformation_type", transformation_type)
        require_selection("location_id", location_id)
        sources = list(sources or [])
        results = list(results or [])
        _validate_cardinality(transformation_type, sources, results)
        for line in sources + results:
            require_selection("component_id", line.component_id)
            require_positive("quantity", line.quantity)

        require_location(self.session, location_id)
        components: dict[UUID, Component] = {
            line.component_id: require_component(self.session, line.component_id)
            for line in sources + results
        }

        transformation = ComponentTransformation(
            transformation_type=transformation_type,
            location_id=location_id,
            occurred_at=self._clock.now(),
            notes=notes,
        )
        transformation.lines.extend(
            TransformationLine(component_id=line.component_id, quantity=line.quantity, is_input=True)
            for line in sources
        )
        transformation.lines.extend(
            TransformationLine(component_id=line.component_id, quantity=line.quantity, is_input=False)
            for line in results
        )
        self.session.add(transformation)
        self.session.flush()
        LogContext.set(reference_id=str(transformation.id))

        reference = Reference(Reference.TRANSFORMATION, transformation.id)
        if transformation_type is TransformationType.BREAK_DOWN:
            source_kind, source_label = TransactionKind.BREAK_DOWN, "Break down transformation"
            result_label = "Break down result"
        else:
            source_kind, source_label = TransactionKind.ADJUSTMENT, "Combine transformation"
            result_label = "Combine result"

        entries = []
        for line in sources:
            entries.append(self._ledger.post_component_delta(
                source_kind,
                line.component_id,
                location_id,
                -line.quantity,
                note=f"{source_label}: {components[line.component_id].sku} x{line.quantity}",
                reference=reference,
            ))
        for line in results:
            entries.append(self._ledger.post_component_delta(
                TransactionKind.ADJUSTMENT,
                line.component_id,
                location_id,
                line.quantity,
                note=f"{result_label}: {components[line.component_id].sku} x{line.quantity}",
                reference=reference,
            ))

        logger.info(
            "transformation_executed",
            extra={
                "transformation_id": transformation.id,
                "transformation_type": transformation_type,
                "location_id": location_id,
                "source_count": len(sources),
                "result_count": len(results),
                "ledger_rows": len(entries),
            },
        )
        return transformation

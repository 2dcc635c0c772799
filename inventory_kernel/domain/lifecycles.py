"""
Document lifecycles: bulk transfers and purchase orders.

The transitions declared here are the *curated* paths operators normally
take.  The engine itself never rejects a status change unless an enforced
``TransitionPolicy`` says so; see ``TransferService.update_status``.
"""

from inventory_kernel.domain.values import PurchaseOrderStatus, TransferStatus
from inventory_kernel.domain.workflow import Transition, Workflow

_T = TransferStatus

BULK_TRANSFER_WORKFLOW = Workflow(
    name="bulk_transfer",
    description="Move a batch of items from one location to another",
    initial_state=_T.CREATED.value,
    states=tuple(s.value for s in _T),
    transitions=(
        Transition(_T.CREATED.value, _T.IN_TRANSIT.value, action="ship"),
        Transition(_T.CREATED.value, _T.DELIVERED.value, action="deliver"),
        Transition(_T.CREATED.value, _T.COMPLETED.value, action="execute", moves_stock=True),
        Transition(_T.CREATED.value, _T.CANCELLED.value, action="cancel"),
        Transition(_T.IN_TRANSIT.value, _T.DELIVERED.value, action="deliver"),
        Transition(_T.IN_TRANSIT.value, _T.COMPLETED.value, action="execute", moves_stock=True),
        Transition(_T.IN_TRANSIT.value, _T.CANCELLED.value, action="cancel"),
        Transition(_T.DELIVERED.value, _T.COMPLETED.value, action="execute", moves_stock=True),
        Transition(_T.DELIVERED.value, _T.CANCELLED.value, action="cancel"),
        # Leaving COMPLETED reverses the stock movement
        Transition(_T.COMPLETED.value, _T.DELIVERED.value, action="revert", moves_stock=True),
        Transition(_T.COMPLETED.value, _T.CANCELLED.value, action="revert_and_cancel", moves_stock=True),
        Transition(_T.CANCELLED.value, _T.CREATED.value, action="reactivate"),
    ),
)

_P = PurchaseOrderStatus

PURCHASE_ORDER_WORKFLOW = Workflow(
    name="purchase_order",
    description="Order stock from a supplier and receive it into a location",
    initial_state=_P.CREATED.value,
    states=tuple(s.value for s in _P),
    transitions=(
        Transition(_P.CREATED.value, _P.ORDERED.value, action="place"),
        Transition(_P.CREATED.value, _P.CANCELLED.value, action="cancel"),
        Transition(_P.ORDERED.value, _P.SHIPPED.value, action="ship"),
        Transition(_P.ORDERED.value, _P.RECEIVED.value, action="receive"),
        Transition(_P.ORDERED.value, _P.CANCELLED.value, action="cancel"),
        Transition(_P.SHIPPED.value, _P.RECEIVED.value, action="receive"),
        Transition(_P.RECEIVED.value, _P.COMPLETED.value, action="complete"),
    ),
    terminal_states=(_P.COMPLETED.value, _P.CANCELLED.value),
)

"""
Typed Exception Hierarchy for the Inventory Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the stock engine (UI, import jobs, integrations) must react to
errors precisely: a rejected quantity is a user mistake, a disallowed
transfer transition is a policy decision, a store failure is an outage.
Parsing message strings to tell these apart is fragile.

Every error therefore has:
  1. A TYPED exception class (catch by type, not message)
  2. A CODE class attribute (machine-readable, API-safe)
  3. Structured DATA as attributes (not just a message string)

Example:
    try:
        engine.record(TransactionKind.SALE, item, location_id, 0)
    except InvalidQuantityError as e:
        api_response(code=e.code, field=e.field, value=e.value)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from InventoryKernelError:

    InventoryKernelError (base)
    |
    +-- ValidationError
    |   +-- InvalidQuantityError
    |   +-- MissingSelectionError
    |   +-- InvalidTransferError
    |   +-- InvalidTransformationError
    |   +-- InvalidBillOfMaterialsError
    |
    +-- NotFoundError
    |   +-- ItemNotFoundError
    |   +-- LocationNotFoundError
    |   +-- TransferNotFoundError
    |   +-- PurchaseOrderNotFoundError
    |   +-- PurchaseOrderItemNotFoundError
    |
    +-- TransferError
    |   +-- TransferTransitionError
    |   +-- TransferNotEditableError
    |
    +-- StockError
    |   +-- InsufficientStockError
    |   +-- DerivedStockViolationError
    |
    +-- ReceivingError
    |   +-- OverReceiptError
    |
    +-- ImmutabilityError
        +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                          | When Raised
----------------|-------------------------------|-------------------------------------
Validation      | INVALID_QUANTITY              | Quantity zero, negative or below min
                | MISSING_SELECTION             | Item or location not supplied
                | INVALID_TRANSFER              | Source equals destination
                | INVALID_TRANSFORMATION        | Wrong source/result cardinality
                | INVALID_BILL_OF_MATERIALS     | Duplicate component in a BOM
----------------|-------------------------------|-------------------------------------
Not found       | ITEM_NOT_FOUND                | Component or Product id unknown
                | LOCATION_NOT_FOUND            | Location id unknown
                | TRANSFER_NOT_FOUND            | Bulk transfer id unknown
                | PURCHASE_ORDER_NOT_FOUND      | Purchase order id unknown
                | PURCHASE_ORDER_ITEM_NOT_FOUND | PO line unknown or on another PO
----------------|-------------------------------|-------------------------------------
Transfer        | TRANSFER_TRANSITION_NOT_ALLOWED | Enforced policy rejects transition
                | TRANSFER_NOT_EDITABLE         | Adding items to completed transfer
----------------|-------------------------------|-------------------------------------
Stock           | INSUFFICIENT_STOCK            | Strict mode, stock would go negative
                | DERIVED_STOCK_VIOLATION       | Stored stock for a Product
----------------|-------------------------------|-------------------------------------
Receiving       | OVER_RECEIPT                  | Strict mode, received > ordered
----------------|-------------------------------|-------------------------------------
Immutability    | IMMUTABILITY_VIOLATION        | Updating/deleting a ledger entry

===============================================================================
DESIGN DECISIONS
===============================================================================

1. Validation errors are raised before the store is touched, so a rejected
   request never opens a transaction.
2. Store failures (sqlalchemy.exc.SQLAlchemyError) are NOT wrapped. The
   engine rolls back and re-raises them unchanged.

===============================================================================
"""


class InventoryKernelError(Exception):
    """
    Base exception for all inventory kernel errors.

    All subclasses must have a `code` class attribute
    for machine-readable error identification.
    """

    code: str = "INVENTORY_KERNEL_ERROR"


# Validation exceptions


class ValidationError(InventoryKernelError):
    """Base exception for rejected input."""

    code: str = "VALIDATION_ERROR"


class InvalidQuantityError(ValidationError):
    """A quantity is zero, negative, or below its allowed minimum."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, field: str, value: int, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field} {value}: {reason}")


class MissingSelectionError(ValidationError):
    """A required item or location was not supplied."""

    code: str = "MISSING_SELECTION"

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Missing required selection: {field}")


class InvalidTransferError(ValidationError):
    """A transfer request is structurally invalid."""

    code: str = "INVALID_TRANSFER"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid transfer: {reason}")


class InvalidTransformationError(ValidationError):
    """A transformation has the wrong number of sources or results."""

    code: str = "INVALID_TRANSFORMATION"

    def __init__(self, transformation_type: str, reason: str):
        self.transformation_type = transformation_type
        self.reason = reason
        super().__init__(f"Invalid {transformation_type} transformation: {reason}")


class InvalidBillOfMaterialsError(ValidationError):
    """A bill of materials replacement is invalid."""

    code: str = "INVALID_BILL_OF_MATERIALS"

    def __init__(self, product_id: str, reason: str):
        self.product_id = product_id
        self.reason = reason
        super().__init__(f"Invalid bill of materials for product {product_id}: {reason}")


# Lookup exceptions


class NotFoundError(InventoryKernelError):
    """Base exception for unknown identifiers."""

    code: str = "NOT_FOUND"


class ItemNotFoundError(NotFoundError):
    """Component or Product with given ID was not found."""

    code: str = "ITEM_NOT_FOUND"

    def __init__(self, item_kind: str, item_id: str):
        self.item_kind = item_kind
        self.item_id = item_id
        super().__init__(f"{item_kind.capitalize()} not found: {item_id}")


class LocationNotFoundError(NotFoundError):
    """Location with given ID was not found."""

    code: str = "LOCATION_NOT_FOUND"

    def __init__(self, location_id: str):
        self.location_id = location_id
        super().__init__(f"Location not found: {location_id}")


class TransferNotFoundError(NotFoundError):
    """Bulk transfer order with given ID was not found."""

    code: str = "TRANSFER_NOT_FOUND"

    def __init__(self, transfer_id: str):
        self.transfer_id = transfer_id
        super().__init__(f"Bulk transfer not found: {transfer_id}")


class PurchaseOrderNotFoundError(NotFoundError):
    """Purchase order with given ID was not found."""

    code: str = "PURCHASE_ORDER_NOT_FOUND"

    def __init__(self, purchase_order_id: str):
        self.purchase_order_id = purchase_order_id
        super().__init__(f"Purchase order not found: {purchase_order_id}")


class PurchaseOrderItemNotFoundError(NotFoundError):
    """Purchase order line not found on the given order."""

    code: str = "PURCHASE_ORDER_ITEM_NOT_FOUND"

    def __init__(self, purchase_order_id: str, item_id: str):
        self.purchase_order_id = purchase_order_id
        self.item_id = item_id
        super().__init__(
            f"Purchase order line {item_id} not found on order {purchase_order_id}"
        )


# Transfer exceptions


class TransferError(InventoryKernelError):
    """Base exception for bulk transfer errors."""

    code: str = "TRANSFER_ERROR"


class TransferTransitionError(TransferError):
    """The enforced transition policy does not allow this status change."""

    code: str = "TRANSFER_TRANSITION_NOT_ALLOWED"

    def __init__(self, transfer_id: str, from_status: str, to_status: str):
        self.transfer_id = transfer_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Transfer {transfer_id} cannot move from {from_status} to {to_status}"
        )


class TransferNotEditableError(TransferError):
    """Items cannot be added to a completed or cancelled transfer."""

    code: str = "TRANSFER_NOT_EDITABLE"

    def __init__(self, transfer_id: str, status: str):
        self.transfer_id = transfer_id
        self.status = status
        super().__init__(f"Transfer {transfer_id} is {status} and cannot be edited")


# Stock exceptions


class StockError(InventoryKernelError):
    """Base exception for stock level errors."""

    code: str = "STOCK_ERROR"


class InsufficientStockError(StockError):
    """Consumption would drive stock below zero while negatives are disallowed."""

    code: str = "INSUFFICIENT_STOCK"

    def __init__(self, item_id: str, location_id: str, available: int, requested: int):
        self.item_id = item_id
        self.location_id = location_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for {item_id} at {location_id}: "
            f"available {available}, requested {requested}"
        )


class DerivedStockViolationError(StockError):
    """A stored stock quantity was written for a Product."""

    code: str = "DERIVED_STOCK_VIOLATION"

    def __init__(self, product_id: str, quantity: int):
        self.product_id = product_id
        self.quantity = quantity
        super().__init__(
            f"Product {product_id} stock is derived from its components "
            f"and cannot be stored (got {quantity})"
        )


# Receiving exceptions


class ReceivingError(InventoryKernelError):
    """Base exception for purchase receiving errors."""

    code: str = "RECEIVING_ERROR"


class OverReceiptError(ReceivingError):
    """Received quantity would exceed the ordered quantity in strict mode."""

    code: str = "OVER_RECEIPT"

    def __init__(self, item_id: str, ordered: int, received: int):
        self.item_id = item_id
        self.ordered = ordered
        self.received = received
        super().__init__(
            f"Purchase order line {item_id} would receive {received} of {ordered} ordered"
        )


# Immutability exceptions


class ImmutabilityError(InventoryKernelError):
    """Base exception for immutability-related errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify or delete an immutable record.

    Ledger entries are append-only; bulk transfer orders are never
    hard-deleted.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )

"""
Typed Exception Hierarchy for the Inventory Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Every failure in this kernel is a business outcome the caller must be able to
present to a store operator ("only 2 left, you asked for 5").  Callers catch
by type, read a machine-readable ``code`` and pull structured attributes off
the exception instead of parsing messages:

    try:
        holds.create_hold(store_id, customer_id, sku, quantity=5)
    except InsufficientInventoryError as e:
        return {"error": e.code, "available": e.available, "requested": e.requested}

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    InventoryKernelError (base)
    |
    +-- InventoryError
    |   +-- InsufficientInventoryError
    |   +-- InvalidAdjustmentError
    |   +-- InventoryRecordNotFoundError
    |   +-- InvariantViolationError
    |
    +-- HoldError
    |   +-- HoldNotFoundError
    |   +-- HoldNotActiveError
    |   +-- InvalidHoldQuantityError
    |
    +-- ConversionError
    |   +-- UnresolvedCaseSkuError
    |   +-- InactiveCatalogEntryError
    |   +-- InvalidCasePackSizeError
    |   +-- InvalidCaseQuantityError
    |
    +-- WholesaleError
    |   +-- WholesaleOrderNotFoundError
    |   +-- AlreadyVerifiedError
    |
    +-- ImmutabilityError
        +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category   | Code                      | When Raised
-----------|---------------------------|-------------------------------------------
Inventory  | INSUFFICIENT_INVENTORY    | Requested exceeds available / on-hand
           | INVALID_ADJUSTMENT        | Non-negative magnitude on decrease path
           | INVENTORY_RECORD_NOT_FOUND| Adjustment against unknown store/SKU
           | INVARIANT_VIOLATION       | Ledger refused a negative/inconsistent row
-----------|---------------------------|-------------------------------------------
Hold       | HOLD_NOT_FOUND            | Hold id doesn't exist
           | HOLD_NOT_ACTIVE           | Hold already picked up/cancelled/expired
           | INVALID_HOLD_QUANTITY     | Hold quantity <= 0
-----------|---------------------------|-------------------------------------------
Conversion | UNRESOLVED_CASE_SKU       | Case SKU has no retail counterpart
           | INACTIVE_CATALOG_ENTRY    | Case or retail catalog entry inactive
           | INVALID_CASE_PACK_SIZE    | units_per_case missing or <= 0
           | INVALID_CASE_QUANTITY     | Ordered case quantity <= 0
-----------|---------------------------|-------------------------------------------
Wholesale  | WHOLESALE_ORDER_NOT_FOUND | Order id / verification token unknown
           | ALREADY_VERIFIED          | Receipt for this order already recorded
-----------|---------------------------|-------------------------------------------
Immutable  | IMMUTABILITY_VIOLATION    | UPDATE/DELETE of a ledger row or a
           |                           | resolved hold
"""


class InventoryKernelError(Exception):
    """
    Base exception for all inventory kernel errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "INVENTORY_KERNEL_ERROR"


# Inventory-related exceptions


class InventoryError(InventoryKernelError):
    """Base exception for stock counter errors."""

    code: str = "INVENTORY_ERROR"


class InsufficientInventoryError(InventoryError):
    """Requested quantity exceeds what the store can give up."""

    code: str = "INSUFFICIENT_INVENTORY"

    def __init__(self, store_id: str, product_sku: str, available: int, requested: int):
        self.store_id = store_id
        self.product_sku = product_sku
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient inventory for {product_sku} at store {store_id}: "
            f"available={available}, requested={requested}"
        )


class InvalidAdjustmentError(InventoryError):
    """Manual adjustments may only decrease stock."""

    code: str = "INVALID_ADJUSTMENT"

    def __init__(self, product_sku: str, magnitude: int):
        self.product_sku = product_sku
        self.magnitude = magnitude
        super().__init__(
            f"Adjustment for {product_sku} must be negative, got {magnitude}"
        )


class InventoryRecordNotFoundError(InventoryError):
    """No inventory record exists for the store/SKU pair."""

    code: str = "INVENTORY_RECORD_NOT_FOUND"

    def __init__(self, store_id: str, product_sku: str):
        self.store_id = store_id
        self.product_sku = product_sku
        super().__init__(
            f"No inventory record for {product_sku} at store {store_id}"
        )


class InvariantViolationError(InventoryError):
    """
    A delta would have produced a negative or inconsistent counter.

    Upstream checks make this unreachable in normal operation; the ledger
    raises it instead of ever persisting such a row.
    """

    code: str = "INVARIANT_VIOLATION"

    def __init__(self, store_id: str, product_sku: str, field: str, value: int):
        self.store_id = store_id
        self.product_sku = product_sku
        self.field = field
        self.value = value
        super().__init__(
            f"Invariant violation on {product_sku} at store {store_id}: "
            f"{field} would become {value}"
        )


# Hold-related exceptions


class HoldError(InventoryKernelError):
    """Base exception for hold lifecycle errors."""

    code: str = "HOLD_ERROR"


class HoldNotFoundError(HoldError):
    """Hold with given ID was not found."""

    code: str = "HOLD_NOT_FOUND"

    def __init__(self, hold_id: str):
        self.hold_id = hold_id
        super().__init__(f"Hold not found: {hold_id}")


class HoldNotActiveError(HoldError):
    """Hold has already reached a terminal state."""

    code: str = "HOLD_NOT_ACTIVE"

    def __init__(self, hold_id: str, status: str):
        self.hold_id = hold_id
        self.status = status
        super().__init__(f"Hold {hold_id} is not active (status={status})")


class InvalidHoldQuantityError(HoldError):
    """Holds must reserve at least one unit."""

    code: str = "INVALID_HOLD_QUANTITY"

    def __init__(self, quantity: int):
        self.quantity = quantity
        super().__init__(f"Hold quantity must be positive, got {quantity}")


# Case-pack conversion exceptions


class ConversionError(InventoryKernelError):
    """Base exception for case SKU to retail unit conversion errors."""

    code: str = "CONVERSION_ERROR"

    def __init__(self, case_sku: str, reason: str):
        self.case_sku = case_sku
        self.reason = reason
        super().__init__(f"{case_sku}: {reason}")


class UnresolvedCaseSkuError(ConversionError):
    """Case SKU does not map to a known retail SKU."""

    code: str = "UNRESOLVED_CASE_SKU"


class InactiveCatalogEntryError(ConversionError):
    """Case or retail catalog entry is inactive."""

    code: str = "INACTIVE_CATALOG_ENTRY"


class InvalidCasePackSizeError(ConversionError):
    """Catalog entry has no usable units_per_case."""

    code: str = "INVALID_CASE_PACK_SIZE"


class InvalidCaseQuantityError(ConversionError):
    """Ordered case quantity is zero or negative."""

    code: str = "INVALID_CASE_QUANTITY"


# Wholesale order exceptions


class WholesaleError(InventoryKernelError):
    """Base exception for wholesale receiving errors."""

    code: str = "WHOLESALE_ERROR"


class WholesaleOrderNotFoundError(WholesaleError):
    """Wholesale order (by id or verification token) was not found."""

    code: str = "WHOLESALE_ORDER_NOT_FOUND"

    def __init__(self, reference: str):
        self.reference = reference
        super().__init__(f"Wholesale order not found: {reference}")


class AlreadyVerifiedError(WholesaleError):
    """Receipt of this wholesale order was already verified."""

    code: str = "ALREADY_VERIFIED"

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Wholesale order {order_id} has already been verified")


# Immutability-related exceptions


class ImmutabilityError(InventoryKernelError):
    """Base exception for immutability-related errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify or delete an immutable record.

    InventoryTransaction rows are immutable from creation; ProductHold rows
    are immutable once they leave ``active``.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )

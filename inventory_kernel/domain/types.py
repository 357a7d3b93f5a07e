"""
inventory_kernel.domain.types -- Enums and frozen DTOs for the inventory kernel.

ZERO I/O.  Every status and kind is a closed ``str`` enum; call sites match
on them exhaustively.

Data flow:
    CaseLine -> ConvertedLine -> (ledger) -> FulfillmentResult / ReceiptResult
    LedgerContext -> InventoryLedger.apply_delta -> LedgerPosting
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID


# =============================================================================
# Enums
# =============================================================================


class TransactionType(str, Enum):
    """Kind of an InventoryTransaction ledger row."""

    MANUAL_DECREASE = "manual_decrease"
    HOLD_CREATED = "hold_created"
    HOLD_RELEASED = "hold_released"
    HOLD_EXPIRED = "hold_expired"
    PROMO_SALE = "promo_sale"
    WHOLESALE_INCOMING = "wholesale_incoming"
    WHOLESALE_RECEIVED = "wholesale_received"
    RESTOCK = "restock"
    INITIAL_STOCK = "initial_stock"
    TRIAL_KIT = "trial_kit"


# Kinds accepted by WholesaleConversionEngine.receive_direct()
DIRECT_RECEIPT_TYPES: frozenset[TransactionType] = frozenset({
    TransactionType.RESTOCK,
    TransactionType.INITIAL_STOCK,
    TransactionType.TRIAL_KIT,
})


class HoldStatus(str, Enum):
    """Lifecycle status of a ProductHold.

    Transitions are one-way: ACTIVE -> one of the three terminal states.
    """

    ACTIVE = "active"
    PICKED_UP = "picked_up"
    CANCELLED = "cancelled"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self is not HoldStatus.ACTIVE


class HoldOutcome(str, Enum):
    """How an active hold is resolved."""

    PICKED_UP = "picked_up"
    CANCELLED = "cancelled"
    EXPIRED = "expired"

    @property
    def status(self) -> HoldStatus:
        match self:
            case HoldOutcome.PICKED_UP:
                return HoldStatus.PICKED_UP
            case HoldOutcome.CANCELLED:
                return HoldStatus.CANCELLED
            case HoldOutcome.EXPIRED:
                return HoldStatus.EXPIRED
            case _:
                raise ValueError(f"Unknown hold outcome: {self}")

    @property
    def transaction_type(self) -> TransactionType:
        match self:
            case HoldOutcome.PICKED_UP:
                return TransactionType.PROMO_SALE
            case HoldOutcome.CANCELLED:
                return TransactionType.HOLD_RELEASED
            case HoldOutcome.EXPIRED:
                return TransactionType.HOLD_EXPIRED
            case _:
                raise ValueError(f"Unknown hold outcome: {self}")


class WholesaleOrderStatus(str, Enum):
    """Wholesale order progression: placed -> fulfilled -> delivered -> received."""

    PLACED = "placed"
    FULFILLED = "fulfilled"
    DELIVERED = "delivered"
    RECEIVED = "received"


class CatalogKind(str, Enum):
    """Whether a catalog SKU is a wholesale case or an individual retail unit."""

    CASE = "case"
    UNIT = "unit"


class PendingOrderAction(str, Enum):
    """What a ledger mutation does to InventoryRecord.pending_order_id."""

    KEEP = "keep"
    SET = "set"
    CLEAR = "clear"  # only if it still points at the given order


# =============================================================================
# Ledger DTOs
# =============================================================================


@dataclass(frozen=True)
class InventoryBalance:
    """Snapshot of the four counters of one (store, SKU) record."""

    store_id: str
    product_sku: str
    quantity_on_hand: int
    quantity_reserved: int
    quantity_available: int
    quantity_incoming: int
    pending_order_id: UUID | None = None
    last_restocked_at: datetime | None = None
    version: int = 0


@dataclass(frozen=True)
class LedgerContext:
    """Attribution and side directives carried by one ledger mutation."""

    notes: str | None = None
    customer_id: str | None = None
    expires_at: datetime | None = None
    actor: str | None = None
    hold_id: UUID | None = None
    wholesale_order_id: UUID | None = None
    pending_order: PendingOrderAction = PendingOrderAction.KEEP
    restocked: bool = False

    def __post_init__(self) -> None:
        if self.pending_order is not PendingOrderAction.KEEP and self.wholesale_order_id is None:
            raise ValueError("pending_order directive requires wholesale_order_id")


@dataclass(frozen=True)
class LedgerPosting:
    """Result of InventoryLedger.apply_delta."""

    balance: InventoryBalance
    transaction_id: UUID


@dataclass(frozen=True)
class TransactionInfo:
    """Read-side view of one ledger row."""

    id: UUID
    store_id: str
    product_sku: str
    type: TransactionType
    quantity: int
    reserved_delta: int
    incoming_delta: int
    balance_after: int
    sequence: int
    created_at: datetime
    customer_id: str | None = None
    expires_at: datetime | None = None
    notes: str | None = None
    actor: str | None = None
    hold_id: UUID | None = None
    wholesale_order_id: UUID | None = None


# =============================================================================
# Hold DTOs
# =============================================================================


@dataclass(frozen=True)
class HoldInfo:
    """Read-side view of a ProductHold."""

    id: UUID
    store_id: str
    customer_id: str
    product_sku: str
    quantity: int
    status: HoldStatus
    expires_at: datetime
    created_at: datetime | None = None
    notified_at: datetime | None = None
    picked_up_at: datetime | None = None
    resolved_at: datetime | None = None


# =============================================================================
# Catalog and conversion DTOs
# =============================================================================


@dataclass(frozen=True)
class CatalogItem:
    """One catalog entry as seen through the Catalog Reference."""

    sku: str
    kind: CatalogKind
    is_active: bool
    name: str = ""
    units_per_case: int | None = None


@dataclass(frozen=True)
class CaseLine:
    """One ordered line in case-pack units."""

    case_sku: str
    case_quantity: int


@dataclass(frozen=True)
class ConvertedLine:
    """A case line resolved to retail units."""

    case_sku: str
    case_quantity: int
    retail_sku: str
    units_per_case: int
    retail_units: int
    retail_name: str = ""


@dataclass(frozen=True)
class LineError:
    """Per-item failure reported alongside per-item successes."""

    reference: str
    code: str
    message: str


@dataclass(frozen=True)
class ConversionResult:
    """Outcome of converting a batch of case lines (partial success allowed)."""

    lines: tuple[ConvertedLine, ...] = ()
    errors: tuple[LineError, ...] = ()

    @property
    def success(self) -> bool:
        return not self.errors


# =============================================================================
# Wholesale DTOs
# =============================================================================


@dataclass(frozen=True)
class CaseOrderFulfilled:
    """Normalized "case order fulfilled" event from the commerce webhook layer."""

    external_order_id: str
    store_id: str
    lines: tuple[CaseLine, ...]
    org_id: str | None = None
    tracking_number: str | None = None
    fulfilled_at: datetime | None = None


@dataclass(frozen=True)
class FulfillmentResult:
    """Outcome of phase 1 (mark incoming)."""

    order_id: UUID | None
    status: WholesaleOrderStatus | None
    verification_token: str | None
    lines: tuple[ConvertedLine, ...] = ()
    errors: tuple[LineError, ...] = ()
    already_processed: bool = False


@dataclass(frozen=True)
class ReceiptLineResult:
    """Outcome of reconciling one wholesale order item into on-hand."""

    item_id: UUID
    retail_sku: str
    expected_units: int
    received_units: int
    balance_after: int
    transaction_id: UUID

    @property
    def discrepancy(self) -> int:
        return self.received_units - self.expected_units


@dataclass(frozen=True)
class ReceiptResult:
    """Outcome of phase 2 (verify receipt)."""

    order_id: UUID
    status: WholesaleOrderStatus
    lines: tuple[ReceiptLineResult, ...] = ()
    errors: tuple[LineError, ...] = ()

    @property
    def discrepancies(self) -> dict[str, int]:
        """Signed received - expected per order item id, non-zero only."""
        return {
            str(line.item_id): line.discrepancy
            for line in self.lines
            if line.discrepancy != 0
        }


@dataclass(frozen=True)
class DirectReceiptResult:
    """Outcome of receive_direct (case lines straight into on-hand)."""

    lines: tuple[ConvertedLine, ...] = ()
    postings: tuple[LedgerPosting, ...] = ()
    errors: tuple[LineError, ...] = field(default_factory=tuple)

"""
Pure domain layer.

Enums, frozen DTOs, the Clock abstraction and case-pack conversion rules,
with NO dependencies on the ORM, the database or I/O.
"""

from inventory_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from inventory_kernel.domain.conversion import (
    DEFAULT_CASE_SKU_SUFFIX,
    case_sku_for,
    discrepancy_note,
    resolve_case_line,
    retail_sku_for,
)
from inventory_kernel.domain.types import (
    DIRECT_RECEIPT_TYPES,
    CaseLine,
    CaseOrderFulfilled,
    CatalogItem,
    CatalogKind,
    ConversionResult,
    ConvertedLine,
    DirectReceiptResult,
    FulfillmentResult,
    HoldInfo,
    HoldOutcome,
    HoldStatus,
    InventoryBalance,
    LedgerContext,
    LedgerPosting,
    LineError,
    PendingOrderAction,
    ReceiptLineResult,
    ReceiptResult,
    TransactionInfo,
    TransactionType,
    WholesaleOrderStatus,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "DEFAULT_CASE_SKU_SUFFIX",
    "case_sku_for",
    "discrepancy_note",
    "resolve_case_line",
    "retail_sku_for",
    "DIRECT_RECEIPT_TYPES",
    "CaseLine",
    "CaseOrderFulfilled",
    "CatalogItem",
    "CatalogKind",
    "ConversionResult",
    "ConvertedLine",
    "DirectReceiptResult",
    "FulfillmentResult",
    "HoldInfo",
    "HoldOutcome",
    "HoldStatus",
    "InventoryBalance",
    "LedgerContext",
    "LedgerPosting",
    "LineError",
    "PendingOrderAction",
    "ReceiptLineResult",
    "ReceiptResult",
    "TransactionInfo",
    "TransactionType",
    "WholesaleOrderStatus",
]

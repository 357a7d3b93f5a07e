"""
Request and response bodies for the inventory HTTP API.

Field names are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from inventory_kernel.domain.types import (
    HoldOutcome,
    HoldStatus,
    TransactionType,
    WholesaleOrderStatus,
)


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ---------------------------------------------------------------------------
# Shared views
# ---------------------------------------------------------------------------


class BalanceOut(ApiModel):
    store_id: str
    product_sku: str
    quantity_on_hand: int
    quantity_reserved: int
    quantity_available: int
    quantity_incoming: int
    pending_order_id: UUID | None = None
    last_restocked_at: datetime | None = None


class TransactionOut(ApiModel):
    id: UUID
    store_id: str
    product_sku: str
    type: TransactionType
    quantity: int
    reserved_delta: int
    incoming_delta: int
    balance_after: int
    created_at: datetime
    customer_id: str | None = None
    expires_at: datetime | None = None
    notes: str | None = None
    actor: str | None = None
    hold_id: UUID | None = None
    wholesale_order_id: UUID | None = None


class CaseLineIn(ApiModel):
    case_sku: str = Field(min_length=1)
    case_quantity: int


class ConvertedLineOut(ApiModel):
    case_sku: str
    case_quantity: int
    retail_sku: str
    units_per_case: int
    retail_units: int
    retail_name: str = ""


class LineErrorOut(ApiModel):
    reference: str
    code: str
    message: str


# ---------------------------------------------------------------------------
# Holds
# ---------------------------------------------------------------------------


class HoldOut(ApiModel):
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


class CreateHoldRequest(ApiModel):
    customer_id: str = Field(min_length=1)
    product_sku: str = Field(min_length=1)
    quantity: int = 1
    store_id: str | None = None


class CreateHoldResponse(ApiModel):
    success: bool = True
    hold: HoldOut
    expires_at: datetime


class ResolveHoldRequest(ApiModel):
    action: HoldOutcome


class ResolveHoldResponse(ApiModel):
    success: bool = True
    hold: HoldOut
    action: HoldOutcome


class HoldListResponse(ApiModel):
    holds: list[HoldOut]


# ---------------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------------


class InventoryListResponse(ApiModel):
    store_id: str
    inventory: list[BalanceOut]


class HistoryResponse(ApiModel):
    transactions: list[TransactionOut]
    inventory: BalanceOut | None = None


class AdjustRequest(ApiModel):
    product_sku: str = Field(min_length=1)
    quantity: int
    type: Literal["manual_decrease", "manual_adjustment"] = "manual_decrease"
    notes: str | None = None
    store_id: str | None = None


class AdjustResponse(ApiModel):
    success: bool = True
    new_quantity: int
    inventory: BalanceOut
    transaction: TransactionOut


class ReceiveRequest(ApiModel):
    lines: list[CaseLineIn] = Field(min_length=1)
    type: Literal["restock", "initial_stock", "trial_kit"] = "restock"
    org_id: str | None = None
    notes: str | None = None
    store_id: str | None = None


class ReceiveResponse(ApiModel):
    success: bool
    lines: list[ConvertedLineOut]
    inventory: list[BalanceOut]
    errors: list[LineErrorOut]


# ---------------------------------------------------------------------------
# Wholesale
# ---------------------------------------------------------------------------


class WholesaleItemOut(ApiModel):
    id: UUID
    line_number: int
    case_sku: str
    case_quantity: int
    retail_sku: str
    retail_name: str
    units_per_case: int
    retail_units: int
    received_units: int | None = None


class WholesaleOrderOut(ApiModel):
    id: UUID
    external_order_id: str
    store_id: str
    org_id: str | None = None
    status: WholesaleOrderStatus
    tracking_number: str | None = None
    fulfilled_at: datetime | None = None
    delivered_at: datetime | None = None
    received_at: datetime | None = None
    expected_units: int
    items: list[WholesaleItemOut]


class PendingOrderResponse(ApiModel):
    order: WholesaleOrderOut


class VerifyReceiptRequest(ApiModel):
    received_quantities: dict[str, int] = Field(default_factory=dict)
    notes: str | None = None
    verified_by: str | None = None


class ReceiptLineOut(ApiModel):
    item_id: UUID
    retail_sku: str
    expected_units: int
    received_units: int
    discrepancy: int


class VerifyReceiptResponse(ApiModel):
    success: bool
    items_verified: int
    status: WholesaleOrderStatus
    discrepancies: dict[str, int]
    lines: list[ReceiptLineOut]
    errors: list[LineErrorOut]


class FulfillmentRequest(ApiModel):
    external_order_id: str = Field(min_length=1)
    store_id: str = Field(min_length=1)
    lines: list[CaseLineIn]
    org_id: str | None = None
    tracking_number: str | None = None
    fulfilled_at: datetime | None = None


class FulfillmentResponse(ApiModel):
    order_id: UUID | None
    status: WholesaleOrderStatus | None
    verification_token: str | None
    already_processed: bool
    lines: list[ConvertedLineOut]
    errors: list[LineErrorOut]


class HealthResponse(ApiModel):
    status: str
    database: str
    version: str


class PendingOrderListResponse(ApiModel):
    orders: list[WholesaleOrderOut]

"""
Wholesale endpoints.

``/wholesale/fulfillments`` receives the normalized "case order fulfilled"
event after the webhook layer has verified its signature.  The verify pair
is addressed by the emailed verification token, which is the credential;
no store cookie is required.  The pending-order listing is store scoped.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from inventory_api.dependencies import (
    InventoryGateway,
    StoreIdentity,
    current_store,
    get_gateway,
)
from inventory_api.schemas import (
    ConvertedLineOut,
    FulfillmentRequest,
    FulfillmentResponse,
    LineErrorOut,
    PendingOrderListResponse,
    PendingOrderResponse,
    ReceiptLineOut,
    VerifyReceiptRequest,
    VerifyReceiptResponse,
    WholesaleOrderOut,
)
from inventory_kernel.domain.types import CaseLine, CaseOrderFulfilled
from inventory_kernel.logging_config import LogContext

router = APIRouter(prefix="/wholesale", tags=["wholesale"])


@router.post("/fulfillments", response_model=FulfillmentResponse)
def record_fulfillment(
    body: FulfillmentRequest,
    gateway: InventoryGateway = Depends(get_gateway),
) -> FulfillmentResponse:
    event = CaseOrderFulfilled(
        external_order_id=body.external_order_id,
        store_id=body.store_id,
        lines=tuple(CaseLine(line.case_sku, line.case_quantity) for line in body.lines),
        org_id=body.org_id,
        tracking_number=body.tracking_number,
        fulfilled_at=body.fulfilled_at,
    )
    with LogContext.bind(store_id=body.store_id, order_id=body.external_order_id):
        with gateway.unit_of_work() as services:
            result = services.wholesale.mark_incoming(event)
    return FulfillmentResponse(
        order_id=result.order_id,
        status=result.status,
        verification_token=result.verification_token,
        already_processed=result.already_processed,
        lines=[ConvertedLineOut.model_validate(line) for line in result.lines],
        errors=[LineErrorOut.model_validate(e) for e in result.errors],
    )


@router.post("/orders/{order_id}/delivered", response_model=WholesaleOrderOut)
def mark_delivered(
    order_id: UUID,
    gateway: InventoryGateway = Depends(get_gateway),
) -> WholesaleOrderOut:
    with gateway.unit_of_work() as services:
        order = services.wholesale.mark_delivered(order_id)
    return WholesaleOrderOut.model_validate(order)


@router.get("/orders/pending", response_model=PendingOrderListResponse)
def list_pending_orders(
    store: StoreIdentity = Depends(current_store),
    gateway: InventoryGateway = Depends(get_gateway),
) -> PendingOrderListResponse:
    with gateway.unit_of_work() as services:
        orders = services.orders.list_pending_receipt(store.store_id)
    return PendingOrderListResponse(
        orders=[WholesaleOrderOut.model_validate(order) for order in orders]
    )


@router.get("/verify/{token}", response_model=PendingOrderResponse)
def get_pending_order(
    token: str,
    gateway: InventoryGateway = Depends(get_gateway),
) -> PendingOrderResponse:
    with gateway.unit_of_work() as services:
        order = services.wholesale.get_pending_receipt(token)
    return PendingOrderResponse(order=WholesaleOrderOut.model_validate(order))


@router.post("/verify/{token}", response_model=VerifyReceiptResponse)
def verify_receipt(
    token: str,
    body: VerifyReceiptRequest,
    gateway: InventoryGateway = Depends(get_gateway),
) -> VerifyReceiptResponse:
    with gateway.unit_of_work() as services:
        result = services.wholesale.verify_receipt(
            token=token,
            received_quantities=body.received_quantities,
            notes=body.notes,
            actor=body.verified_by,
        )
    return VerifyReceiptResponse(
        success=not result.errors,
        items_verified=len(result.lines),
        status=result.status,
        discrepancies=result.discrepancies,
        lines=[ReceiptLineOut.model_validate(line) for line in result.lines],
        errors=[LineErrorOut.model_validate(e) for e in result.errors],
    )

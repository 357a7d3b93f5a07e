"""Customer hold endpoints: create, resolve and list 24-hour holds."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from inventory_api.dependencies import (
    InventoryGateway,
    StoreIdentity,
    current_store,
    get_gateway,
)
from inventory_api.schemas import (
    CreateHoldRequest,
    CreateHoldResponse,
    HoldListResponse,
    HoldOut,
    ResolveHoldRequest,
    ResolveHoldResponse,
)
from inventory_kernel.domain.types import HoldStatus
from inventory_kernel.exceptions import HoldNotFoundError

router = APIRouter(prefix="/inventory/holds", tags=["holds"])


@router.post("", response_model=CreateHoldResponse, status_code=status.HTTP_201_CREATED)
def create_hold(
    body: CreateHoldRequest,
    store: StoreIdentity = Depends(current_store),
    gateway: InventoryGateway = Depends(get_gateway),
) -> CreateHoldResponse:
    store_id = store.authorize(body.store_id)
    with gateway.unit_of_work() as services:
        hold = services.holds.create_hold(
            store_id,
            body.customer_id,
            body.product_sku,
            quantity=body.quantity,
        )
    return CreateHoldResponse(hold=HoldOut.model_validate(hold), expires_at=hold.expires_at)


@router.patch("/{hold_id}", response_model=ResolveHoldResponse)
def resolve_hold(
    hold_id: UUID,
    body: ResolveHoldRequest,
    store: StoreIdentity = Depends(current_store),
    gateway: InventoryGateway = Depends(get_gateway),
) -> ResolveHoldResponse:
    with gateway.unit_of_work() as services:
        existing = services.hold_reads.get(hold_id)
        # Another store's hold reads as missing.
        if existing is None or existing.store_id != store.store_id:
            raise HoldNotFoundError(str(hold_id))
        hold = services.holds.resolve_hold(hold_id, body.action, actor=store.role)
    return ResolveHoldResponse(hold=HoldOut.model_validate(hold), action=body.action)


@router.get("", response_model=HoldListResponse)
def list_holds(
    store_id: str | None = Query(default=None, alias="storeId"),
    hold_status: HoldStatus | None = Query(default=HoldStatus.ACTIVE, alias="status"),
    store: StoreIdentity = Depends(current_store),
    gateway: InventoryGateway = Depends(get_gateway),
) -> HoldListResponse:
    effective_store = store.authorize(store_id)
    with gateway.unit_of_work() as services:
        services.holds.expire_due_holds(store_id=effective_store)
        holds = services.holds.list_holds(effective_store, hold_status)
    return HoldListResponse(holds=[HoldOut.model_validate(h) for h in holds])

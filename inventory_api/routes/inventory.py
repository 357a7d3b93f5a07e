"""Stock endpoints: balances, ledger history, manual decreases, direct receipts."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from inventory_api.dependencies import (
    InventoryGateway,
    StoreIdentity,
    current_store,
    get_gateway,
)
from inventory_api.schemas import (
    AdjustRequest,
    AdjustResponse,
    BalanceOut,
    ConvertedLineOut,
    HistoryResponse,
    InventoryListResponse,
    LineErrorOut,
    ReceiveRequest,
    ReceiveResponse,
    TransactionOut,
)
from inventory_kernel.domain.types import CaseLine, TransactionType

router = APIRouter(prefix="/inventory", tags=["inventory"])


@router.get("", response_model=InventoryListResponse)
def list_inventory(
    store_id: str | None = Query(default=None, alias="storeId"),
    store: StoreIdentity = Depends(current_store),
    gateway: InventoryGateway = Depends(get_gateway),
) -> InventoryListResponse:
    effective_store = store.authorize(store_id)
    with gateway.unit_of_work() as services:
        balances = services.inventory.list_store(effective_store)
    return InventoryListResponse(
        store_id=effective_store,
        inventory=[BalanceOut.model_validate(b) for b in balances],
    )


@router.get("/history", response_model=HistoryResponse)
def history(
    product_sku: str | None = Query(default=None, alias="productSku"),
    transaction_type: TransactionType | None = Query(default=None, alias="type"),
    limit: int = Query(default=50, ge=1, le=500),
    store_id: str | None = Query(default=None, alias="storeId"),
    store: StoreIdentity = Depends(current_store),
    gateway: InventoryGateway = Depends(get_gateway),
) -> HistoryResponse:
    effective_store = store.authorize(store_id)
    with gateway.unit_of_work() as services:
        transactions = services.inventory.history(
            effective_store,
            product_sku=product_sku,
            transaction_type=transaction_type,
            limit=limit,
        )
        balance = (
            services.inventory.get_balance(effective_store, product_sku)
            if product_sku
            else None
        )
    return HistoryResponse(
        transactions=[TransactionOut.model_validate(t) for t in transactions],
        inventory=BalanceOut.model_validate(balance) if balance else None,
    )


@router.post("/adjust", response_model=AdjustResponse)
def adjust(
    body: AdjustRequest,
    store: StoreIdentity = Depends(current_store),
    gateway: InventoryGateway = Depends(get_gateway),
) -> AdjustResponse:
    store_id = store.authorize(body.store_id)
    with gateway.unit_of_work() as services:
        posting = services.adjustments.adjust_down(
            store_id,
            body.product_sku,
            body.quantity,
            reason=body.notes,
            actor=store.role,
        )
        transaction = services.inventory.get_transaction(posting.transaction_id)
    return AdjustResponse(
        new_quantity=posting.balance.quantity_on_hand,
        inventory=BalanceOut.model_validate(posting.balance),
        transaction=TransactionOut.model_validate(transaction),
    )


@router.post("/receive", response_model=ReceiveResponse)
def receive(
    body: ReceiveRequest,
    store: StoreIdentity = Depends(current_store),
    gateway: InventoryGateway = Depends(get_gateway),
) -> ReceiveResponse:
    store_id = store.authorize(body.store_id)
    with gateway.unit_of_work() as services:
        result = services.wholesale.receive_direct(
            store_id,
            body.org_id,
            [CaseLine(line.case_sku, line.case_quantity) for line in body.lines],
            kind=TransactionType(body.type),
            notes=body.notes,
            actor=store.role,
        )
    return ReceiveResponse(
        success=not result.errors,
        lines=[ConvertedLineOut.model_validate(line) for line in result.lines],
        inventory=[BalanceOut.model_validate(p.balance) for p in result.postings],
        errors=[LineErrorOut.model_validate(e) for e in result.errors],
    )

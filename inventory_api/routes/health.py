from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import text

from inventory_api.dependencies import InventoryGateway, get_gateway
from inventory_api.schemas import HealthResponse
from inventory_kernel import __version__

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health(gateway: InventoryGateway = Depends(get_gateway)) -> HealthResponse:
    with gateway.database.session_scope() as session:
        session.execute(text("SELECT 1"))
    return HealthResponse(status="ok", database=gateway.database.dialect, version=__version__)

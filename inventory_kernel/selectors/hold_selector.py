"""
Module: inventory_kernel.selectors.hold_selector
Responsibility: Read-only queries over customer holds.
Architecture position: Kernel > Selectors.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from inventory_kernel.domain.types import HoldInfo, HoldStatus
from inventory_kernel.models.hold import ProductHold
from inventory_kernel.selectors.base import BaseSelector


class HoldSelector(BaseSelector[ProductHold]):
    """Selector for hold lookups, store listings and the expiry sweep."""

    def __init__(self, session: Session):
        super().__init__(session)

    def get(self, hold_id: UUID) -> HoldInfo | None:
        hold = self.session.get(ProductHold, hold_id)
        return hold.to_dto() if hold is not None else None

    def list_for_store(
        self,
        store_id: str,
        status: HoldStatus | None = HoldStatus.ACTIVE,
    ) -> list[HoldInfo]:
        """Holds of one store, soonest expiry first (None status lists all)."""
        stmt = select(ProductHold).where(ProductHold.store_id == store_id)
        if status is not None:
            stmt = stmt.where(ProductHold.status == status.value)
        stmt = stmt.order_by(ProductHold.expires_at, ProductHold.id)
        return [hold.to_dto() for hold in self.session.execute(stmt).scalars().all()]

    def due_for_expiry(
        self,
        as_of: datetime,
        limit: int | None = None,
        store_id: str | None = None,
    ) -> list[UUID]:
        """Ids of active holds whose expires_at <= as_of, oldest first."""
        stmt = (
            select(ProductHold.id)
            .where(
                ProductHold.status == HoldStatus.ACTIVE.value,
                ProductHold.expires_at <= as_of,
            )
            .order_by(ProductHold.expires_at, ProductHold.id)
        )
        if store_id is not None:
            stmt = stmt.where(ProductHold.store_id == store_id)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.session.execute(stmt).scalars().all())

"""
Module: inventory_kernel.models.hold
Responsibility: ORM persistence for customer product holds (reservations).
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - quantity > 0 (CHECK).
    - A hold in a terminal status is immutable (db/immutability.py).

Failure modes:
    - ImmutabilityViolationError on UPDATE/DELETE of a resolved hold.

Audit relevance:
    Each status transition is mirrored by exactly one InventoryTransaction
    carrying this hold's id.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import TrackedBase, UTCDateTime

if TYPE_CHECKING:
    from inventory_kernel.domain.types import HoldInfo


class ProductHold(TrackedBase):
    """
    A time-limited reservation of units for one customer.

    Contract:
        Created ``active``; leaves ``active`` exactly once, through
        HoldManager.resolve_hold, to picked_up, cancelled or expired.
    """

    __tablename__ = "product_holds"

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_hold_quantity_positive"),
        Index("idx_hold_store_status", "store_id", "status"),
        Index("idx_hold_expires_at", "expires_at"),
        Index("idx_hold_customer", "customer_id"),
    )

    store_id: Mapped[str] = mapped_column(String(100), nullable=False)
    customer_id: Mapped[str] = mapped_column(String(100), nullable=False)
    product_sku: Mapped[str] = mapped_column(String(100), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")

    expires_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    notified_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    picked_up_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    resolved_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<ProductHold {self.id} {self.store_id}/{self.product_sku} "
            f"x{self.quantity} status={self.status}>"
        )

    def to_dto(self) -> HoldInfo:
        """Convert ORM model to frozen domain DTO."""
        from inventory_kernel.domain.types import HoldInfo, HoldStatus

        return HoldInfo(
            id=self.id,
            store_id=self.store_id,
            customer_id=self.customer_id,
            product_sku=self.product_sku,
            quantity=self.quantity,
            status=HoldStatus(self.status),
            expires_at=self.expires_at,
            created_at=self.created_at,
            notified_at=self.notified_at,
            picked_up_at=self.picked_up_at,
            resolved_at=self.resolved_at,
        )

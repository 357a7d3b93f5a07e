"""
Module: inventory_kernel.models.wholesale
Responsibility: ORM persistence for wholesale (case-pack) orders and their
    converted line items.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - external_order_id and verification_token are unique.
    - Status progresses placed -> fulfilled -> (delivered) -> received;
      WholesaleConversionEngine refuses a second receipt.

Failure modes:
    - IntegrityError on a duplicate external_order_id (concurrent webhook
      delivery); the engine treats the loser as already processed.

Audit relevance:
    Items keep both the ordered (case) and converted (retail) quantities,
    plus the quantity actually received, so every discrepancy is explainable
    without consulting the commerce platform.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import TrackedBase, UTCDateTime, UUIDString


class WholesaleOrder(TrackedBase):
    """
    A brand-to-store case order, tracked from fulfillment to verified receipt.

    Contract:
        Phase 1 (fulfilled) moves units into the store's incoming counters.
        Phase 2 (received) moves what actually arrived into on-hand, once.
    """

    __tablename__ = "wholesale_orders"

    __table_args__ = (
        UniqueConstraint("external_order_id", name="uq_wholesale_external_order"),
        UniqueConstraint("verification_token", name="uq_wholesale_verification_token"),
        Index("idx_wholesale_store_status", "store_id", "status"),
    )

    external_order_id: Mapped[str] = mapped_column(String(100), nullable=False)
    store_id: Mapped[str] = mapped_column(String(100), nullable=False)
    org_id: Mapped[str | None] = mapped_column(String(100), nullable=True)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="placed")

    verification_token: Mapped[str | None] = mapped_column(String(64), nullable=True)
    tracking_number: Mapped[str | None] = mapped_column(String(100), nullable=True)

    fulfilled_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    delivered_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    received_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    receipt_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    items: Mapped[list["WholesaleOrderItem"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="WholesaleOrderItem.line_number",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return (
            f"<WholesaleOrder {self.external_order_id} store={self.store_id} "
            f"status={self.status}>"
        )


class WholesaleOrderItem(TrackedBase):
    """One case line of a wholesale order, with its retail conversion."""

    __tablename__ = "wholesale_order_items"

    __table_args__ = (
        UniqueConstraint("order_id", "line_number", name="uq_wholesale_item_line"),
    )

    order_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("wholesale_orders.id"),
        nullable=False,
    )
    line_number: Mapped[int] = mapped_column(Integer, nullable=False)

    case_sku: Mapped[str] = mapped_column(String(100), nullable=False)
    case_quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    retail_sku: Mapped[str] = mapped_column(String(100), nullable=False)
    retail_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    units_per_case: Mapped[int] = mapped_column(Integer, nullable=False)

    # Expected units (case_quantity * units_per_case)
    retail_units: Mapped[int] = mapped_column(Integer, nullable=False)

    # Set once, when the store verifies receipt
    received_units: Mapped[int | None] = mapped_column(Integer, nullable=True)
    received_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    order: Mapped[WholesaleOrder] = relationship(back_populates="items")

    @property
    def is_reconciled(self) -> bool:
        return self.received_units is not None

    def __repr__(self) -> str:
        return (
            f"<WholesaleOrderItem {self.case_sku} x{self.case_quantity} -> "
            f"{self.retail_sku} x{self.retail_units}>"
        )

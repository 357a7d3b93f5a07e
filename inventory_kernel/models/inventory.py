"""
Module: inventory_kernel.models.inventory
Responsibility: ORM persistence for per-store stock counters and the
    append-only inventory transaction ledger.
Architecture position: Kernel > Models.  May import from db/base.py only
    (domain DTOs are imported lazily inside to_dto()).  MUST NOT import from
    services/, selectors/, or outer layers.

Invariants enforced:
    - One InventoryRecord per (store_id, product_sku) (UNIQUE constraint).
    - Counter invariants backed by CHECK constraints:
        quantity_available = quantity_on_hand - quantity_reserved
        0 <= quantity_reserved <= quantity_on_hand
        quantity_incoming >= 0
    - InventoryTransaction rows are immutable from creation (ORM listeners
      in db/immutability.py).
    - (store_id, product_sku, sequence) is unique: the ledger of one record
      is totally ordered.

Failure modes:
    - IntegrityError on a CHECK violation (only reachable by bypassing
      InventoryLedger).
    - IntegrityError on a concurrent first insert of the same (store, SKU);
      InventoryLedger retries by locking the winner's row.
    - ImmutabilityViolationError on UPDATE/DELETE of a transaction row.

Audit relevance:
    InventoryTransaction is the audit trail of every stock change.  Replaying
    (quantity, reserved_delta, incoming_delta) by sequence reconstructs the
    record's counters exactly.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, TrackedBase, UTCDateTime, UUIDString

if TYPE_CHECKING:
    from inventory_kernel.domain.types import InventoryBalance, TransactionInfo


class InventoryRecord(TrackedBase):
    """
    Stock counters for one (store, SKU) pair.

    Contract:
        Mutated ONLY by InventoryLedger.apply_delta under a row lock.
        Created lazily with all counters at zero; never deleted.

    Guarantees:
        - quantity_available is always on_hand - reserved (CHECK).
        - ``version`` counts applied mutations and numbers ledger rows.

    Non-goals:
        - Does not know about holds or orders beyond pending_order_id.
    """

    __tablename__ = "inventory_records"

    __table_args__ = (
        UniqueConstraint("store_id", "product_sku", name="uq_inventory_store_sku"),
        CheckConstraint("quantity_on_hand >= 0", name="ck_inventory_on_hand_non_negative"),
        CheckConstraint("quantity_reserved >= 0", name="ck_inventory_reserved_non_negative"),
        CheckConstraint(
            "quantity_reserved <= quantity_on_hand",
            name="ck_inventory_reserved_within_on_hand",
        ),
        CheckConstraint("quantity_incoming >= 0", name="ck_inventory_incoming_non_negative"),
        CheckConstraint(
            "quantity_available = quantity_on_hand - quantity_reserved",
            name="ck_inventory_available_derived",
        ),
        Index("idx_inventory_store", "store_id"),
    )

    store_id: Mapped[str] = mapped_column(String(100), nullable=False)
    product_sku: Mapped[str] = mapped_column(String(100), nullable=False)

    quantity_on_hand: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    quantity_reserved: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    quantity_available: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    quantity_incoming: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Last wholesale order that put units into quantity_incoming
    pending_order_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("wholesale_orders.id"),
        nullable=True,
    )

    last_restocked_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime(),
        nullable=True,
    )

    # Number of applied mutations; also the sequence of the latest ledger row
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return (
            f"<InventoryRecord {self.store_id}/{self.product_sku} "
            f"on_hand={self.quantity_on_hand} reserved={self.quantity_reserved} "
            f"incoming={self.quantity_incoming}>"
        )

    def to_dto(self) -> InventoryBalance:
        """Convert ORM model to frozen domain DTO."""
        from inventory_kernel.domain.types import InventoryBalance

        return InventoryBalance(
            store_id=self.store_id,
            product_sku=self.product_sku,
            quantity_on_hand=self.quantity_on_hand,
            quantity_reserved=self.quantity_reserved,
            quantity_available=self.quantity_available,
            quantity_incoming=self.quantity_incoming,
            pending_order_id=self.pending_order_id,
            last_restocked_at=self.last_restocked_at,
            version=self.version,
        )


class InventoryTransaction(Base):
    """
    One immutable ledger row per successful inventory mutation.

    Contract:
        ``quantity`` is the signed primary delta: the on-hand delta when
        non-zero, otherwise the reserved delta, otherwise the incoming delta.
        ``reserved_delta`` and ``incoming_delta`` record the rest of the same
        mutation.  ``balance_after`` is the on-hand count after it.

    Guarantees:
        - Immutable from creation (ORM listeners).
        - ``created_at`` comes from the injected Clock, not the database.
    """

    __tablename__ = "inventory_transactions"

    __table_args__ = (
        UniqueConstraint(
            "store_id", "product_sku", "sequence", name="uq_inventory_txn_sequence"
        ),
        Index("idx_inventory_txn_store_sku_created", "store_id", "product_sku", "created_at"),
        Index("idx_inventory_txn_type", "type"),
        Index("idx_inventory_txn_hold", "hold_id"),
        Index("idx_inventory_txn_order", "wholesale_order_id"),
    )

    store_id: Mapped[str] = mapped_column(String(100), nullable=False)
    product_sku: Mapped[str] = mapped_column(String(100), nullable=False)

    type: Mapped[str] = mapped_column(String(30), nullable=False)

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    reserved_delta: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    incoming_delta: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    balance_after: Mapped[int] = mapped_column(Integer, nullable=False)

    sequence: Mapped[int] = mapped_column(Integer, nullable=False)

    customer_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    actor: Mapped[str | None] = mapped_column(String(100), nullable=True)

    hold_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("product_holds.id"),
        nullable=True,
    )
    wholesale_order_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("wholesale_orders.id"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    def __repr__(self) -> str:
        return (
            f"<InventoryTransaction {self.store_id}/{self.product_sku} "
            f"#{self.sequence} {self.type} {self.quantity:+d}>"
        )

    def to_dto(self) -> TransactionInfo:
        """Convert ORM model to frozen domain DTO."""
        from inventory_kernel.domain.types import TransactionInfo, TransactionType

        return TransactionInfo(
            id=self.id,
            store_id=self.store_id,
            product_sku=self.product_sku,
            type=TransactionType(self.type),
            quantity=self.quantity,
            reserved_delta=self.reserved_delta,
            incoming_delta=self.incoming_delta,
            balance_after=self.balance_after,
            sequence=self.sequence,
            created_at=self.created_at,
            customer_id=self.customer_id,
            expires_at=self.expires_at,
            notes=self.notes,
            actor=self.actor,
            hold_id=self.hold_id,
            wholesale_order_id=self.wholesale_order_id,
        )

"""
Module: inventory_kernel.selectors.inventory_selector
Responsibility: Read-only access to stock counters and the transaction ledger.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Ledger history is returned newest first by (created_at, sequence), so
      rows written at the same clock instant keep their mutation order.

Audit relevance:
    ``replay_balance`` folds the ledger of one record back into counters.
    Equality with the stored record is the ledger's completeness check.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from inventory_kernel.domain.types import (
    InventoryBalance,
    TransactionInfo,
    TransactionType,
)
from inventory_kernel.models.inventory import InventoryRecord, InventoryTransaction
from inventory_kernel.selectors.base import BaseSelector


class InventorySelector(BaseSelector[InventoryRecord]):
    """
    Selector for stock counters and ledger history.

    Guarantees:
        - ``get_balance`` never creates a record; missing pairs read as None.
    """

    def __init__(self, session: Session):
        super().__init__(session)

    def get_balance(self, store_id: str, product_sku: str) -> InventoryBalance | None:
        record = self.session.execute(
            select(InventoryRecord).where(
                InventoryRecord.store_id == store_id,
                InventoryRecord.product_sku == product_sku,
            )
        ).scalar_one_or_none()
        return record.to_dto() if record is not None else None

    def list_store(self, store_id: str) -> list[InventoryBalance]:
        records = self.session.execute(
            select(InventoryRecord)
            .where(InventoryRecord.store_id == store_id)
            .order_by(InventoryRecord.product_sku)
        ).scalars().all()
        return [record.to_dto() for record in records]

    def get_transaction(self, transaction_id: UUID) -> TransactionInfo | None:
        txn = self.session.get(InventoryTransaction, transaction_id)
        return txn.to_dto() if txn is not None else None

    def history(
        self,
        store_id: str,
        product_sku: str | None = None,
        transaction_type: TransactionType | None = None,
        limit: int = 50,
    ) -> list[TransactionInfo]:
        """Ledger rows for a store, newest first."""
        stmt = select(InventoryTransaction).where(InventoryTransaction.store_id == store_id)
        if product_sku is not None:
            stmt = stmt.where(InventoryTransaction.product_sku == product_sku)
        if transaction_type is not None:
            stmt = stmt.where(InventoryTransaction.type == transaction_type.value)
        stmt = stmt.order_by(
            InventoryTransaction.created_at.desc(),
            InventoryTransaction.sequence.desc(),
        ).limit(limit)
        return [txn.to_dto() for txn in self.session.execute(stmt).scalars().all()]

    def ledger_for(self, store_id: str, product_sku: str) -> list[TransactionInfo]:
        """Full ledger of one record in mutation order."""
        rows = self.session.execute(
            select(InventoryTransaction)
            .where(
                InventoryTransaction.store_id == store_id,
                InventoryTransaction.product_sku == product_sku,
            )
            .order_by(InventoryTransaction.sequence)
        ).scalars().all()
        return [txn.to_dto() for txn in rows]

    def replay_balance(self, store_id: str, product_sku: str) -> InventoryBalance:
        """Rebuild counters from the ledger alone."""
        on_hand = reserved = incoming = 0
        ledger = self.ledger_for(store_id, product_sku)
        for txn in ledger:
            on_hand = txn.balance_after
            reserved += txn.reserved_delta
            incoming += txn.incoming_delta
        return InventoryBalance(
            store_id=store_id,
            product_sku=product_sku,
            quantity_on_hand=on_hand,
            quantity_reserved=reserved,
            quantity_available=on_hand - reserved,
            quantity_incoming=incoming,
            version=len(ledger),
        )

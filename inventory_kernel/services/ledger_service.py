"""
InventoryLedger -- the single mutation primitive for stock counters.

Responsibility:
    Applies a signed (on_hand, reserved, incoming) delta to one
    (store, SKU) record and appends exactly one InventoryTransaction, in
    the caller's transaction.  Every other service mutates stock through
    ``apply_delta`` and nothing else.

Architecture position:
    Kernel > Services.  Called by HoldManager, AdjustmentService and
    WholesaleConversionEngine.

Invariants enforced:
    AVAILABLE_DERIVED        -- available recomputed on every mutation.
    NON_NEGATIVE_COUNTERS    -- checked before anything is written.
    RESERVED_WITHIN_ON_HAND  -- checked before anything is written.
    ONE_ENTRY_PER_MUTATION   -- one ledger row, balance_after = on_hand.
    SERIALIZED_PER_KEY       -- ``SELECT ... FOR UPDATE`` on the record,
                                held until the caller commits.

Failure modes:
    - InsufficientInventoryError: on-hand would go negative, or reserved
      would exceed on-hand.  ``available`` is the pre-mutation figure the
      caller can show; ``requested`` is how much the mutation asked for.
    - InvariantViolationError: reserved or incoming would go negative.
    - IntegrityError on a concurrent first insert is absorbed: the savepoint
      is rolled back and the winner's row is locked instead.

Audit relevance:
    ``ledger_delta_applied`` is logged at INFO with all three deltas and
    the resulting counters.  Each ledger row carries a per-record
    ``sequence`` equal to the record's version after the mutation.
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from inventory_kernel.domain.clock import Clock
from inventory_kernel.domain.types import (
    InventoryBalance,
    LedgerContext,
    LedgerPosting,
    PendingOrderAction,
    TransactionType,
)
from inventory_kernel.exceptions import (
    InsufficientInventoryError,
    InvariantViolationError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.inventory import InventoryRecord, InventoryTransaction
from inventory_kernel.services.base import BaseService

logger = get_logger("services.ledger")


def primary_delta(on_hand_delta: int, reserved_delta: int, incoming_delta: int) -> int:
    """The delta recorded in InventoryTransaction.quantity."""
    if on_hand_delta:
        return on_hand_delta
    if reserved_delta:
        return reserved_delta
    return incoming_delta


class InventoryLedger(BaseService[InventoryRecord]):
    """
    Atomic counter mutation with an append-only audit row.

    Contract:
        ``apply_delta`` either applies the whole mutation (counters, side
        directives, ledger row) or raises with nothing written.

    Guarantees:
        - Different (store, SKU) keys lock different rows and never contend.
        - A missing record is created lazily, but only once the mutation is
          known to be valid against an all-zero record.

    Non-goals:
        - Does NOT decide business policy (decrease-only adjustments, hold
          availability rules); callers do that before calling.
        - Does NOT commit.
    """

    def __init__(self, session: Session, clock: Clock):
        super().__init__(session, clock)

    def _lock(self, store_id: str, product_sku: str) -> InventoryRecord | None:
        return self.session.execute(
            select(InventoryRecord)
            .where(
                InventoryRecord.store_id == store_id,
                InventoryRecord.product_sku == product_sku,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def _create(self, store_id: str, product_sku: str) -> InventoryRecord:
        """Insert a zero record, or lock the one a concurrent writer created."""
        savepoint = self.session.begin_nested()
        try:
            record = InventoryRecord(
                store_id=store_id,
                product_sku=product_sku,
                quantity_on_hand=0,
                quantity_reserved=0,
                quantity_available=0,
                quantity_incoming=0,
                version=0,
            )
            self.session.add(record)
            self.session.flush()
            savepoint.commit()
            logger.debug(
                "inventory_record_created",
                extra={"store_id": store_id, "product_sku": product_sku},
            )
            return record
        except IntegrityError:
            logger.debug(
                "inventory_record_race_retry",
                extra={"store_id": store_id, "product_sku": product_sku},
            )
            savepoint.rollback()
            record = self._lock(store_id, product_sku)
            if record is None:
                raise
            return record

    def _validate(
        self,
        store_id: str,
        product_sku: str,
        on_hand: int,
        reserved: int,
        incoming: int,
        on_hand_delta: int,
        reserved_delta: int,
        incoming_delta: int,
    ) -> None:
        new_on_hand = on_hand + on_hand_delta
        new_reserved = reserved + reserved_delta
        new_incoming = incoming + incoming_delta

        if new_on_hand < 0:
            raise InsufficientInventoryError(
                store_id, product_sku, available=on_hand, requested=-on_hand_delta
            )
        if new_reserved < 0:
            raise InvariantViolationError(
                store_id, product_sku, "quantity_reserved", new_reserved
            )
        if new_incoming < 0:
            raise InvariantViolationError(
                store_id, product_sku, "quantity_incoming", new_incoming
            )
        if new_reserved > new_on_hand:
            raise InsufficientInventoryError(
                store_id,
                product_sku,
                available=on_hand - reserved,
                requested=reserved_delta - on_hand_delta,
            )

    def apply_delta(
        self,
        store_id: str,
        product_sku: str,
        kind: TransactionType,
        on_hand_delta: int = 0,
        reserved_delta: int = 0,
        incoming_delta: int = 0,
        context: LedgerContext | None = None,
    ) -> LedgerPosting:
        """
        Apply one mutation to the (store, SKU) record.

        Preconditions:
            - The caller is inside a transaction it will commit or roll back.

        Postconditions:
            - quantity_available == quantity_on_hand - quantity_reserved.
            - Exactly one new InventoryTransaction whose balance_after is the
              new quantity_on_hand and whose sequence is the new version.

        Raises:
            InsufficientInventoryError: on-hand < 0 or reserved > on-hand.
            InvariantViolationError: reserved < 0 or incoming < 0.
        """
        context = context or LedgerContext()

        record = self._lock(store_id, product_sku)
        if record is None:
            self._validate(
                store_id, product_sku, 0, 0, 0,
                on_hand_delta, reserved_delta, incoming_delta,
            )
            record = self._create(store_id, product_sku)

        self._validate(
            store_id,
            product_sku,
            record.quantity_on_hand,
            record.quantity_reserved,
            record.quantity_incoming,
            on_hand_delta,
            reserved_delta,
            incoming_delta,
        )

        now = self._clock.now()

        record.quantity_on_hand += on_hand_delta
        record.quantity_reserved += reserved_delta
        record.quantity_incoming += incoming_delta
        record.quantity_available = record.quantity_on_hand - record.quantity_reserved
        record.version += 1

        match context.pending_order:
            case PendingOrderAction.KEEP:
                pass
            case PendingOrderAction.SET:
                record.pending_order_id = context.wholesale_order_id
            case PendingOrderAction.CLEAR:
                if record.pending_order_id == context.wholesale_order_id:
                    record.pending_order_id = None
            case _:
                raise ValueError(f"Unknown pending order action: {context.pending_order}")

        if context.restocked:
            record.last_restocked_at = now

        txn = InventoryTransaction(
            store_id=store_id,
            product_sku=product_sku,
            type=kind.value,
            quantity=primary_delta(on_hand_delta, reserved_delta, incoming_delta),
            reserved_delta=reserved_delta,
            incoming_delta=incoming_delta,
            balance_after=record.quantity_on_hand,
            sequence=record.version,
            customer_id=context.customer_id,
            expires_at=context.expires_at,
            notes=context.notes,
            actor=context.actor,
            hold_id=context.hold_id,
            wholesale_order_id=context.wholesale_order_id,
            created_at=now,
        )
        self.session.add(txn)
        self.session.flush()

        logger.info(
            "ledger_delta_applied",
            extra={
                "store_id": store_id,
                "product_sku": product_sku,
                "transaction_type": kind.value,
                "on_hand_delta": on_hand_delta,
                "reserved_delta": reserved_delta,
                "incoming_delta": incoming_delta,
                "quantity_on_hand": record.quantity_on_hand,
                "quantity_reserved": record.quantity_reserved,
                "quantity_incoming": record.quantity_incoming,
                "sequence": record.version,
            },
        )

        return LedgerPosting(balance=record.to_dto(), transaction_id=txn.id)

    def get_locked_balance(self, store_id: str, product_sku: str) -> InventoryBalance | None:
        """Lock and read a record without mutating it (None if missing)."""
        record = self._lock(store_id, product_sku)
        return record.to_dto() if record is not None else None

"""
HoldManager -- customer reservations with a one-way state machine.

Responsibility:
    Creates holds that move units from available to reserved for a fixed
    time-to-live, and resolves them exactly once: picked up (the units
    leave the store), cancelled or expired (the units return to available).

Architecture position:
    Kernel > Services.  Mutates stock only through InventoryLedger.

Invariants enforced:
    HOLD_RESOLVED_ONCE -- the hold row is locked (``SELECT ... FOR UPDATE``)
        before its status is checked, so two concurrent resolvers cannot
        both see ``active``.
    Each create/resolve runs in a SAVEPOINT: the hold row and its ledger row
    are written together or not at all.

Failure modes:
    - InvalidHoldQuantityError: quantity <= 0.
    - InsufficientInventoryError: available < requested (from the ledger).
    - HoldNotFoundError / HoldNotActiveError on resolve.

Audit relevance:
    Every transition posts one InventoryTransaction carrying the hold id and
    customer id.  ``hold_created`` / ``hold_resolved`` are logged at INFO.
"""

from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from inventory_kernel.domain.clock import Clock
from inventory_kernel.domain.types import (
    HoldInfo,
    HoldOutcome,
    HoldStatus,
    LedgerContext,
    TransactionType,
)
from inventory_kernel.exceptions import (
    HoldNotActiveError,
    HoldNotFoundError,
    InventoryKernelError,
    InvalidHoldQuantityError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.hold import ProductHold
from inventory_kernel.selectors.hold_selector import HoldSelector
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.ledger_service import InventoryLedger

logger = get_logger("services.holds")

DEFAULT_HOLD_TTL = timedelta(hours=24)


class HoldManager(BaseService[ProductHold]):
    """
    Hold lifecycle: active -> {picked_up, cancelled, expired}.

    Contract:
        ``create_hold`` reserves units; ``resolve_hold`` releases or sells
        them.  Terminal holds never change again.

    Guarantees:
        - An expired-but-unresolved hold still counts as reserved until
          ``expire_due_holds`` (or an explicit resolve) runs.

    Non-goals:
        - Does NOT send customer notifications; ``notified_at`` only records
          that the notification collaborator was handed the hold.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock,
        ledger: InventoryLedger | None = None,
        ttl: timedelta = DEFAULT_HOLD_TTL,
    ):
        super().__init__(session, clock)
        self._ledger = ledger or InventoryLedger(session, clock)
        self._selector = HoldSelector(session)
        self._ttl = ttl

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def create_hold(
        self,
        store_id: str,
        customer_id: str,
        product_sku: str,
        quantity: int = 1,
    ) -> HoldInfo:
        """
        Reserve ``quantity`` units for a customer.

        Raises:
            InvalidHoldQuantityError: quantity <= 0.
            InsufficientInventoryError: fewer than ``quantity`` available;
                nothing is written.
        """
        if quantity <= 0:
            raise InvalidHoldQuantityError(quantity)

        now = self._clock.now()
        expires_at = now + self._ttl

        with self.session.begin_nested():
            hold = ProductHold(
                store_id=store_id,
                customer_id=customer_id,
                product_sku=product_sku,
                quantity=quantity,
                status=HoldStatus.ACTIVE.value,
                expires_at=expires_at,
                notified_at=now,
                created_at=now,
            )
            self.session.add(hold)
            self.session.flush()

            self._ledger.apply_delta(
                store_id,
                product_sku,
                TransactionType.HOLD_CREATED,
                reserved_delta=quantity,
                context=LedgerContext(
                    notes=f"{self._ttl_label()} hold created for customer - {quantity} unit(s)",
                    customer_id=customer_id,
                    expires_at=expires_at,
                    hold_id=hold.id,
                ),
            )

        logger.info(
            "hold_created",
            extra={
                "hold_id": str(hold.id),
                "store_id": store_id,
                "product_sku": product_sku,
                "quantity": quantity,
                "expires_at": expires_at,
            },
        )
        return hold.to_dto()

    def resolve_hold(
        self,
        hold_id: UUID,
        outcome: HoldOutcome,
        actor: str | None = None,
    ) -> HoldInfo:
        """
        Move an active hold to a terminal state.

        Raises:
            HoldNotFoundError: no hold with this id.
            HoldNotActiveError: the hold was already resolved.
        """
        outcome = HoldOutcome(outcome)
        now = self._clock.now()

        with self.session.begin_nested():
            hold = self.session.execute(
                select(ProductHold)
                .where(ProductHold.id == hold_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            ).scalar_one_or_none()

            if hold is None:
                raise HoldNotFoundError(str(hold_id))
            if hold.status != HoldStatus.ACTIVE.value:
                raise HoldNotActiveError(str(hold_id), str(hold.status))

            quantity = hold.quantity
            match outcome:
                case HoldOutcome.PICKED_UP:
                    on_hand_delta = -quantity
                    notes = f"Hold picked up - {quantity} unit(s) sold"
                case HoldOutcome.CANCELLED | HoldOutcome.EXPIRED:
                    on_hand_delta = 0
                    notes = f"Hold {outcome.value} - {quantity} unit(s) returned to available"
                case _:
                    raise ValueError(f"Unknown hold outcome: {outcome}")

            hold.status = outcome.status.value
            hold.resolved_at = now
            if outcome is HoldOutcome.PICKED_UP:
                hold.picked_up_at = now

            self._ledger.apply_delta(
                hold.store_id,
                hold.product_sku,
                outcome.transaction_type,
                on_hand_delta=on_hand_delta,
                reserved_delta=-quantity,
                context=LedgerContext(
                    notes=notes,
                    customer_id=hold.customer_id,
                    actor=actor,
                    hold_id=hold.id,
                ),
            )

        logger.info(
            "hold_resolved",
            extra={
                "hold_id": str(hold.id),
                "store_id": hold.store_id,
                "product_sku": hold.product_sku,
                "outcome": outcome.value,
                "quantity": quantity,
            },
        )
        return hold.to_dto()

    def expire_due_holds(
        self,
        as_of: datetime | None = None,
        limit: int | None = None,
        store_id: str | None = None,
    ) -> list[UUID]:
        """
        Resolve every active hold with ``expires_at <= as_of`` as expired.

        The hold listing calls this for one store before reading, so holds
        past their expiry never show as active between sweeps.  Each hold is
        resolved in its own savepoint; a failure is logged and the loop moves
        on.  A hold resolved concurrently by someone else is skipped.

        Returns:
            Ids of the holds this call expired.
        """
        as_of = as_of or self._clock.now()
        expired: list[UUID] = []

        for hold_id in self._selector.due_for_expiry(as_of, limit=limit, store_id=store_id):
            try:
                self.resolve_hold(hold_id, HoldOutcome.EXPIRED, actor="system")
            except HoldNotActiveError:
                logger.debug("hold_expiry_skipped", extra={"hold_id": str(hold_id)})
                continue
            except InventoryKernelError:
                logger.exception("hold_expiry_failed", extra={"hold_id": str(hold_id)})
                continue
            expired.append(hold_id)

        logger.info(
            "hold_expiry_sweep_completed",
            extra={"as_of": as_of, "store_id": store_id, "expired_count": len(expired)},
        )
        return expired

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_hold(self, hold_id: UUID) -> HoldInfo:
        hold = self._selector.get(hold_id)
        if hold is None:
            raise HoldNotFoundError(str(hold_id))
        return hold

    def list_holds(
        self, store_id: str, status: HoldStatus | None = HoldStatus.ACTIVE
    ) -> list[HoldInfo]:
        return self._selector.list_for_store(store_id, status)

    def _ttl_label(self) -> str:
        hours = int(self._ttl.total_seconds() // 3600)
        return f"{hours}-hour"

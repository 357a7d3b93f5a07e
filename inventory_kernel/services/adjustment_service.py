"""
AdjustmentService -- decrease-only manual stock corrections.

Responsibility:
    Lets a store write off units (damaged, lost, miscounted).  Increases are
    never accepted here; they must come through wholesale receiving or a
    direct receipt, so every unit added is explained by a shipment.

Architecture position:
    Kernel > Services.  Mutates stock only through InventoryLedger.

Failure modes:
    - InvalidAdjustmentError: magnitude >= 0, raised before the ledger is
      touched.
    - InventoryRecordNotFoundError: the store has never stocked the SKU.
    - InsufficientInventoryError: the decrease exceeds on-hand, or would
      cut into units reserved by customer holds.
"""

from sqlalchemy.orm import Session

from inventory_kernel.domain.clock import Clock
from inventory_kernel.domain.types import LedgerContext, LedgerPosting, TransactionType
from inventory_kernel.exceptions import (
    InsufficientInventoryError,
    InvalidAdjustmentError,
    InventoryRecordNotFoundError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.inventory import InventoryRecord
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.ledger_service import InventoryLedger

logger = get_logger("services.adjustment")


class AdjustmentService(BaseService[InventoryRecord]):
    """
    Manual decrease path.

    Contract:
        ``magnitude`` is the signed delta and must be negative (``-4``
        removes four units).
    """

    def __init__(
        self,
        session: Session,
        clock: Clock,
        ledger: InventoryLedger | None = None,
    ):
        super().__init__(session, clock)
        self._ledger = ledger or InventoryLedger(session, clock)

    def adjust_down(
        self,
        store_id: str,
        product_sku: str,
        magnitude: int,
        reason: str | None = None,
        actor: str | None = None,
    ) -> LedgerPosting:
        if magnitude >= 0:
            raise InvalidAdjustmentError(product_sku, magnitude)

        balance = self._ledger.get_locked_balance(store_id, product_sku)
        if balance is None:
            raise InventoryRecordNotFoundError(store_id, product_sku)

        if balance.quantity_on_hand + magnitude < 0:
            raise InsufficientInventoryError(
                store_id,
                product_sku,
                available=balance.quantity_on_hand,
                requested=-magnitude,
            )

        notes = f"Manual decrease by {actor or 'store'}"
        if reason:
            notes = f"{reason} - {notes}"

        posting = self._ledger.apply_delta(
            store_id,
            product_sku,
            TransactionType.MANUAL_DECREASE,
            on_hand_delta=magnitude,
            context=LedgerContext(notes=notes, actor=actor),
        )

        logger.info(
            "inventory_adjusted_down",
            extra={
                "store_id": store_id,
                "product_sku": product_sku,
                "magnitude": magnitude,
                "quantity_on_hand": posting.balance.quantity_on_hand,
            },
        )
        return posting

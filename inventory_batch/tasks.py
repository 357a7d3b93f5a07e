"""
Batch tasks for the inventory service.

Contract:
    A task splits its work into ``BatchItemInput`` items with
    ``prepare_items()`` and processes ONE item per ``execute_item()`` call.
    The caller owns the transaction: each item runs inside its own SAVEPOINT
    and a failed item is rolled back without touching the others.

Architecture:
    inventory_batch.  Depends on inventory_kernel services; the kernel never
    imports from here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy.orm import Session

from inventory_kernel.domain.clock import DeterministicClock
from inventory_kernel.domain.types import HoldOutcome
from inventory_kernel.exceptions import HoldNotActiveError, InventoryKernelError
from inventory_kernel.selectors.hold_selector import HoldSelector
from inventory_kernel.services.hold_service import HoldManager


class BatchItemStatus(str, Enum):
    """Per-item outcome within a batch run."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"  # Already handled elsewhere


@dataclass(frozen=True)
class BatchItemInput:
    """Input for a single batch item."""

    item_index: int
    item_key: str
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class BatchTaskResult:
    status: BatchItemStatus
    result_data: dict[str, Any] | None = None
    error_code: str | None = None
    error_message: str | None = None


@runtime_checkable
class BatchTask(Protocol):
    """Interface every batch task implements."""

    @property
    def task_type(self) -> str: ...

    @property
    def description(self) -> str: ...

    def prepare_items(
        self,
        parameters: dict[str, Any],
        session: Session,
        as_of: datetime,
    ) -> tuple[BatchItemInput, ...]: ...

    def execute_item(
        self,
        item: BatchItemInput,
        parameters: dict[str, Any],
        session: Session,
        as_of: datetime,
    ) -> BatchTaskResult: ...


class ExpireHoldsTask:
    """
    Expire every active hold whose ``expires_at`` has passed.

    Parameters:
        ``limit`` (optional): maximum number of holds per run.
    """

    @property
    def task_type(self) -> str:
        return "holds.expire"

    @property
    def description(self) -> str:
        return "Release reservations of holds past their expiry"

    def prepare_items(
        self,
        parameters: dict[str, Any],
        session: Session,
        as_of: datetime,
    ) -> tuple[BatchItemInput, ...]:
        hold_ids = HoldSelector(session).due_for_expiry(
            as_of, limit=parameters.get("limit")
        )
        return tuple(
            BatchItemInput(
                item_index=i,
                item_key=str(hold_id),
                payload={"hold_id": str(hold_id)},
            )
            for i, hold_id in enumerate(hold_ids)
        )

    def execute_item(
        self,
        item: BatchItemInput,
        parameters: dict[str, Any],
        session: Session,
        as_of: datetime,
    ) -> BatchTaskResult:
        hold_id = UUID(item.payload["hold_id"])
        holds = HoldManager(session, DeterministicClock(as_of))
        try:
            hold = holds.resolve_hold(hold_id, HoldOutcome.EXPIRED, actor="system")
        except HoldNotActiveError as exc:
            return BatchTaskResult(
                status=BatchItemStatus.SKIPPED,
                error_code=exc.code,
                error_message=str(exc),
            )
        except InventoryKernelError as exc:
            return BatchTaskResult(
                status=BatchItemStatus.FAILED,
                error_code=exc.code,
                error_message=str(exc),
            )
        return BatchTaskResult(
            status=BatchItemStatus.SUCCEEDED,
            result_data={
                "hold_id": str(hold.id),
                "store_id": hold.store_id,
                "product_sku": hold.product_sku,
                "quantity": hold.quantity,
            },
        )

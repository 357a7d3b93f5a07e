"""Background batch work for the inventory service (hold expiry sweep)."""

from inventory_batch.scheduler import HoldSweepScheduler, SweepResult
from inventory_batch.tasks import (
    BatchItemInput,
    BatchItemStatus,
    BatchTask,
    BatchTaskResult,
    ExpireHoldsTask,
)

__all__ = [
    "BatchItemInput",
    "BatchItemStatus",
    "BatchTask",
    "BatchTaskResult",
    "ExpireHoldsTask",
    "HoldSweepScheduler",
    "SweepResult",
]

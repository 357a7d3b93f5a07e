"""
HoldSweepScheduler -- in-process polling sweep for expired holds.

Contract:
    Every ``tick_interval_seconds`` the scheduler opens a session, asks
    ``ExpireHoldsTask`` for the holds due at ``clock.now()`` and expires them
    one SAVEPOINT at a time, then commits.

Invariants enforced:
    - All timestamps come from the injected Clock.
    - One failed item never rolls back the items before it.
    - ``stop()`` is honoured between items; the current item completes.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.orm import Session

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.logging_config import LogContext, get_logger

from inventory_batch.tasks import BatchItemStatus, BatchTask, ExpireHoldsTask

logger = get_logger("batch.scheduler")


@dataclass(frozen=True)
class SweepResult:
    """Outcome of one scheduler tick."""

    succeeded: tuple[str, ...] = ()
    skipped: tuple[str, ...] = ()
    failed: tuple[str, ...] = ()
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.skipped) + len(self.failed)


class HoldSweepScheduler:
    """
    Background driver for a BatchTask (the hold expiry sweep by default).

    Non-goals:
        - NOT a distributed scheduler; run one per database.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        clock: Clock | None = None,
        task: BatchTask | None = None,
        batch_limit: int | None = None,
        tick_interval_seconds: float = 300,
    ):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self._task = task or ExpireHoldsTask()
        self._batch_limit = batch_limit
        self._tick_interval = tick_interval_seconds
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def tick(self) -> SweepResult:
        """Run the task once (public for testing)."""
        with LogContext.bind(job=self._task.task_type):
            return self._tick()

    def _tick(self) -> SweepResult:
        session = self._session_factory()
        try:
            result = self._run_task(session)
            session.commit()
        except Exception:
            session.rollback()
            logger.exception("sweep_tick_failed", extra={"task_type": self._task.task_type})
            return SweepResult()
        finally:
            session.close()

        logger.info(
            "sweep_tick_completed",
            extra={
                "task_type": self._task.task_type,
                "succeeded": len(result.succeeded),
                "skipped": len(result.skipped),
                "failed": len(result.failed),
            },
        )
        return result

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            name="hold-sweep",
            daemon=True,
        )
        self._thread.start()
        logger.info("sweep_started", extra={"tick_interval": self._tick_interval})

    def stop(self, timeout: float = 30.0) -> None:
        """Signal stop and wait for the current tick to finish."""
        self._stop_event.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        logger.info("sweep_stopped")

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception:
                logger.exception("sweep_tick_exception")
            self._stop_event.wait(timeout=self._tick_interval)

    def _run_task(self, session: Session) -> SweepResult:
        as_of = self._clock.now()
        parameters: dict[str, Any] = {}
        if self._batch_limit is not None:
            parameters["limit"] = self._batch_limit

        succeeded: list[str] = []
        skipped: list[str] = []
        failed: list[str] = []
        errors: dict[str, str] = {}

        for item in self._task.prepare_items(parameters, session, as_of):
            if self._stop_event.is_set():
                break

            savepoint = session.begin_nested()
            try:
                outcome = self._task.execute_item(item, parameters, session, as_of)
            except Exception as exc:
                savepoint.rollback()
                logger.exception("sweep_item_exception", extra={"item_key": item.item_key})
                failed.append(item.item_key)
                errors[item.item_key] = str(exc)
                continue

            match outcome.status:
                case BatchItemStatus.SUCCEEDED:
                    savepoint.commit()
                    succeeded.append(item.item_key)
                case BatchItemStatus.SKIPPED:
                    savepoint.rollback()
                    skipped.append(item.item_key)
                case BatchItemStatus.FAILED:
                    savepoint.rollback()
                    failed.append(item.item_key)
                    errors[item.item_key] = outcome.error_message or outcome.error_code or ""
                    logger.warning(
                        "sweep_item_failed",
                        extra={
                            "item_key": item.item_key,
                            "error_code": outcome.error_code,
                        },
                    )
                case _:
                    raise ValueError(f"Unknown batch item status: {outcome.status}")

        return SweepResult(
            succeeded=tuple(succeeded),
            skipped=tuple(skipped),
            failed=tuple(failed),
            errors=errors,
        )

"""
ORM-Level Immutability Enforcement.

===============================================================================
WHAT IT PROTECTS
===============================================================================

The inventory ledger is append-only.  A stock count that disagrees with the
shelf must be corrected by a NEW transaction (a manual decrease), never by
rewriting history.

SQLAlchemy fires events before UPDATE/DELETE operations reach the database.
We register listeners that intercept these events and check our invariants:

    session.flush()
         |
         v
    [before_update event] --> _check_*_immutability() --> ImmutabilityViolationError
         |                                                        ^
         v                                                        |
    [before_delete event] --> _check_*_delete() -----------------+
         |
         v
    SQL sent to database (only if checks pass)

Entity               | When Immutable                    | Why
---------------------|-----------------------------------|------------------------------
InventoryTransaction | ALWAYS (from creation)            | Ledger rows are the audit trail
ProductHold          | After status leaves ``active``    | A hold is resolved exactly once

The transition active -> terminal is itself allowed; we detect "was already
terminal" through SQLAlchemy's attribute history on ``status``.

Raw SQL and bulk statements bypass these listeners.  Only the ledger service
writes these tables.

===============================================================================
USAGE
===============================================================================

    from inventory_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # Called once at startup

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
"""

from sqlalchemy import event, inspect
from sqlalchemy.orm.attributes import get_history

from inventory_kernel.exceptions import ImmutabilityViolationError
from inventory_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

_AUDIT_FIELDS = frozenset({"updated_at"})


def _block(entity_type: str, entity_id, operation: str, reason: str, field: str | None = None):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(entity_id),
            "operation": operation,
            "field": field,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(entity_id),
        reason=reason,
    )


def _check_inventory_transaction_immutability(mapper, connection, target):
    """Prevent any update to an InventoryTransaction."""
    from inventory_kernel.models.inventory import InventoryTransaction

    if not isinstance(target, InventoryTransaction):
        return

    insp = inspect(target)
    for attr in insp.attrs:
        if attr.history.has_changes():
            _block(
                "InventoryTransaction",
                target.id,
                "UPDATE",
                f"Cannot modify field '{attr.key}' on a ledger transaction",
                field=attr.key,
            )


def _check_inventory_transaction_delete(mapper, connection, target):
    """Prevent deletion of an InventoryTransaction."""
    from inventory_kernel.models.inventory import InventoryTransaction

    if not isinstance(target, InventoryTransaction):
        return

    _block(
        "InventoryTransaction",
        target.id,
        "DELETE",
        "Ledger transactions cannot be deleted",
    )


def _was_terminal(target) -> bool:
    """True if the hold was already resolved before this flush."""
    status_history = get_history(target, "status")
    if status_history.deleted:
        old_status = status_history.deleted[0]
    elif not status_history.added:
        old_status = target.status
    else:
        # Status set for the first time in this unit of work
        return False
    return str(getattr(old_status, "value", old_status)) != "active"


def _check_product_hold_immutability(mapper, connection, target):
    """
    Prevent updates to resolved ProductHold records.

    The resolving update itself (active -> terminal, plus its timestamps)
    passes because the old status in the attribute history is ``active``.
    """
    from inventory_kernel.models.hold import ProductHold

    if not isinstance(target, ProductHold):
        return

    if not _was_terminal(target):
        return

    insp = inspect(target)
    for attr in insp.attrs:
        if attr.key in _AUDIT_FIELDS:
            continue
        if attr.history.has_changes():
            _block(
                "ProductHold",
                target.id,
                "UPDATE",
                f"Cannot modify field '{attr.key}' on a resolved hold",
                field=attr.key,
            )


def _check_product_hold_delete(mapper, connection, target):
    """Holds are never deleted; resolved ones are part of the audit trail."""
    from inventory_kernel.models.hold import ProductHold

    if not isinstance(target, ProductHold):
        return

    _block("ProductHold", target.id, "DELETE", "Holds cannot be deleted")


_LISTENERS = (
    ("inventory_kernel.models.inventory", "InventoryTransaction", "before_update",
     _check_inventory_transaction_immutability),
    ("inventory_kernel.models.inventory", "InventoryTransaction", "before_delete",
     _check_inventory_transaction_delete),
    ("inventory_kernel.models.hold", "ProductHold", "before_update",
     _check_product_hold_immutability),
    ("inventory_kernel.models.hold", "ProductHold", "before_delete",
     _check_product_hold_delete),
)


def _resolve(module_name: str, class_name: str):
    import importlib

    return getattr(importlib.import_module(module_name), class_name)


def register_immutability_listeners() -> None:
    """
    Register all immutability enforcement event listeners (idempotent).

    Call this after all models are imported but before any database
    operations begin.
    """
    for module_name, class_name, event_name, fn in _LISTENERS:
        target = _resolve(module_name, class_name)
        if not event.contains(target, event_name, fn):
            event.listen(target, event_name, fn)


def unregister_immutability_listeners() -> None:
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests that need to violate the rules on purpose.
    """
    for module_name, class_name, event_name, fn in _LISTENERS:
        target = _resolve(module_name, class_name)
        if event.contains(target, event_name, fn):
            event.remove(target, event_name, fn)

"""
Kernel Invariants Contract.

These invariants are structural law for every (store, SKU) pair. They are
enforced by the ledger's single mutation primitive, ORM listeners and
database CHECK constraints. No configuration may override them.

This module exists solely to declare these invariants explicitly. The
enforcement is distributed across InventoryLedger, db/immutability and the
InventoryRecord table constraints.
"""

from enum import Enum, unique


@unique
class KernelInvariant(str, Enum):
    """Non-configurable invariants enforced by the kernel."""

    AVAILABLE_DERIVED = "available_derived"
    """quantity_available == quantity_on_hand - quantity_reserved. Recomputed
    by InventoryLedger.apply_delta on every mutation, never set directly."""

    NON_NEGATIVE_COUNTERS = "non_negative_counters"
    """on_hand, reserved and incoming are never negative. Enforced by
    InventoryLedger before flush and by CHECK constraints."""

    RESERVED_WITHIN_ON_HAND = "reserved_within_on_hand"
    """quantity_reserved <= quantity_on_hand. Units promised to a customer
    must physically exist."""

    ONE_ENTRY_PER_MUTATION = "one_entry_per_mutation"
    """Every successful mutation appends exactly one InventoryTransaction
    whose balance_after equals the post-mutation on_hand."""

    LEDGER_IMMUTABILITY = "ledger_immutability"
    """InventoryTransaction rows are append-only. Enforced by ORM listeners
    (inventory_kernel.db.immutability)."""

    SERIALIZED_PER_KEY = "serialized_per_key"
    """Mutations of one (store, SKU) row are linearizable. Enforced by a
    row lock (SELECT ... FOR UPDATE) held until the caller commits."""

    HOLD_RESOLVED_ONCE = "hold_resolved_once"
    """A hold leaves ``active`` exactly once. Enforced by HoldManager with a
    row lock on the hold."""

    RECEIPT_VERIFIED_ONCE = "receipt_verified_once"
    """A wholesale order is reconciled into on-hand at most once. Guarded by
    the order status, checked before any ledger call."""


ALL_KERNEL_INVARIANTS: frozenset[KernelInvariant] = frozenset(KernelInvariant)

# The kernel package may not import from these packages.
# Enforced by tests/architecture/test_import_boundaries.py.
FORBIDDEN_KERNEL_IMPORTS: tuple[str, ...] = (
    "inventory_api",
    "inventory_batch",
    "inventory_config",
)

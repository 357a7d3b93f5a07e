"""
Inventory Kernel - store stock reservation and ledger

Per-store, per-SKU stock counters with:
- An append-only transaction ledger (one row per mutation)
- 24-hour customer holds with a one-way state machine
- Two-phase wholesale receiving (incoming, then verified on-hand)
- Decrease-only manual adjustments
"""

__version__ = "0.1.0"

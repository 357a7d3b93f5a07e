"""Database infrastructure for the inventory kernel."""

from inventory_kernel.db.base import Base, TrackedBase, UTCDateTime, UUIDString
from inventory_kernel.db.engine import Database

__all__ = [
    "Base",
    "Database",
    "TrackedBase",
    "UTCDateTime",
    "UUIDString",
]

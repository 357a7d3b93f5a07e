"""Domain models for the inventory kernel."""

from inventory_kernel.models.catalog import CatalogEntry
from inventory_kernel.models.hold import ProductHold
from inventory_kernel.models.inventory import InventoryRecord, InventoryTransaction
from inventory_kernel.models.wholesale import WholesaleOrder, WholesaleOrderItem

__all__ = [
    "CatalogEntry",
    "InventoryRecord",
    "InventoryTransaction",
    "ProductHold",
    "WholesaleOrder",
    "WholesaleOrderItem",
]

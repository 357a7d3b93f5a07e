"""Services for the inventory kernel (write side)."""

from inventory_kernel.services.adjustment_service import AdjustmentService
from inventory_kernel.services.hold_service import HoldManager
from inventory_kernel.services.inventory_services import InventoryServices
from inventory_kernel.services.ledger_service import InventoryLedger
from inventory_kernel.services.wholesale_service import WholesaleConversionEngine

__all__ = [
    "AdjustmentService",
    "HoldManager",
    "InventoryLedger",
    "InventoryServices",
    "WholesaleConversionEngine",
]

"""Selectors for the inventory kernel (read side)."""

from inventory_kernel.selectors.catalog_selector import CatalogReference, CatalogSelector
from inventory_kernel.selectors.hold_selector import HoldSelector
from inventory_kernel.selectors.inventory_selector import InventorySelector
from inventory_kernel.selectors.wholesale_selector import (
    WholesaleItemDTO,
    WholesaleOrderDTO,
    WholesaleSelector,
)

__all__ = [
    "CatalogReference",
    "CatalogSelector",
    "HoldSelector",
    "InventorySelector",
    "WholesaleItemDTO",
    "WholesaleOrderDTO",
    "WholesaleSelector",
]

"""HTTP routers, one per resource."""

from inventory_api.routes import health, holds, inventory, wholesale

__all__ = ["health", "holds", "inventory", "wholesale"]

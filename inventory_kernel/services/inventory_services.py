"""
InventoryServices -- per-unit-of-work bundle of the kernel services.

Every component that needs the kernel (API request handlers, the hold
sweep, tests) builds one of these from a Session plus the long-lived pieces:
the Clock, the catalog and the settings values.  Nothing here reaches for a
global.
"""

from datetime import timedelta

from sqlalchemy.orm import Session

from inventory_kernel.domain.clock import Clock
from inventory_kernel.domain.conversion import DEFAULT_CASE_SKU_SUFFIX
from inventory_kernel.selectors.catalog_selector import CatalogReference, CatalogSelector
from inventory_kernel.selectors.hold_selector import HoldSelector
from inventory_kernel.selectors.inventory_selector import InventorySelector
from inventory_kernel.selectors.wholesale_selector import WholesaleSelector
from inventory_kernel.services.adjustment_service import AdjustmentService
from inventory_kernel.services.hold_service import DEFAULT_HOLD_TTL, HoldManager
from inventory_kernel.services.ledger_service import InventoryLedger
from inventory_kernel.services.wholesale_service import WholesaleConversionEngine


class InventoryServices:
    """
    All kernel services bound to one session, sharing one ledger.

    Guarantees:
        - One InventoryLedger instance backs every service, so all stock
          mutations in the unit of work go through the same primitive.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock,
        catalog: CatalogReference | None = None,
        hold_ttl: timedelta = DEFAULT_HOLD_TTL,
        case_sku_suffix: str = DEFAULT_CASE_SKU_SUFFIX,
        default_org_id: str | None = None,
    ):
        self.session = session
        self.clock = clock
        self.ledger = InventoryLedger(session, clock)
        self.holds = HoldManager(session, clock, ledger=self.ledger, ttl=hold_ttl)
        self.adjustments = AdjustmentService(session, clock, ledger=self.ledger)
        self.wholesale = WholesaleConversionEngine(
            session,
            clock,
            catalog or CatalogSelector(session),
            ledger=self.ledger,
            case_sku_suffix=case_sku_suffix,
            default_org_id=default_org_id,
        )

        # Read side
        self.inventory = InventorySelector(session)
        self.hold_reads = HoldSelector(session)
        self.orders = WholesaleSelector(session)

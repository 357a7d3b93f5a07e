"""
Concurrent writers against one (store, SKU) record, with real commits.

Each thread owns its session and commits or rolls back its own unit of
work.  Whatever the interleaving, the counters must come out exactly as a
serial execution would leave them.
"""

from concurrent.futures import ThreadPoolExecutor
from threading import Barrier

from inventory_kernel.domain.types import CaseLine, CaseOrderFulfilled, TransactionType
from inventory_kernel.exceptions import InsufficientInventoryError
from inventory_kernel.selectors.inventory_selector import InventorySelector
from inventory_kernel.services.inventory_services import InventoryServices
from tests.conftest import ORG_ID, STORE_ID, seed_catalog

WORKERS = 8


def _run_in_session(session_factory, clock, fn):
    session = session_factory()
    try:
        result = fn(InventoryServices(session, clock, default_org_id=ORG_ID))
        session.commit()
        return result
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def _balance(session_factory, sku):
    session = session_factory()
    try:
        return InventorySelector(session).get_balance(STORE_ID, sku)
    finally:
        session.close()


class TestConcurrentHolds:

    def test_holds_never_oversell(self, session_factory, clock):
        _run_in_session(
            session_factory,
            clock,
            lambda s: s.ledger.apply_delta(
                STORE_ID, "PEN", TransactionType.INITIAL_STOCK, on_hand_delta=5
            ),
        )
        barrier = Barrier(WORKERS)

        def reserve(i):
            barrier.wait()
            try:
                _run_in_session(
                    session_factory,
                    clock,
                    lambda s: s.holds.create_hold(STORE_ID, f"cust-{i}", "PEN", quantity=1),
                )
                return True
            except InsufficientInventoryError:
                return False

        with ThreadPoolExecutor(max_workers=WORKERS) as pool:
            outcomes = list(pool.map(reserve, range(WORKERS)))

        assert outcomes.count(True) == 5
        balance = _balance(session_factory, "PEN")
        assert balance.quantity_reserved == 5
        assert balance.quantity_available == 0
        assert balance.version == 6

    def test_first_writers_create_one_record(self, session_factory, clock):
        barrier = Barrier(WORKERS)

        def restock(_):
            barrier.wait()
            _run_in_session(
                session_factory,
                clock,
                lambda s: s.ledger.apply_delta(
                    STORE_ID, "GUM", TransactionType.RESTOCK, on_hand_delta=1
                ),
            )

        with ThreadPoolExecutor(max_workers=WORKERS) as pool:
            list(pool.map(restock, range(WORKERS)))

        balance = _balance(session_factory, "GUM")
        assert balance.quantity_on_hand == WORKERS
        assert balance.version == WORKERS


class TestConcurrentFulfillment:

    def test_duplicate_events_count_incoming_once(self, session_factory, clock):
        session = session_factory()
        seed_catalog(session)
        session.commit()
        session.close()

        event = CaseOrderFulfilled(
            external_order_id="shop-dup-1",
            store_id=STORE_ID,
            lines=(CaseLine("PEN-BX", 2),),
            org_id=ORG_ID,
        )
        barrier = Barrier(4)

        def deliver(_):
            barrier.wait()
            return _run_in_session(session_factory, clock, lambda s: s.wholesale.mark_incoming(event))

        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(deliver, range(4)))

        assert len({r.order_id for r in results}) == 1
        assert sum(1 for r in results if not r.already_processed) == 1
        assert _balance(session_factory, "PEN").quantity_incoming == 16

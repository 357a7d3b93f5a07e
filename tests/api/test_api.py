"""
HTTP API tests through FastAPI's TestClient.

Every request commits for real; rows are deleted by ``committed_database``
after each test.  The store cookies normally issued by the auth layer are
set on the client directly.
"""

import pytest
from fastapi.testclient import TestClient

from inventory_api import create_app
from inventory_config import InventorySettings
from inventory_kernel.domain.clock import DeterministicClock
from inventory_kernel.domain.types import TransactionType
from inventory_kernel.services.inventory_services import InventoryServices
from tests.conftest import ORG_ID, OTHER_STORE_ID, STORE_ID, seed_catalog

STORE_COOKIES = {"store-id": STORE_ID, "store-role": "manager"}


@pytest.fixture
def api_clock():
    return DeterministicClock()


@pytest.fixture
def client(committed_database, api_clock):
    with committed_database.session_scope() as session:
        seed_catalog(session)
    app = create_app(
        settings=InventorySettings(sweep_enabled=False, default_org_id=ORG_ID),
        database=committed_database,
        clock=api_clock,
    )
    with TestClient(app, cookies=STORE_COOKIES) as test_client:
        yield test_client


@pytest.fixture
def stocked(committed_database, api_clock):
    def _stocked(product_sku, quantity, store_id=STORE_ID):
        with committed_database.session_scope() as session:
            InventoryServices(session, api_clock).ledger.apply_delta(
                store_id, product_sku, TransactionType.INITIAL_STOCK, on_hand_delta=quantity
            )

    return _stocked


def _create_hold(client, sku="PEN", quantity=1, customer="cust-1"):
    return client.post(
        "/inventory/holds",
        json={"customerId": customer, "productSku": sku, "quantity": quantity},
    )


class TestAuthentication:

    def test_missing_cookies_is_401(self, client):
        client.cookies.clear()

        response = client.get("/inventory")

        assert response.status_code == 401
        assert response.json() == {"detail": "Unauthorized"}

    def test_other_store_is_403(self, client):
        response = client.get("/inventory", params={"storeId": OTHER_STORE_ID})

        assert response.status_code == 403
        assert response.json() == {"detail": "Unauthorized for this store"}

    def test_correlation_id_echoed(self, client):
        response = client.get("/health", headers={"x-correlation-id": "req-42"})

        assert response.headers["x-correlation-id"] == "req-42"


class TestHoldEndpoints:

    def test_create_hold(self, client, stocked):
        stocked("PEN", 1)

        response = _create_hold(client)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["hold"]["status"] == "active"
        assert body["hold"]["storeId"] == STORE_ID
        assert body["expiresAt"].startswith("2024-01-02T12:00:00")

        inventory = client.get("/inventory").json()["inventory"]
        assert inventory[0]["quantityReserved"] == 1
        assert inventory[0]["quantityAvailable"] == 0

    def test_create_hold_insufficient(self, client, stocked):
        stocked("PEN", 1)
        assert _create_hold(client).status_code == 201

        response = _create_hold(client, customer="cust-2")

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "INSUFFICIENT_INVENTORY"
        assert body["available"] == 0
        assert body["requested"] == 1

    def test_create_hold_invalid_quantity(self, client, stocked):
        stocked("PEN", 3)

        response = _create_hold(client, quantity=0)

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_HOLD_QUANTITY"

    def test_create_hold_missing_fields(self, client):
        response = client.post("/inventory/holds", json={"productSku": "PEN"})

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"

    def test_pick_up_hold(self, client, stocked):
        stocked("PEN", 2)
        hold_id = _create_hold(client).json()["hold"]["id"]

        response = client.patch(f"/inventory/holds/{hold_id}", json={"action": "picked_up"})

        assert response.status_code == 200
        assert response.json()["hold"]["status"] == "picked_up"
        item = client.get("/inventory").json()["inventory"][0]
        assert (item["quantityOnHand"], item["quantityReserved"]) == (1, 0)

    def test_resolve_twice_is_400(self, client, stocked):
        stocked("PEN", 2)
        hold_id = _create_hold(client).json()["hold"]["id"]
        client.patch(f"/inventory/holds/{hold_id}", json={"action": "cancelled"})

        response = client.patch(f"/inventory/holds/{hold_id}", json={"action": "picked_up"})

        assert response.status_code == 400
        assert response.json()["error"] == "HOLD_NOT_ACTIVE"
        assert response.json()["status"] == "cancelled"

    def test_unknown_hold_is_404(self, client):
        response = client.patch(
            "/inventory/holds/00000000-0000-0000-0000-000000000000",
            json={"action": "cancelled"},
        )

        assert response.status_code == 404
        assert response.json()["error"] == "HOLD_NOT_FOUND"

    def test_other_stores_hold_is_404(self, client, stocked):
        stocked("PEN", 2)
        hold_id = _create_hold(client).json()["hold"]["id"]
        client.cookies.set("store-id", OTHER_STORE_ID)

        response = client.patch(f"/inventory/holds/{hold_id}", json={"action": "cancelled"})

        assert response.status_code == 404

    def test_list_holds_by_status(self, client, stocked):
        stocked("PEN", 3)
        first = _create_hold(client).json()["hold"]["id"]
        _create_hold(client, customer="cust-2")
        client.patch(f"/inventory/holds/{first}", json={"action": "cancelled"})

        active = client.get("/inventory/holds").json()["holds"]
        cancelled = client.get("/inventory/holds", params={"status": "cancelled"}).json()["holds"]

        assert [h["customerId"] for h in active] == ["cust-2"]
        assert [h["id"] for h in cancelled] == [first]

    def test_listing_expires_overdue_holds(self, client, stocked, api_clock):
        stocked("PEN", 2)
        hold_id = _create_hold(client).json()["hold"]["id"]
        api_clock.advance_hours(24)

        active = client.get("/inventory/holds").json()["holds"]
        expired = client.get("/inventory/holds", params={"status": "expired"}).json()["holds"]

        assert active == []
        assert [h["id"] for h in expired] == [hold_id]
        item = client.get("/inventory").json()["inventory"][0]
        assert (item["quantityOnHand"], item["quantityReserved"]) == (2, 0)


class TestInventoryEndpoints:

    def test_adjust_down(self, client, stocked):
        stocked("PEN", 7)

        response = client.post(
            "/inventory/adjust",
            json={"productSku": "PEN", "quantity": -4, "notes": "Damaged"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["newQuantity"] == 3
        assert body["transaction"]["type"] == "manual_decrease"
        assert body["transaction"]["quantity"] == -4
        assert body["transaction"]["actor"] == "manager"

    def test_adjust_beyond_stock(self, client, stocked):
        stocked("PEN", 3)

        response = client.post("/inventory/adjust", json={"productSku": "PEN", "quantity": -10})

        assert response.status_code == 400
        assert response.json()["error"] == "INSUFFICIENT_INVENTORY"
        assert client.get("/inventory").json()["inventory"][0]["quantityOnHand"] == 3

    def test_adjust_positive_rejected(self, client, stocked):
        stocked("PEN", 3)

        response = client.post("/inventory/adjust", json={"productSku": "PEN", "quantity": 2})

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_ADJUSTMENT"

    def test_adjust_unknown_sku(self, client):
        response = client.post("/inventory/adjust", json={"productSku": "NOPE", "quantity": -1})

        assert response.status_code == 400
        assert response.json()["error"] == "INVENTORY_RECORD_NOT_FOUND"

    def test_history_filters(self, client, stocked):
        stocked("PEN", 5)
        stocked("GUM", 5)
        client.post("/inventory/adjust", json={"productSku": "PEN", "quantity": -1})

        body = client.get("/inventory/history", params={"productSku": "PEN"}).json()

        assert [t["type"] for t in body["transactions"]] == ["manual_decrease", "initial_stock"]
        assert body["inventory"]["quantityOnHand"] == 4

        only_stock = client.get("/inventory/history", params={"type": "initial_stock"}).json()
        assert {t["productSku"] for t in only_stock["transactions"]} == {"PEN", "GUM"}
        assert only_stock["inventory"] is None

    def test_history_limit_bounds(self, client):
        assert client.get("/inventory/history", params={"limit": 0}).status_code == 400

    def test_receive_cases(self, client):
        response = client.post(
            "/inventory/receive",
            json={
                "lines": [
                    {"caseSku": "GUM-BX", "caseQuantity": 2},
                    {"caseSku": "OLD-BX", "caseQuantity": 1},
                ],
                "type": "initial_stock",
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is False
        assert [l["retailUnits"] for l in body["lines"]] == [24]
        assert body["inventory"][0]["quantityOnHand"] == 24
        assert body["errors"][0]["code"] == "INACTIVE_CATALOG_ENTRY"


class TestWholesaleEndpoints:

    def _fulfill(self, client, external_order_id="shop-1001"):
        return client.post(
            "/wholesale/fulfillments",
            json={
                "externalOrderId": external_order_id,
                "storeId": STORE_ID,
                "lines": [{"caseSku": "PEN-BX", "caseQuantity": 2}],
                "trackingNumber": "1Z999",
            },
        )

    def test_fulfill_verify_and_reverify(self, client):
        fulfilled = self._fulfill(client).json()
        assert fulfilled["status"] == "fulfilled"
        assert fulfilled["alreadyProcessed"] is False
        token = fulfilled["verificationToken"]

        incoming = client.get("/inventory").json()["inventory"][0]
        assert incoming["quantityIncoming"] == 16

        client.cookies.clear()
        pending = client.get(f"/wholesale/verify/{token}")
        assert pending.status_code == 200
        order = pending.json()["order"]
        assert order["expectedUnits"] == 16
        item_id = order["items"][0]["id"]

        verified = client.post(
            f"/wholesale/verify/{token}",
            json={"receivedQuantities": {item_id: 15}, "verifiedBy": "clerk"},
        )
        assert verified.status_code == 200
        body = verified.json()
        assert body["success"] is True
        assert body["itemsVerified"] == 1
        assert body["status"] == "received"
        assert body["discrepancies"] == {item_id: -1}

        again = client.post(f"/wholesale/verify/{token}", json={"receivedQuantities": {item_id: 16}})
        assert again.status_code == 404
        assert again.json()["error"] == "ALREADY_VERIFIED"

        client.cookies.update(STORE_COOKIES)
        item = client.get("/inventory").json()["inventory"][0]
        assert (item["quantityOnHand"], item["quantityIncoming"]) == (15, 0)

    def test_verify_repeated_case_sku_per_item(self, client):
        fulfilled = client.post(
            "/wholesale/fulfillments",
            json={
                "externalOrderId": "shop-1002",
                "storeId": STORE_ID,
                "lines": [
                    {"caseSku": "PEN-BX", "caseQuantity": 2},
                    {"caseSku": "PEN-BX", "caseQuantity": 1},
                ],
            },
        ).json()
        token = fulfilled["verificationToken"]
        first, second = client.get(f"/wholesale/verify/{token}").json()["order"]["items"]

        body = client.post(
            f"/wholesale/verify/{token}",
            json={"receivedQuantities": {first["id"]: 15, second["id"]: 9}},
        ).json()

        assert body["itemsVerified"] == 2
        assert body["discrepancies"] == {first["id"]: -1, second["id"]: 1}
        assert [(l["itemId"], l["expectedUnits"], l["receivedUnits"]) for l in body["lines"]] == [
            (first["id"], 16, 15),
            (second["id"], 8, 9),
        ]

    def test_duplicate_fulfillment(self, client):
        first = self._fulfill(client).json()
        second = self._fulfill(client).json()

        assert second["alreadyProcessed"] is True
        assert second["orderId"] == first["orderId"]
        assert client.get("/inventory").json()["inventory"][0]["quantityIncoming"] == 16

    def test_mark_delivered(self, client):
        order_id = self._fulfill(client).json()["orderId"]

        response = client.post(f"/wholesale/orders/{order_id}/delivered")

        assert response.status_code == 200
        assert response.json()["status"] == "delivered"
        assert response.json()["deliveredAt"] is not None

    def test_pending_orders_listing(self, client):
        order_id = self._fulfill(client).json()["orderId"]

        orders = client.get("/wholesale/orders/pending").json()["orders"]

        assert [o["id"] for o in orders] == [order_id]
        assert orders[0]["expectedUnits"] == 16

        client.cookies.set("store-id", OTHER_STORE_ID)
        assert client.get("/wholesale/orders/pending").json()["orders"] == []

    def test_unknown_token_is_404(self, client):
        response = client.get("/wholesale/verify/not-a-token")

        assert response.status_code == 404
        assert response.json()["error"] == "WHOLESALE_ORDER_NOT_FOUND"


class TestHealth:

    def test_health(self, client):
        body = client.get("/health").json()

        assert body["status"] == "ok"
        assert body["database"] == client.app.state.gateway.database.dialect
        assert body["version"] == "0.1.0"

"""HTTP-level tests for POST /orders."""

from types import SimpleNamespace

import pytest
import stripe
from fastapi.testclient import TestClient

from storefront.core.errors import GATEWAY_MESSAGES, GENERIC_ERROR_MESSAGE, GatewayErrorKind
from storefront.dependencies import get_catalog, get_checkout_handler, get_gateway, get_order_store
from storefront.integrations.payment import StripeGateway
from storefront.main import app
from storefront.services.checkout import CheckoutRequestHandler

from conftest import CLIENT_URL, SERVER_URL, FakeCatalog, FakeGateway, FakeStore, make_product

INTERNAL_STRIPE_MESSAGE = "req_8x internal throttle bucket=acct_42"


def _client_for(gateway, store=None, catalog=None):
    handler = CheckoutRequestHandler(
        catalog or FakeCatalog({"p1": make_product()}),
        gateway,
        store or FakeStore(),
        client_url=CLIENT_URL,
        server_url=SERVER_URL,
    )
    app.dependency_overrides[get_checkout_handler] = lambda: handler
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture(autouse=True)
def _clear_overrides():
    yield
    app.dependency_overrides.clear()


class TestCreateOrder:
    @pytest.mark.parametrize("path", ["/orders", "/orders/"])
    def test_success(self, client, store, path):
        resp = client.post(path, json={"cart": [{"productId": "p1", "quantity": 2}]})
        assert resp.status_code == 200
        body = resp.json()
        assert body["id"] == "sess_123"
        assert body["url"].endswith("sess_123")
        assert body["success_url"] == f"{CLIENT_URL}?success=true"
        assert len(store.orders) == 1
        assert store.orders[0].gateway_session_id == "sess_123"

    @pytest.mark.parametrize("payload", [{}, {"cart": None}, {"cart": "p1"}, {"cart": {"productId": "p1"}}, [], {"cart": []}])
    def test_invalid_cart_shape(self, client, gateway, store, payload):
        resp = client.post("/orders", json=payload)
        assert resp.status_code == 400
        assert "error" in resp.json()
        assert gateway.configs == []
        assert store.orders == []

    def test_body_not_json(self, client, gateway):
        resp = client.post("/orders", content=b"cart=p1", headers={"Content-Type": "text/plain"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Request body must be JSON."}
        assert gateway.configs == []

    def test_unknown_product(self, client, gateway, store):
        resp = client.post("/orders", json={"cart": [{"productId": "ghost", "quantity": 1}]})
        assert resp.status_code == 400
        assert "ghost" in resp.json()["error"]
        assert gateway.configs == []
        assert store.orders == []

    def test_invalid_price(self, gateway, store):
        client = _client_for(gateway, store, FakeCatalog({"p1": make_product(price=0)}))
        resp = client.post("/orders", json={"cart": [{"productId": "p1", "quantity": 1}]})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid price for product Widget."
        assert gateway.configs == []

    def test_card_declined(self, store):
        client = _client_for(FakeGateway(error=GatewayErrorKind.CARD_DECLINED), store)
        resp = client.post("/orders", json={"cart": [{"productId": "p1", "quantity": 1}]})
        assert resp.status_code == 400
        assert "declined" in resp.json()["error"]
        assert store.orders == []

    @pytest.mark.parametrize("kind,status", [
        (GatewayErrorKind.CARD_DECLINED, 400),
        (GatewayErrorKind.RATE_LIMITED, 429),
        (GatewayErrorKind.INVALID_REQUEST, 400),
        (GatewayErrorKind.GATEWAY_INTERNAL, 500),
        (GatewayErrorKind.CONNECTION, 502),
        (GatewayErrorKind.AUTHENTICATION, 401),
        (GatewayErrorKind.UNKNOWN, 500),
    ])
    def test_gateway_error_status(self, kind, status):
        client = _client_for(FakeGateway(error=kind))
        resp = client.post("/orders", json={"cart": [{"productId": "p1", "quantity": 1}]})
        assert resp.status_code == status
        # internal detail never reaches the client
        assert "sk_live_secret" not in resp.text

    @pytest.mark.parametrize("expire_fails", [False, True])
    def test_persistence_failure(self, expire_fails):
        gateway = FakeGateway(expire_fails=expire_fails)
        client = _client_for(gateway, FakeStore(fail=True))
        resp = client.post("/orders", json={"cart": [{"productId": "p1", "quantity": 1}]})
        assert resp.status_code == 500
        # the message makes no claim about the payment state
        assert resp.json() == {"error": "The order could not be saved."}
        assert "firestore" not in resp.text
        assert "expire timed out" not in resp.text
        assert gateway.expired == ([] if expire_fails else ["sess_123"])

    def test_unexpected_error_is_generic(self, gateway):
        class BrokenCatalog(FakeCatalog):
            def find_by_identifier(self, product_id):
                raise KeyError("internal stack detail")

        client = _client_for(gateway, catalog=BrokenCatalog())
        resp = client.post("/orders", json={"cart": [{"productId": "p1", "quantity": 1}]})
        assert resp.status_code == 500
        assert resp.json() == {"error": GENERIC_ERROR_MESSAGE}
        assert gateway.configs == []


def test_default_wiring_uses_overridden_collaborators():
    gateway, store = FakeGateway(session_id="sess_wired"), FakeStore()
    app.dependency_overrides[get_catalog] = lambda: FakeCatalog({"p1": make_product()})
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_order_store] = lambda: store
    client = TestClient(app)

    resp = client.post("/orders", json={"cart": [{"documentId": "p1", "amount": 1}]})
    assert resp.status_code == 200
    assert resp.json()["id"] == "sess_wired"
    assert store.orders[0].products == [{"documentId": "p1", "amount": 1}]


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


class TestCheckoutId:
    def test_same_checkout_id_reuses_key(self, client, gateway, store):
        payload = {"cart": [{"productId": "p1", "quantity": 1}], "checkoutId": "chk-7f3a"}
        assert client.post("/orders", json=payload).status_code == 200
        assert client.post("/orders", json=payload).status_code == 200

        assert [c.idempotency_key for c in gateway.configs] == ["chk-7f3a", "chk-7f3a"]
        assert [o.idempotency_key for o in store.orders] == ["chk-7f3a", "chk-7f3a"]

    def test_without_checkout_id_each_request_gets_a_key(self, client, gateway):
        cart = {"cart": [{"productId": "p1", "quantity": 1}]}
        client.post("/orders", json=cart)
        client.post("/orders", json=cart)
        first, second = (c.idempotency_key for c in gateway.configs)
        assert first and second and first != second

    @pytest.mark.parametrize("checkout_id", [123, "", "   ", "a/b", "x" * 256, ["chk"]])
    def test_invalid_checkout_id(self, client, gateway, store, checkout_id):
        resp = client.post("/orders", json={"cart": [{"productId": "p1", "quantity": 1}], "checkoutId": checkout_id})
        assert resp.status_code == 400
        assert "checkoutId" in resp.json()["error"]
        assert gateway.configs == []
        assert store.orders == []


class _ThrottledSessions:
    def create(self, params=None, options=None):
        raise stripe.RateLimitError(INTERNAL_STRIPE_MESSAGE)


def test_stripe_message_never_reaches_client():
    stripe_client = SimpleNamespace(checkout=SimpleNamespace(sessions=_ThrottledSessions()))
    store = FakeStore()
    app.dependency_overrides[get_catalog] = lambda: FakeCatalog({"p1": make_product()})
    app.dependency_overrides[get_gateway] = lambda: StripeGateway("sk_test_x", client=stripe_client)
    app.dependency_overrides[get_order_store] = lambda: store
    client = TestClient(app, raise_server_exceptions=False)

    resp = client.post("/orders", json={"cart": [{"productId": "p1", "quantity": 1}]})
    assert resp.status_code == 429
    assert INTERNAL_STRIPE_MESSAGE not in resp.text
    assert resp.json() == {"error": GATEWAY_MESSAGES[GatewayErrorKind.RATE_LIMITED]}
    assert store.orders == []

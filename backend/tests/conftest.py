from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from storefront.core.errors import GatewayErrorKind, PaymentGatewayError
from storefront.dependencies import get_checkout_handler
from storefront.integrations.payment import PaymentGateway
from storefront.main import app
from storefront.repositories.orders import OrderStore
from storefront.schemas.checkout import CheckoutSession
from storefront.schemas.product import Product
from storefront.services.catalog import ProductCatalog
from storefront.services.checkout import CheckoutRequestHandler

CLIENT_URL = "https://shop.example.se"
SERVER_URL = "https://cms.example.se"


class FakeCatalog(ProductCatalog):
    def __init__(self, products: Optional[Dict[str, Product]] = None):
        self.products = products or {}
        self.lookups: List[str] = []

    def find_by_identifier(self, product_id):
        self.lookups.append(product_id)
        return self.products.get(product_id)


class FakeGateway(PaymentGateway):
    def __init__(
        self,
        session_id: str = "sess_123",
        error: Optional[GatewayErrorKind] = None,
        expire_fails: bool = False,
    ):
        self.session_id = session_id
        self.error = error
        self.expire_fails = expire_fails
        self.configs = []
        self.expired: List[str] = []

    def create_checkout_session(self, config):
        self.configs.append(config)
        if self.error is not None:
            raise PaymentGatewayError(self.error, detail="sk_live_secret internal failure")
        return CheckoutSession(
            id=self.session_id,
            url=f"https://checkout.stripe.com/c/pay/{self.session_id}",
            success_url=config.success_url,
            cancel_url=config.cancel_url,
        )

    def expire_checkout_session(self, session_id):
        if self.expire_fails:
            raise PaymentGatewayError(GatewayErrorKind.CONNECTION, detail="expire timed out")
        self.expired.append(session_id)


class FakeStore(OrderStore):
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.orders = []

    def create(self, order):
        if self.fail:
            raise RuntimeError("firestore unavailable")
        self.orders.append(order)
        return f"order-{len(self.orders)}"


def make_product(pid="p1", title="Widget", price=19.99, **extra) -> Product:
    return Product(id=pid, title=title, price=price, **extra)


@pytest.fixture
def catalog():
    return FakeCatalog({"p1": make_product()})


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def handler(catalog, gateway, store):
    return CheckoutRequestHandler(
        catalog,
        gateway,
        store,
        client_url=CLIENT_URL,
        server_url=SERVER_URL,
    )


@pytest.fixture
def client(handler):
    app.dependency_overrides[get_checkout_handler] = lambda: handler
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
    app.dependency_overrides.clear()

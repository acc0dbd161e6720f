"""
# `storefront/services/checkout.py` — Checkout request handler

## Flow
1. **Cart shape:** `cart` must be a non-empty list of items with a product id and a
   positive integer quantity; otherwise `InvalidRequest` (400).
2. **Reprice:** every item is looked up in the catalog concurrently. A missing product
   (`ProductNotFound`) or a broken price (`InvalidProductPrice`) aborts the whole
   request; the remaining lookups are cancelled. Prices always come from the catalog.
3. **Gateway:** one hosted checkout session is created with the resolved line items
   and an idempotency key (the client's `checkoutId`, or a fresh UUID). Gateway errors
   arrive as `PaymentGatewayError`.
4. **Order:** only after the gateway accepted the session, an order with the original
   cart and the session id is written. If that write fails the session is expired so
   no payable session exists without a local record, and `PersistenceFailure` (500) is
   raised.
5. **Result:** the `CheckoutSession` is returned to the router.
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from storefront.core.errors import InvalidRequest, PersistenceFailure, ProductNotFound
from storefront.integrations.payment import PaymentGateway
from storefront.repositories.orders import OrderStore
from storefront.schemas.cart import CartItem
from storefront.schemas.checkout import CheckoutSession, CheckoutSessionConfig, LineItem
from storefront.schemas.order import Order
from storefront.services.catalog import ProductCatalog
from storefront.services.pricing import build_line_item

logger = logging.getLogger("storefront.checkout")

# Stripe rejects longer idempotency keys
MAX_CHECKOUT_ID = 255


def parse_cart(cart: Any) -> List[CartItem]:
    if cart is None or not isinstance(cart, list):
        raise InvalidRequest()
    if not cart:
        raise InvalidRequest("Cart must contain at least one item.")

    items: List[CartItem] = []
    for pos, raw in enumerate(cart):
        if not isinstance(raw, dict):
            raise InvalidRequest(f"Invalid cart item at position {pos}.")
        try:
            items.append(CartItem.model_validate(raw))
        except ValidationError as e:
            raise InvalidRequest(f"Invalid cart item at position {pos}.", detail=str(e)) from e
    return items


def checkout_key(checkout_id: Any) -> str:
    """Idempotency key for one checkout: the client's `checkoutId` when given, else a fresh UUID."""
    if checkout_id is None:
        return str(uuid.uuid4())
    key = checkout_id.strip() if isinstance(checkout_id, str) else ""
    # the key is also the order document id, so "/" is not allowed
    if not key or len(key) > MAX_CHECKOUT_ID or "/" in key:
        raise InvalidRequest("checkoutId must be a non-empty string of at most 255 characters without '/'.")
    return key


def redirect_url(base: str, success: bool) -> str:
    sep = "&" if "?" in base else "?"
    return f"{base}{sep}success={'true' if success else 'false'}"


class CheckoutRequestHandler:
    def __init__(
        self,
        catalog: ProductCatalog,
        gateway: PaymentGateway,
        store: OrderStore,
        *,
        client_url: str,
        server_url: str,
        shipping_countries: Sequence[str] = ("SE",),
        payment_methods: Sequence[str] = ("card",),
        locale: str = "sv",
        allow_promotion_codes: bool = True,
    ):
        self._catalog = catalog
        self._gateway = gateway
        self._store = store
        self.client_url = client_url
        self.server_url = server_url
        self.shipping_countries = list(shipping_countries)
        self.payment_methods = list(payment_methods)
        self.locale = locale
        self.allow_promotion_codes = allow_promotion_codes

    @classmethod
    def from_settings(cls, settings, catalog: ProductCatalog, gateway: PaymentGateway, store: OrderStore):
        return cls(
            catalog,
            gateway,
            store,
            client_url=settings.client_url,
            server_url=settings.server_url,
            shipping_countries=[settings.shipping_country],
            payment_methods=settings.payment_methods,
            locale=settings.checkout_locale,
            allow_promotion_codes=settings.allow_promotion_codes,
        )

    async def _line_item(self, item: CartItem) -> LineItem:
        product = await asyncio.to_thread(self._catalog.find_by_identifier, item.product_id)
        if product is None:
            raise ProductNotFound(item.product_id)
        return build_line_item(product, item.quantity, server_url=self.server_url)

    async def resolve_line_items(self, items: Sequence[CartItem]) -> List[LineItem]:
        tasks = [asyncio.ensure_future(self._line_item(it)) for it in items]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for t in tasks:
                t.cancel()
            raise

    def session_config(self, line_items: List[LineItem], idempotency_key: Optional[str] = None) -> CheckoutSessionConfig:
        return CheckoutSessionConfig(
            mode="payment",
            success_url=redirect_url(self.client_url, True),
            cancel_url=redirect_url(self.client_url, False),
            line_items=line_items,
            allowed_countries=self.shipping_countries,
            payment_method_types=self.payment_methods,
            locale=self.locale,
            allow_promotion_codes=self.allow_promotion_codes,
            idempotency_key=idempotency_key,
        )

    async def _persist(self, cart: List[Dict[str, Any]], session: CheckoutSession, key: str) -> str:
        order = Order(products=cart, gateway_session_id=session.id, idempotency_key=key)
        try:
            return await asyncio.to_thread(self._store.create, order)
        except Exception as e:
            logger.exception("Order write failed for session %s", session.id)
            try:
                await asyncio.to_thread(self._gateway.expire_checkout_session, session.id)
            except Exception:
                logger.exception("Could not expire orphaned session %s", session.id)
            raise PersistenceFailure(detail=str(e)) from e

    async def handle(self, cart: Any, checkout_id: Any = None) -> CheckoutSession:
        items = parse_cart(cart)
        key = checkout_key(checkout_id)
        line_items = await self.resolve_line_items(items)

        config = self.session_config(line_items, idempotency_key=key)
        session = await asyncio.to_thread(self._gateway.create_checkout_session, config)

        order_id = await self._persist(cart, session, key)
        logger.info("Order %s created for session %s (%d items)", order_id, session.id, len(line_items))
        return session

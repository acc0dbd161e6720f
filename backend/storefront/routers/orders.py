"""
# `storefront/routers/orders.py` — Checkout endpoint

### `POST /orders`
**Body:** `{"cart": [{"productId": "...", "quantity": 2}, ...]}`
(`documentId` / `amount` are accepted as aliases.)
Optional `checkoutId`: client-generated key (e.g. a UUID) reused when the same checkout is
submitted again, so a double submit yields the same gateway session and order record.

**Responses:**
- `200`: checkout session (`id`, `url`, `success_url`, `cancel_url`)
- `400`: invalid cart, unknown product, invalid catalog price, declined/invalid payment request
- `401` / `429` / `500` / `502`: payment gateway failures

Every error body is `{"error": "<message>"}`.
"""
import json

from fastapi import APIRouter, Depends, Request

from storefront.core.errors import InvalidRequest
from storefront.dependencies import get_checkout_handler
from storefront.schemas.checkout import CheckoutSession
from storefront.services.checkout import CheckoutRequestHandler


router = APIRouter(prefix="/orders", tags=["Orders"])


async def _read_body(request: Request) -> dict:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise InvalidRequest("Request body must be JSON.")
    if not isinstance(body, dict):
        raise InvalidRequest()
    return body


async def _create_order_impl(request: Request, handler: CheckoutRequestHandler) -> CheckoutSession:
    body = await _read_body(request)
    return await handler.handle(body.get("cart"), checkout_id=body.get("checkoutId"))


@router.post("", response_model=CheckoutSession)
async def create_order_no_slash(request: Request, handler: CheckoutRequestHandler = Depends(get_checkout_handler)):
    """Create order endpoint without trailing slash."""
    return await _create_order_impl(request, handler)


@router.post("/", response_model=CheckoutSession)
async def create_order_with_slash(request: Request, handler: CheckoutRequestHandler = Depends(get_checkout_handler)):
    """Create order endpoint with trailing slash."""
    return await _create_order_impl(request, handler)

# storefront/services/pricing.py
"""
Server-side pricing.

The unit price of every line item comes from the trusted catalog record, never
from the cart. Amounts are converted to minor units (öre) with Decimal and
ROUND_HALF_UP so that 19.995 becomes 2000 and float noise never leaks into the
gateway request.
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, List, Optional

from storefront.core.errors import InvalidProductPrice
from storefront.schemas.checkout import DEFAULT_DESCRIPTION, LineItem
from storefront.schemas.product import Product

_HUNDRED = Decimal(100)


def to_minor_units(price: Any) -> int:
    """Major-unit price -> integer minor units, rounded half up."""
    amount = Decimal(str(price)) * _HUNDRED
    return int(amount.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def validated_price(product: Product) -> Decimal:
    """
    Return the product price as Decimal or raise InvalidProductPrice when it is
    missing, non-numeric, non-finite or not strictly positive.
    """
    raw = product.price
    if raw is None or isinstance(raw, bool):
        raise InvalidProductPrice(product.id, product.title)
    try:
        price = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        raise InvalidProductPrice(product.id, product.title)
    if not price.is_finite() or price <= 0:
        raise InvalidProductPrice(product.id, product.title)
    return price


def resolve_image_url(reference: Optional[str], server_url: str) -> Optional[str]:
    """Absolute URLs pass through; relative paths are joined onto the server base URL."""
    ref = (reference or "").strip()
    if not ref:
        return None
    if ref.startswith(("http://", "https://")):
        return ref
    if ref.startswith("//"):
        return f"https:{ref}"
    return f"{server_url.rstrip('/')}/{ref.lstrip('/')}"


def build_line_item(product: Product, quantity: int, *, server_url: str) -> LineItem:
    price = validated_price(product)
    unit_amount = to_minor_units(price)
    if unit_amount < 1:
        # rounds to zero öre, the gateway cannot charge it
        raise InvalidProductPrice(product.id, product.title)

    image = resolve_image_url(product.image_url, server_url)
    images: List[str] = [image] if image else []

    return LineItem(
        name=product.title,
        description=product.description or DEFAULT_DESCRIPTION,
        image_urls=images,
        unit_amount=unit_amount,
        quantity=quantity,
    )

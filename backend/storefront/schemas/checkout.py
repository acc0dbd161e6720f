# storefront/schemas/checkout.py
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

DEFAULT_DESCRIPTION = "No description available"

# Minor-unit conversion multiplies by 100, so only a two-decimal currency is valid here
CHECKOUT_CURRENCY = "SEK"


class LineItem(BaseModel):
    """Gateway-facing priced unit, always derived from a trusted Product."""
    currency: Literal["SEK"] = CHECKOUT_CURRENCY
    name: str
    description: str = DEFAULT_DESCRIPTION
    image_urls: List[str] = Field(default_factory=list, max_length=1)
    unit_amount: int = Field(..., gt=0, description="Unit price in minor currency units (öre)")
    quantity: int = Field(..., gt=0)

    def to_gateway(self) -> Dict[str, Any]:
        return {
            "price_data": {
                "currency": self.currency.lower(),
                "product_data": {
                    "name": self.name,
                    "description": self.description,
                    "images": list(self.image_urls),
                },
                "unit_amount": self.unit_amount,
            },
            "quantity": self.quantity,
        }


class CheckoutSessionConfig(BaseModel):
    """Everything sent to the payment gateway for one hosted checkout."""
    mode: str = "payment"
    success_url: str
    cancel_url: str
    line_items: List[LineItem]
    allowed_countries: List[str] = Field(default_factory=lambda: ["SE"])
    payment_method_types: List[str] = Field(default_factory=lambda: ["card"])
    locale: str = "sv"
    allow_promotion_codes: bool = True
    idempotency_key: Optional[str] = None

    def to_params(self) -> Dict[str, Any]:
        return {
            "mode": self.mode,
            "success_url": self.success_url,
            "cancel_url": self.cancel_url,
            "line_items": [li.to_gateway() for li in self.line_items],
            "shipping_address_collection": {"allowed_countries": list(self.allowed_countries)},
            "payment_method_types": list(self.payment_method_types),
            "locale": self.locale,
            "allow_promotion_codes": self.allow_promotion_codes,
        }


class CheckoutSession(BaseModel):
    """Opaque gateway handle handed back to the storefront client."""
    id: str
    url: Optional[str] = None
    success_url: Optional[str] = None
    cancel_url: Optional[str] = None

# storefront/core/errors.py
"""
Checkout error taxonomy.

Every failure the checkout flow can report to a client is a `CheckoutError`
carrying the HTTP status and a message that is safe to show. Internal details
(SDK messages, stack traces) belong in the logs, not in `public_message`.
"""
from __future__ import annotations

from enum import Enum
from typing import Dict, Optional


class GatewayErrorKind(str, Enum):
    CARD_DECLINED = "card_declined"
    RATE_LIMITED = "rate_limited"
    INVALID_REQUEST = "invalid_request"
    GATEWAY_INTERNAL = "gateway_internal"
    CONNECTION = "connection"
    AUTHENTICATION = "authentication"
    UNKNOWN = "unknown"


GATEWAY_STATUS: Dict[GatewayErrorKind, int] = {
    GatewayErrorKind.CARD_DECLINED: 400,
    GatewayErrorKind.RATE_LIMITED: 429,
    GatewayErrorKind.INVALID_REQUEST: 400,
    GatewayErrorKind.GATEWAY_INTERNAL: 500,
    GatewayErrorKind.CONNECTION: 502,
    GatewayErrorKind.AUTHENTICATION: 401,
    GatewayErrorKind.UNKNOWN: 500,
}

GATEWAY_MESSAGES: Dict[GatewayErrorKind, str] = {
    GatewayErrorKind.CARD_DECLINED: "Your payment method was declined.",
    GatewayErrorKind.RATE_LIMITED: "Too many requests to the payment provider. Please try again shortly.",
    GatewayErrorKind.INVALID_REQUEST: "The payment request could not be created.",
    GatewayErrorKind.GATEWAY_INTERNAL: "The payment provider failed to process the request.",
    GatewayErrorKind.CONNECTION: "Could not reach the payment provider.",
    GatewayErrorKind.AUTHENTICATION: "Payment provider authentication failed.",
    GatewayErrorKind.UNKNOWN: "An unexpected payment error occurred.",
}

GENERIC_ERROR_MESSAGE = "An unexpected error occurred while creating the order."


def status_for_gateway_error(kind: Optional[GatewayErrorKind]) -> int:
    """HTTP status for a gateway error kind; anything unmapped is a 500."""
    return GATEWAY_STATUS.get(kind, 500)


class CheckoutError(Exception):
    status_code = 500
    public_message = GENERIC_ERROR_MESSAGE

    def __init__(self, public_message: Optional[str] = None, *, detail: Optional[str] = None):
        if public_message is not None:
            self.public_message = public_message
        # detail is for logs only
        self.detail = detail or self.public_message
        super().__init__(self.detail)


class InvalidRequest(CheckoutError):
    status_code = 400
    public_message = "Cart is required and must be a non-empty array."


class ProductNotFound(CheckoutError):
    status_code = 400

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product with id {product_id} not found.")


class InvalidProductPrice(CheckoutError):
    status_code = 400

    def __init__(self, product_id: str, title: Optional[str] = None):
        self.product_id = product_id
        super().__init__(f"Invalid price for product {title or product_id}.")


class PaymentGatewayError(CheckoutError):
    """Translated gateway failure. `kind` is one of the closed GatewayErrorKind values."""

    def __init__(self, kind: GatewayErrorKind, *, detail: Optional[str] = None):
        self.kind = kind
        self.status_code = status_for_gateway_error(kind)
        super().__init__(GATEWAY_MESSAGES.get(kind, GATEWAY_MESSAGES[GatewayErrorKind.UNKNOWN]), detail=detail)


class PersistenceFailure(CheckoutError):
    status_code = 500
    public_message = "The order could not be saved."

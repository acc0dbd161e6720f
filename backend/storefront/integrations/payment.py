"""
storefront/integrations/payment.py - Payment gateway (Stripe Checkout) integration.

Creates hosted checkout sessions through the Stripe SDK and translates every
Stripe exception into a `PaymentGatewayError` with one of the closed
`GatewayErrorKind` values, so nothing SDK-specific leaves this module.

The client is constructed explicitly (see `storefront.dependencies`) with a
bounded timeout and no automatic network retries: creating a session is only
safe to repeat under the same idempotency key.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional

import stripe

from storefront.core.errors import GatewayErrorKind, PaymentGatewayError
from storefront.schemas.checkout import CheckoutSession, CheckoutSessionConfig

logger = logging.getLogger("storefront.payment")


def classify_stripe_error(exc: Exception) -> GatewayErrorKind:
    """Map a Stripe SDK exception onto the gateway error taxonomy."""
    if isinstance(exc, stripe.CardError):
        return GatewayErrorKind.CARD_DECLINED
    if isinstance(exc, stripe.RateLimitError):
        return GatewayErrorKind.RATE_LIMITED
    # IdempotencyError: a checkoutId reused with a different cart
    if isinstance(exc, (stripe.InvalidRequestError, stripe.IdempotencyError)):
        return GatewayErrorKind.INVALID_REQUEST
    if isinstance(exc, stripe.APIConnectionError):
        return GatewayErrorKind.CONNECTION
    if isinstance(exc, stripe.AuthenticationError):
        return GatewayErrorKind.AUTHENTICATION
    if isinstance(exc, stripe.APIError):
        return GatewayErrorKind.GATEWAY_INTERNAL
    return GatewayErrorKind.UNKNOWN


class PaymentGateway(ABC):
    @abstractmethod
    def create_checkout_session(self, config: CheckoutSessionConfig) -> CheckoutSession:
        """Open a hosted checkout session; failures raise PaymentGatewayError."""

    @abstractmethod
    def expire_checkout_session(self, session_id: str) -> None:
        """Make an open session unpayable."""


class StripeGateway(PaymentGateway):
    def __init__(self, api_key: str, timeout: float = 10, client: Optional[stripe.StripeClient] = None):
        self._api_key = api_key
        self._timeout = timeout
        self._client = client

    def _stripe(self) -> stripe.StripeClient:
        if self._client is None:
            if not self._api_key:
                logger.error("STRIPE_SECRET_KEY is not set; cannot reach the payment gateway")
                raise PaymentGatewayError(GatewayErrorKind.AUTHENTICATION, detail="missing Stripe secret key")
            self._client = stripe.StripeClient(
                self._api_key,
                http_client=stripe.RequestsClient(timeout=self._timeout),
                max_network_retries=0,
            )
        return self._client

    def create_checkout_session(self, config: CheckoutSessionConfig) -> CheckoutSession:
        client = self._stripe()
        options = {"idempotency_key": config.idempotency_key} if config.idempotency_key else {}
        try:
            session = client.checkout.sessions.create(params=config.to_params(), options=options)
        except stripe.StripeError as e:
            kind = classify_stripe_error(e)
            logger.warning(
                "Stripe checkout session failed (%s): %s [request_id=%s]",
                kind.value, e, getattr(e, "request_id", None),
            )
            raise PaymentGatewayError(kind, detail=str(e)) from e

        logger.info("Stripe session created: %s", session.id)
        return CheckoutSession(
            id=session.id,
            url=getattr(session, "url", None),
            success_url=getattr(session, "success_url", None),
            cancel_url=getattr(session, "cancel_url", None),
        )

    def expire_checkout_session(self, session_id: str) -> None:
        client = self._stripe()
        try:
            client.checkout.sessions.expire(session_id)
        except stripe.StripeError as e:
            raise PaymentGatewayError(classify_stripe_error(e), detail=str(e)) from e
        logger.info("Stripe session expired: %s", session_id)

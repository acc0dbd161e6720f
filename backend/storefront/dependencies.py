"""
storefront/dependencies.py - FastAPI providers for the checkout collaborators.

Each collaborator is built from `settings` on first use and cached for the life of
the process. Tests (or another host) swap them through `app.dependency_overrides`.
"""
from functools import lru_cache

from fastapi import Depends

from storefront.config import get_db, settings
from storefront.integrations.payment import PaymentGateway, StripeGateway
from storefront.repositories.orders import FirestoreOrderStore, OrderStore
from storefront.services.catalog import FirestoreProductCatalog, HttpProductCatalog, ProductCatalog
from storefront.services.checkout import CheckoutRequestHandler


@lru_cache(maxsize=1)
def get_catalog() -> ProductCatalog:
    backend = (settings.catalog_backend or "firestore").strip().lower()
    if backend == "http":
        if not settings.catalog_api_url:
            raise ValueError("CATALOG_API_URL must be set when CATALOG_BACKEND=http")
        return HttpProductCatalog(settings.catalog_api_url, timeout=settings.catalog_timeout)
    if backend != "firestore":
        raise ValueError(f"Unknown CATALOG_BACKEND: {settings.catalog_backend}")
    return FirestoreProductCatalog(get_db(), collection=settings.products_collection)


@lru_cache(maxsize=1)
def get_gateway() -> PaymentGateway:
    return StripeGateway(settings.stripe_secret_key, timeout=settings.stripe_timeout)


@lru_cache(maxsize=1)
def get_order_store() -> OrderStore:
    return FirestoreOrderStore(get_db(), collection=settings.orders_collection)


def get_checkout_handler(
    catalog: ProductCatalog = Depends(get_catalog),
    gateway: PaymentGateway = Depends(get_gateway),
    store: OrderStore = Depends(get_order_store),
) -> CheckoutRequestHandler:
    return CheckoutRequestHandler.from_settings(settings, catalog, gateway, store)

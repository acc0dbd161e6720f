"""
storefront/config.py - Application configuration and Firebase initialization.

This module defines a Pydantic BaseSettings class to load configuration from environment,
and lazily initializes the Firebase Admin SDK (Firestore DB) on first use.
Other modules import `settings` for configuration and call `get_db()` for the Firestore client.
"""
from functools import lru_cache
from typing import List, Optional

import firebase_admin
from firebase_admin import credentials, firestore
from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""
    firebase_cred_file: str = Field('firebase_service_account.json', env='FIREBASE_CRED_FILE')
    firebase_project_id: Optional[str] = Field(None, env='FIREBASE_PROJECT_ID')

    # Firebase credentials from environment variables (for Cloud Run)
    firebase_private_key_id: Optional[str] = Field(None, env='FIREBASE_PRIVATE_KEY_ID')
    firebase_private_key: Optional[str] = Field(None, env='FIREBASE_PRIVATE_KEY')
    firebase_client_email: Optional[str] = Field(None, env='FIREBASE_CLIENT_EMAIL')
    firebase_client_id: Optional[str] = Field(None, env='FIREBASE_CLIENT_ID')
    firebase_auth_uri: Optional[str] = Field(None, env='FIREBASE_AUTH_URI')
    firebase_token_uri: Optional[str] = Field(None, env='FIREBASE_TOKEN_URI')
    firebase_auth_provider_x509_cert_url: Optional[str] = Field(None, env='FIREBASE_AUTH_PROVIDER_X509_CERT_URL')
    firebase_client_x509_cert_url: Optional[str] = Field(None, env='FIREBASE_CLIENT_X509_CERT_URL')

    products_collection: str = Field('products', env='PRODUCTS_COLLECTION')
    orders_collection: str = Field('orders', env='ORDERS_COLLECTION')

    # Catalog source: "firestore" reads product documents, "http" calls a products API
    catalog_backend: str = Field('firestore', env='CATALOG_BACKEND')
    catalog_api_url: Optional[str] = Field(None, env='CATALOG_API_URL')
    catalog_timeout: float = Field(5, env='CATALOG_TIMEOUT')

    stripe_secret_key: str = Field('', env='STRIPE_SECRET_KEY')
    stripe_timeout: float = Field(10, env='STRIPE_TIMEOUT')

    client_url: str = Field('http://localhost:3000', env='CLIENT_URL')  # redirect target after checkout
    server_url: str = Field('http://localhost:8000', env='SERVER_URL')  # base for relative image paths

    shipping_country: str = Field('SE', env='SHIPPING_COUNTRY')
    payment_method_types: str = Field('card', env='PAYMENT_METHOD_TYPES')  # e.g. "card,paypal,klarna"
    checkout_locale: str = Field('sv', env='CHECKOUT_LOCALE')
    allow_promotion_codes: bool = Field(True, env='ALLOW_PROMOTION_CODES')

    debug: bool = Field(False, env='DEBUG')
    log_level: str = Field('INFO', env='LOG_LEVEL')
    allowed_origins: str = Field('*', env='ALLOWED_ORIGINS')  # Comma-separated list or '*' for all

    @property
    def payment_methods(self) -> List[str]:
        methods = [m.strip() for m in self.payment_method_types.split(',') if m.strip()]
        return methods or ['card']

    class Config:
        env_file = ".env"
        case_sensitive = False


# Load settings from environment (.env file, etc.)
settings = Settings()


def _firebase_credentials():
    # Check if we have environment variables for Firebase credentials (Cloud Run)
    if all([
        settings.firebase_private_key_id,
        settings.firebase_private_key,
        settings.firebase_client_email,
        settings.firebase_client_id,
        settings.firebase_auth_uri,
        settings.firebase_token_uri,
        settings.firebase_auth_provider_x509_cert_url,
        settings.firebase_client_x509_cert_url
    ]):
        cred_dict = {
            "type": "service_account",
            "project_id": settings.firebase_project_id,
            "private_key_id": settings.firebase_private_key_id,
            "private_key": settings.firebase_private_key.replace("\\n", "\n"),
            "client_email": settings.firebase_client_email,
            "client_id": settings.firebase_client_id,
            "auth_uri": settings.firebase_auth_uri,
            "token_uri": settings.firebase_token_uri,
            "auth_provider_x509_cert_url": settings.firebase_auth_provider_x509_cert_url,
            "client_x509_cert_url": settings.firebase_client_x509_cert_url
        }
        return credentials.Certificate(cred_dict)
    # Use service account file (local development)
    return credentials.Certificate(settings.firebase_cred_file)


@lru_cache(maxsize=1)
def get_db():
    """Initialize Firebase Admin once and return the Firestore client."""
    try:
        options = {'projectId': settings.firebase_project_id} if settings.firebase_project_id else None
        firebase_admin.initialize_app(_firebase_credentials(), options)
    except ValueError as e:
        if "already exists" not in str(e):
            raise
        # Firebase app already initialized, the default app is reused
    return firestore.client()

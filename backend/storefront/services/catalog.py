"""
storefront/services/catalog.py - Trusted product lookup.

Two catalog sources share the same `find_by_identifier(product_id)` contract:

- `FirestoreProductCatalog` reads `products/{id}` and falls back to the
  `products/{slug}/items` sub-collections (collection group query on `id`).
- `HttpProductCatalog` calls an existing products API (`GET {base}/{id}`),
  accepting plain objects as well as `{"data": ...}` envelopes.

Both return None for unknown or soft-deleted products. Lookups are blocking;
the checkout handler runs them in worker threads.
"""
from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional
from urllib.parse import quote

import requests
from google.cloud.firestore_v1.base_query import FieldFilter

from storefront.schemas.product import Product

logger = logging.getLogger("storefront.catalog")


class ProductCatalog(ABC):
    @abstractmethod
    def find_by_identifier(self, product_id: str) -> Optional[Product]:
        """Return the trusted product, or None when it does not exist."""


def _usable(data: Optional[Dict[str, Any]]) -> bool:
    return bool(data) and not data.get("is_deleted")


class FirestoreProductCatalog(ProductCatalog):
    def __init__(self, db, collection: str = "products", items_group: str = "items"):
        self._db = db
        self._collection = collection
        self._items_group = items_group

    def find_by_identifier(self, product_id: str) -> Optional[Product]:
        data = None
        # "/" would address a sub-collection path, not a product document
        if "/" not in product_id:
            snap = self._db.collection(self._collection).document(product_id).get()
            if snap.exists:
                data = snap.to_dict() or {}

        if data is None:
            docs = list(
                self._db.collection_group(self._items_group)
                  .where(filter=FieldFilter("id", "==", product_id))
                  .limit(1)
                  .stream()
            )
            if docs:
                data = docs[0].to_dict() or {}

        if not _usable(data):
            logger.debug("Product %s not found in Firestore", product_id)
            return None
        return Product.from_record(product_id, data)


class HttpProductCatalog(ProductCatalog):
    def __init__(
        self,
        base_url: str,
        timeout: float = 5,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session_factory = session_factory
        self._local = threading.local()

    def _session(self) -> requests.Session:
        # lookups run concurrently in worker threads; a Session is not shared between them
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._local.session = self._session_factory()
        return session

    def _unwrap(self, payload: Any) -> Optional[Dict[str, Any]]:
        # Accept either the product itself or {"data": {...}} / {"data": {"attributes": {...}}}
        if not isinstance(payload, dict):
            return None
        body = payload["data"] if "data" in payload else payload
        if isinstance(body, list):
            body = body[0] if body else None
        if not isinstance(body, dict):
            return None
        attributes = body.get("attributes")
        if isinstance(attributes, dict):
            body = {**attributes, "id": body.get("id")}
        return body

    def find_by_identifier(self, product_id: str) -> Optional[Product]:
        url = f"{self._base_url}/{quote(product_id, safe='')}"
        resp = self._session().get(url, headers={"Accept": "application/json"}, timeout=self._timeout)
        if resp.status_code == 404:
            return None
        resp.raise_for_status()

        data = self._unwrap(resp.json())
        if not _usable(data):
            return None
        return Product.from_record(product_id, data)

# storefront/repositories/orders.py
from abc import ABC, abstractmethod
from typing import Any, Dict
import uuid

from google.cloud.firestore_v1 import SERVER_TIMESTAMP

from storefront.schemas.order import Order


class OrderStore(ABC):
    @abstractmethod
    def create(self, order: Order) -> str:
        """Persist the order and return its id."""


def order_to_doc(order: Order) -> Dict[str, Any]:
    doc = order.model_dump()
    doc["created_at"] = SERVER_TIMESTAMP
    return doc


class FirestoreOrderStore(OrderStore):
    def __init__(self, db, collection: str = "orders"):
        self._db = db
        self._collection = collection

    def create(self, order: Order) -> str:
        # idempotency key doubles as document id: a replayed write lands on the same record
        order_id = order.idempotency_key or str(uuid.uuid4())
        self._db.collection(self._collection).document(order_id).set(order_to_doc(order))
        return order_id

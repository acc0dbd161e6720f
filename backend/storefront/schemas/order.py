# storefront/schemas/order.py
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

OrderStatus = Literal["pending"]


class Order(BaseModel):
    """
    Order record written once per accepted checkout session.
    `products` is the cart exactly as the client sent it.
    """
    products: List[Dict[str, Any]] = Field(default_factory=list)
    gateway_session_id: str
    status: OrderStatus = "pending"
    idempotency_key: Optional[str] = None

"""
storefront/schemas/cart.py - Pydantic models for the client-submitted cart.

Cart items are untrusted: only the product reference and the quantity are read.
Any other field a client sends (price, title, ...) is ignored.
"""
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

_INVISIBLE = ("\u200b", "\u200c", "\u200d", "\ufeff", "\xa0")


class CartItem(BaseModel):
    product_id: str = Field(
        ...,
        validation_alias=AliasChoices("productId", "documentId", "product_id"),
        description="ID of the product in the catalog",
    )
    quantity: int = Field(
        ...,
        gt=0,
        strict=True,
        validation_alias=AliasChoices("quantity", "amount", "qty"),
        description="Quantity of the product in the cart",
    )

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @field_validator("product_id")
    @classmethod
    def _clean_pid(cls, v: str) -> str:
        v = (v or "").strip()
        for ch in _INVISIBLE:
            v = v.replace(ch, "")
        if not v:
            raise ValueError("product id cannot be empty")
        return v

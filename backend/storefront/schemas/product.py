"""
storefront/schemas/product.py - Trusted product record as resolved from the catalog.
"""
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


def _media_url(media: Any) -> Optional[str]:
    """URL of a media value: plain string, `{url}`, or Strapi v4 `{data: {attributes: {url}}}`."""
    if isinstance(media, str):
        return media or None
    if isinstance(media, list):
        return _media_url(media[0]) if media else None
    if not isinstance(media, dict):
        return None
    if media.get("url"):
        return str(media["url"])
    if "data" in media:
        return _media_url(media["data"])
    attributes = media.get("attributes")
    if isinstance(attributes, dict):
        return _media_url(attributes)
    return None


def _image_reference(data: Dict[str, Any]) -> Optional[str]:
    # Firestore products keep `image_url` or an `images` list; Strapi nests the media under `image`
    if data.get("image_url"):
        return str(data["image_url"])
    return _media_url(data.get("image")) or _media_url(data.get("images"))


class Product(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    # Not typed as a number: corrupted catalog data must reach price validation as-is
    price: Any = Field(None, description="Unit price in the major currency unit")
    image_url: Optional[str] = None

    @classmethod
    def from_record(cls, product_id: str, data: Dict[str, Any]) -> "Product":
        title = data.get("title") or data.get("name") or product_id
        return cls(
            id=product_id,
            title=str(title),
            description=data.get("description") or None,
            price=data.get("price"),
            image_url=_image_reference(data),
        )

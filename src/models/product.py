# src/models/product.py

"""Product data model for inter-module data flow."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def _pick(data: dict[str, Any], key: str) -> Any:
    """Read a camelCase key, falling back to its PascalCase twin."""
    if key in data:
        return data[key]
    return data.get(key[:1].upper() + key[1:])


def _optional_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    return float(value)


def parse_timestamp(raw: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp from the backend, or ``None``."""
    if not raw:
        return None
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
    # Naive timestamps are UTC so they compare with aware ones
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class Product:
    """A catalog product. Prices are in the reference currency."""

    id: int
    name: str
    price: float
    brand: str = ""
    category: str = ""
    sub_category: str = ""
    discounted_price: float | None = None
    discount_percentage: float | None = None
    quantity: int = 0
    warranty: str = ""
    images: list[str] = field(default_factory=list)
    average_rating: float | None = None
    rating: float | None = None
    rating_count: int = 0
    created_at: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Product":
        """Build a Product from a backend JSON object."""
        return cls(
            id=int(_pick(data, "id") or 0),
            name=str(_pick(data, "name") or ""),
            price=float(_pick(data, "price") or 0.0),
            brand=str(_pick(data, "brand") or ""),
            category=str(_pick(data, "category") or ""),
            sub_category=str(_pick(data, "subCategory") or ""),
            discounted_price=_optional_float(
                _pick(data, "discountedPrice")
            ),
            discount_percentage=_optional_float(
                _pick(data, "discountPercentage")
            ),
            quantity=int(_pick(data, "quantity") or 0),
            warranty=str(_pick(data, "warranty") or ""),
            images=list(_pick(data, "images") or []),
            average_rating=_optional_float(
                _pick(data, "averageRating")
            ),
            rating=_optional_float(_pick(data, "rating")),
            rating_count=int(_pick(data, "ratingCount") or 0),
            created_at=str(_pick(data, "createdAt") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialise back to the backend's camelCase shape."""
        return {
            "id": self.id,
            "name": self.name,
            "brand": self.brand,
            "price": self.price,
            "discountedPrice": self.discounted_price,
            "discountPercentage": self.discount_percentage,
            "category": self.category,
            "subCategory": self.sub_category,
            "quantity": self.quantity,
            "warranty": self.warranty,
            "images": list(self.images),
            "averageRating": self.average_rating,
            "rating": self.rating,
            "ratingCount": self.rating_count,
            "createdAt": self.created_at,
        }

    @property
    def effective_rating(self) -> float:
        """Average rating, else the legacy rating field, else 0."""
        if self.average_rating is not None:
            return self.average_rating
        if self.rating is not None:
            return self.rating
        return 0.0

    @property
    def has_active_discount(self) -> bool:
        return (
            self.discounted_price is not None
            and self.discounted_price < self.price
        )

    @property
    def effective_price(self) -> float:
        """Price the customer pays, in the reference currency."""
        discounted = self.discounted_price
        if discounted is not None and discounted < self.price:
            return discounted
        return self.price

    @property
    def derived_discount_percentage(self) -> float:
        """Discount recomputed from the two prices (0 when inactive).

        The stored ``discount_percentage`` is display-only.
        """
        discounted = self.discounted_price
        if discounted is None or discounted >= self.price or self.price <= 0:
            return 0.0
        return round((self.price - discounted) / self.price * 100, 2)

    @property
    def created_at_dt(self) -> datetime | None:
        return parse_timestamp(self.created_at)

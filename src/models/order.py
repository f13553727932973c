# src/models/order.py

"""Cart, order and rating data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Any

from src.models.product import parse_timestamp


@dataclass
class CartItem:
    """A line in the user's cart, keyed by ``product_id``."""

    id: int
    product_id: int
    name: str
    price: float
    quantity: int
    quantity_available: int | None = None
    image: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "CartItem":
        available = data.get("quantityAvailable")
        return cls(
            id=int(data.get("id") or 0),
            product_id=int(data.get("productId") or data.get("id") or 0),
            name=str(data.get("name") or ""),
            price=float(data.get("price") or 0.0),
            quantity=int(data.get("quantity") or 0),
            quantity_available=(
                int(available) if available is not None else None
            ),
            image=str(data.get("image") or ""),
        )

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


@dataclass
class OrderItem:
    product_id: int
    quantity: int
    price: float


class OrderStatus(IntEnum):
    """Delivery progress derived from order and delivery dates."""

    ORDERED = 1
    IN_TRANSIT = 2
    DELIVERED = 3

    @property
    def label(self) -> str:
        return {
            OrderStatus.ORDERED: "Ordered",
            OrderStatus.IN_TRANSIT: "In Transit",
            OrderStatus.DELIVERED: "Delivered",
        }[self]

    @property
    def progress(self) -> int:
        """Progress bar width in percent."""
        return {
            OrderStatus.ORDERED: 0,
            OrderStatus.IN_TRANSIT: 50,
            OrderStatus.DELIVERED: 100,
        }[self]


@dataclass
class Order:
    id: int
    user_id: int
    order_date: str
    total_price: float
    delivery_type: str
    email: str
    location: str
    delivery_date: str = ""
    items: list[OrderItem] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Order":
        items = [
            OrderItem(
                product_id=int(item.get("productId") or 0),
                quantity=int(item.get("quantity") or 1),
                price=float(item.get("price") or 0.0),
            )
            for item in data.get("orderItems") or []
            if isinstance(item, dict)
        ]
        return cls(
            id=int(data.get("id") or 0),
            user_id=int(data.get("userId") or 0),
            order_date=str(data.get("orderDate") or ""),
            total_price=float(
                data.get("totalPrice") or data.get("totalAmount") or 0.0
            ),
            delivery_type=str(data.get("deliveryType") or ""),
            email=str(data.get("email") or ""),
            location=str(data.get("location") or ""),
            delivery_date=str(data.get("deliveryDate") or ""),
            items=items,
        )

    @property
    def order_date_dt(self) -> datetime | None:
        return parse_timestamp(self.order_date)

    @property
    def delivery_date_dt(self) -> datetime | None:
        return parse_timestamp(self.delivery_date)


@dataclass(frozen=True)
class RatingUpdate:
    """Server-confirmed rating state for one product."""

    product_id: int
    user_rating: float
    average_rating: float
    rating_count: int

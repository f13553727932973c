# src/services/order_stats.py

"""Order delivery status and product popularity."""

from dataclasses import dataclass
from datetime import date, datetime

from src.models.order import Order, OrderStatus


@dataclass
class ProductPopularity:
    product_id: int
    total_orders: int = 0
    total_quantity: int = 0
    last_order_date: datetime | None = None


def order_status(order: Order, today: date | None = None) -> OrderStatus:
    """Status from calendar days: delivered once the delivery day is reached."""
    today = today or date.today()
    delivery = order.delivery_date_dt
    if delivery is None:
        return OrderStatus.ORDERED
    if today >= delivery.date():
        return OrderStatus.DELIVERED
    ordered = order.order_date_dt
    if ordered is not None and today > ordered.date():
        return OrderStatus.IN_TRANSIT
    return OrderStatus.ORDERED


def popularity_from_orders(orders: list[Order]) -> list[ProductPopularity]:
    """Aggregate order lines per product, most-ordered first."""
    stats: dict[int, ProductPopularity] = {}
    for order in orders:
        ordered_at = order.order_date_dt
        for item in order.items:
            entry = stats.setdefault(
                item.product_id, ProductPopularity(item.product_id)
            )
            entry.total_orders += 1
            entry.total_quantity += item.quantity or 1
            if ordered_at is not None and (
                entry.last_order_date is None
                or ordered_at > entry.last_order_date
            ):
                entry.last_order_date = ordered_at
    return sorted(stats.values(), key=lambda s: s.total_orders, reverse=True)

# tests/test_order_stats.py

"""Tests for order status and product popularity."""

import unittest
from datetime import date

from src.models.order import Order, OrderItem, OrderStatus
from src.services.order_stats import order_status, popularity_from_orders


def _order(
    order_date: str,
    delivery_date: str = "",
    items: list[OrderItem] | None = None,
) -> Order:
    return Order(
        id=1,
        user_id=1,
        order_date=order_date,
        total_price=0.0,
        delivery_type="standard",
        email="a@b.com",
        location="Here",
        delivery_date=delivery_date,
        items=items or [],
    )


class TestOrderStatus(unittest.TestCase):
    """Status depends on calendar days only."""

    def test_no_delivery_date_is_ordered(self) -> None:
        order = _order("2026-03-01T10:00:00")
        self.assertIs(
            order_status(order, date(2026, 3, 20)), OrderStatus.ORDERED
        )

    def test_same_day_is_ordered(self) -> None:
        order = _order("2026-03-01T10:00:00", "2026-03-05T00:00:00")
        self.assertIs(
            order_status(order, date(2026, 3, 1)), OrderStatus.ORDERED
        )

    def test_between_days_is_in_transit(self) -> None:
        order = _order("2026-03-01T10:00:00", "2026-03-05T00:00:00")
        status = order_status(order, date(2026, 3, 3))
        self.assertIs(status, OrderStatus.IN_TRANSIT)
        self.assertEqual(status.progress, 50)

    def test_delivery_day_is_delivered(self) -> None:
        order = _order("2026-03-01T10:00:00", "2026-03-05T18:00:00")
        self.assertIs(
            order_status(order, date(2026, 3, 5)), OrderStatus.DELIVERED
        )


class TestPopularity(unittest.TestCase):

    def test_aggregates_and_orders_by_count(self) -> None:
        orders = [
            _order(
                "2026-01-01T00:00:00",
                items=[OrderItem(1, 2, 10.0), OrderItem(2, 1, 5.0)],
            ),
            _order("2026-02-01T00:00:00", items=[OrderItem(2, 3, 5.0)]),
            _order("2026-01-15T00:00:00", items=[OrderItem(2, 0, 5.0)]),
        ]
        stats = popularity_from_orders(orders)
        self.assertEqual([s.product_id for s in stats], [2, 1])
        top = stats[0]
        self.assertEqual(top.total_orders, 3)
        # A zero quantity counts as one unit
        self.assertEqual(top.total_quantity, 5)
        assert top.last_order_date is not None
        self.assertEqual(top.last_order_date.month, 2)

    def test_no_orders(self) -> None:
        self.assertEqual(popularity_from_orders([]), [])


if __name__ == "__main__":
    unittest.main()

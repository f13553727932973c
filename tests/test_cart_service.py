# tests/test_cart_service.py

"""Tests for CartService stock rules, sync and checkout."""

import unittest
from datetime import date
from typing import Any
from unittest.mock import MagicMock

from src.api.shop_client import ShopApiClient
from src.models.errors import ApiError, ValidationError
from src.models.order import CartItem
from src.models.product import Product
from src.services.cart_service import CartService


def _make_api() -> MagicMock:
    api = MagicMock(spec=ShopApiClient)
    api.get_cart.return_value = []

    def add_cart_item(user_id: int, product: Product, quantity: int) -> CartItem:
        return CartItem(
            id=100 + product.id,
            product_id=product.id,
            name=product.name,
            price=product.effective_price,
            quantity=quantity,
            quantity_available=product.quantity,
        )

    api.add_cart_item.side_effect = add_cart_item
    api.submit_order.return_value = {"id": 55}
    return api


def _product(pid: int = 1, price: float = 10.0, stock: int = 5) -> Product:
    return Product(id=pid, name=f"P{pid}", price=price, quantity=stock)


class TestCart(unittest.IsolatedAsyncioTestCase):
    """Adding, updating and removing lines."""

    def setUp(self) -> None:
        self.api = _make_api()
        self.cart = CartService(self.api, user_id=7)
        self.events: list[list[CartItem]] = []
        self.cart.subscribe(self.events.append)

    async def test_add_new_item(self) -> None:
        self.assertTrue(await self.cart.add_to_cart(_product(), 2))
        self.assertEqual(self.cart.count(), 2)
        self.assertEqual(self.cart.total(), 20.0)
        self.assertEqual(len(self.events), 1)

    async def test_add_existing_item_increments(self) -> None:
        await self.cart.add_to_cart(_product(), 2)
        self.assertTrue(await self.cart.add_to_cart(_product(), 1))
        self.api.update_cart_quantity.assert_called_once_with(101, 3)
        self.assertEqual(self.cart.count(), 3)

    async def test_add_beyond_stock_refused(self) -> None:
        await self.cart.add_to_cart(_product(stock=3), 2)
        self.assertFalse(await self.cart.add_to_cart(_product(stock=3), 2))
        self.assertEqual(self.cart.count(), 2)

    async def test_add_non_positive_quantity_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            await self.cart.add_to_cart(_product(), 0)

    async def test_server_failure_leaves_cart_unchanged(self) -> None:
        self.api.add_cart_item.side_effect = ApiError(500)
        self.assertFalse(await self.cart.add_to_cart(_product(), 1))
        self.assertEqual(self.cart.items, [])
        self.assertEqual(self.events, [])

    async def test_update_quantity_clamps_to_stock(self) -> None:
        await self.cart.add_to_cart(_product(stock=4), 1)
        await self.cart.update_quantity(1, 10)
        self.assertEqual(self.cart.find(1).quantity, 4)  # type: ignore[union-attr]

    async def test_update_to_zero_removes(self) -> None:
        await self.cart.add_to_cart(_product(), 1)
        self.assertTrue(await self.cart.update_quantity(1, 0))
        self.api.remove_cart_item.assert_called_once_with(101)
        self.assertIsNone(self.cart.find(1))

    async def test_update_unknown_product(self) -> None:
        self.assertFalse(await self.cart.update_quantity(99, 2))

    async def test_load_from_server(self) -> None:
        self.api.get_cart.return_value = [
            CartItem(id=1, product_id=4, name="A", price=2.5, quantity=2)
        ]
        items = await self.cart.load()
        self.assertEqual(len(items), 1)
        self.assertEqual(self.cart.total(), 5.0)

    async def test_load_failure_empties_cart(self) -> None:
        self.api.get_cart.side_effect = ApiError(0)
        with self.assertLogs("storefront.cart", level="ERROR"):
            self.assertEqual(await self.cart.load(), [])


class TestCheckout(unittest.IsolatedAsyncioTestCase):
    """Order validation and submission."""

    async def asyncSetUp(self) -> None:
        self.api = _make_api()
        self.cart = CartService(self.api, user_id=7)
        await self.cart.add_to_cart(_product(1, price=10), 2)
        await self.cart.add_to_cart(_product(2, price=5.5), 1)

    async def test_checkout_submits_and_clears(self) -> None:
        response = await self.cart.checkout(
            " a@b.com ", "Tbilisi", "express"
        )
        self.assertEqual(response, {"id": 55})
        order: dict[str, Any] = self.api.submit_order.call_args.args[0]
        self.assertEqual(order["email"], "a@b.com")
        self.assertEqual(order["totalPrice"], 25.5)
        self.assertEqual(order["totalAmount"], 3)
        self.assertEqual(len(order["items"]), 2)
        self.api.clear_cart.assert_called_once_with(7)
        self.assertEqual(self.cart.items, [])

    async def test_missing_fields_rejected(self) -> None:
        for email, location in (("", "Here"), ("a@b.com", "  ")):
            with self.subTest(email=email, location=location):
                with self.assertRaises(ValidationError):
                    await self.cart.checkout(email, location)
        self.api.submit_order.assert_not_called()

    async def test_bad_email_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            await self.cart.checkout("not-an-email", "Here")

    async def test_unknown_delivery_type_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            await self.cart.checkout("a@b.com", "Here", "teleport")

    def test_nominated_date_rules(self) -> None:
        today = date(2026, 1, 10)
        with self.assertRaises(ValidationError):
            self.cart.build_order("a@b.com", "Here", "nominated", today=today)
        with self.assertRaises(ValidationError):
            self.cart.build_order(
                "a@b.com", "Here", "nominated", date(2026, 1, 9), today
            )
        order = self.cart.build_order(
            "a@b.com", "Here", "nominated", date(2026, 1, 12), today
        )
        self.assertEqual(order["nominatedDate"], "2026-01-12")

    async def test_empty_cart_rejected(self) -> None:
        empty = CartService(_make_api(), user_id=7)
        with self.assertRaises(ValidationError):
            await empty.checkout("a@b.com", "Here")

    async def test_anonymous_user_rejected(self) -> None:
        anonymous = CartService(_make_api(), user_id=0)
        with self.assertRaises(ValidationError):
            anonymous.build_order("a@b.com", "Here", "standard")

    async def test_submit_failure_keeps_cart(self) -> None:
        self.api.submit_order.side_effect = ApiError(500)
        with self.assertRaises(ApiError):
            await self.cart.checkout("a@b.com", "Here")
        self.api.clear_cart.assert_not_called()
        self.assertEqual(self.cart.count(), 3)


if __name__ == "__main__":
    unittest.main()

# src/services/cart_service.py

"""Server-backed shopping cart and checkout."""

import asyncio
import logging
from collections.abc import Callable
from datetime import date
from typing import Any

from src.api.shop_client import ShopApiClient
from src.config.settings import Settings
from src.models.account import EMAIL_RE
from src.models.errors import ApiError, ValidationError
from src.models.order import CartItem
from src.models.product import Product
from src.services.observer import ObserverRegistry, Subscription

logger = logging.getLogger("storefront.cart")


class CartService:
    """Keeps a local mirror of the user's cart, keyed by product id.

    Local state only changes after the server accepted the write, so a
    failed request leaves the cart as it was.
    """

    def __init__(self, api: ShopApiClient, user_id: int | None = None) -> None:
        self.api = api
        self.user_id = user_id if user_id is not None else Settings.USER_ID
        self._items: list[CartItem] = []
        self._changes: ObserverRegistry[list[CartItem]] = ObserverRegistry(
            "cart"
        )

    @property
    def items(self) -> list[CartItem]:
        return list(self._items)

    def subscribe(
        self, callback: Callable[[list[CartItem]], None]
    ) -> Subscription:
        return self._changes.subscribe(callback)

    def find(self, product_id: int) -> CartItem | None:
        for item in self._items:
            if item.product_id == product_id:
                return item
        return None

    def total(self) -> float:
        return round(sum(item.line_total for item in self._items), 2)

    def count(self) -> int:
        return sum(item.quantity for item in self._items)

    # ── Server sync ──────────────────────────────────────

    async def load(self) -> list[CartItem]:
        if not self.user_id:
            return self.items
        try:
            self._items = await asyncio.to_thread(
                self.api.get_cart, self.user_id
            )
        except ApiError:
            logger.error("Error loading cart from server", exc_info=True)
            self._items = []
        self._publish()
        return self.items

    async def add_to_cart(self, product: Product, quantity: int = 1) -> bool:
        """Add ``quantity`` of ``product``; False if stock would be exceeded."""
        if quantity <= 0:
            raise ValidationError("Quantity must be greater than 0")

        existing = self.find(product.id)
        wanted = quantity + (existing.quantity if existing else 0)
        if wanted > product.quantity:
            logger.warning(
                "Cannot add more than available stock (%d) of product %d",
                product.quantity,
                product.id,
            )
            return False

        try:
            if existing is not None:
                await asyncio.to_thread(
                    self.api.update_cart_quantity, existing.id, wanted
                )
                existing.quantity = wanted
            else:
                item = await asyncio.to_thread(
                    self.api.add_cart_item, self.user_id, product, quantity
                )
                self._items.append(item)
        except ApiError:
            logger.error(
                "Error adding product %d to cart", product.id, exc_info=True
            )
            return False

        self._publish()
        return True

    async def update_quantity(self, product_id: int, quantity: int) -> bool:
        """Set a line's quantity, clamped to stock; <= 0 removes it."""
        item = self.find(product_id)
        if item is None:
            return False
        if item.quantity_available is not None:
            quantity = min(quantity, item.quantity_available)
        if quantity <= 0:
            return await self.remove(product_id)

        try:
            await asyncio.to_thread(
                self.api.update_cart_quantity, item.id, quantity
            )
        except ApiError:
            logger.error(
                "Error updating quantity of product %d", product_id,
                exc_info=True,
            )
            return False
        item.quantity = quantity
        self._publish()
        return True

    async def remove(self, product_id: int) -> bool:
        item = self.find(product_id)
        if item is None:
            return False
        try:
            await asyncio.to_thread(self.api.remove_cart_item, item.id)
        except ApiError:
            logger.error(
                "Error removing product %d from cart", product_id,
                exc_info=True,
            )
            return False
        self._items = [i for i in self._items if i.product_id != product_id]
        self._publish()
        return True

    async def clear(self) -> bool:
        try:
            await asyncio.to_thread(self.api.clear_cart, self.user_id)
        except ApiError:
            logger.error("Error clearing cart", exc_info=True)
            return False
        self._items = []
        self._publish()
        return True

    # ── Checkout ─────────────────────────────────────────

    def build_order(
        self,
        email: str,
        location: str,
        delivery_type: str,
        nominated_date: date | None = None,
        today: date | None = None,
    ) -> dict[str, Any]:
        """Validate the checkout form and return the order payload."""
        email = (email or "").strip()
        location = (location or "").strip()
        if not self.user_id:
            raise ValidationError("User is not logged in.")
        if not email or not location:
            raise ValidationError("Please fill in Email and Location.")
        if not EMAIL_RE.match(email):
            raise ValidationError("Please enter a valid email address.")
        if delivery_type not in Settings.DELIVERY_TYPES:
            raise ValidationError(f"Unknown delivery type: {delivery_type}")
        if delivery_type == "nominated":
            if nominated_date is None:
                raise ValidationError(
                    "Please select a date for nominated day delivery."
                )
            if nominated_date < (today or date.today()):
                raise ValidationError(
                    "Nominated delivery date cannot be in the past."
                )
        if not self._items:
            raise ValidationError("Your cart is empty.")
        if any(item.quantity <= 0 for item in self._items):
            raise ValidationError(
                "One or more cart items have an invalid quantity."
            )

        order: dict[str, Any] = {
            "userId": self.user_id,
            "email": email,
            "location": location,
            "deliveryType": delivery_type,
            "items": [
                {
                    "productId": item.product_id,
                    "price": item.price,
                    "quantity": item.quantity,
                }
                for item in self._items
            ],
            "totalPrice": self.total(),
            "totalAmount": self.count(),
        }
        if delivery_type == "nominated" and nominated_date is not None:
            order["nominatedDate"] = nominated_date.isoformat()
        return order

    async def checkout(
        self,
        email: str,
        location: str,
        delivery_type: str = "standard",
        nominated_date: date | None = None,
    ) -> Any:
        """Submit the cart as an order and clear it.

        Raises:
            ValidationError: the form or cart is invalid.
            ApiError: the order was rejected; the cart is left unchanged.
        """
        order = self.build_order(email, location, delivery_type, nominated_date)
        try:
            response = await asyncio.to_thread(self.api.submit_order, order)
        except ApiError:
            logger.error("Order submission failed: %s", order, exc_info=True)
            raise
        logger.info(
            "Order submitted for user %d (%d items, total %.2f)",
            self.user_id,
            order["totalAmount"],
            order["totalPrice"],
        )
        await self.clear()
        return response

    def _publish(self) -> None:
        self._changes.publish(self.items)

# src/api/shop_client.py

"""Client for the shop backend REST API."""

from typing import Any
from urllib.parse import quote

from src.api.base_client import BaseApiClient
from src.config.settings import Settings
from src.models.account import AuthSession
from src.models.errors import ApiError, ValidationError
from src.models.order import CartItem, Order
from src.models.product import Product
from src.models.review import Review


def _require_id(value: int, label: str = "product") -> None:
    if not value or value <= 0:
        raise ValidationError(f"Invalid {label} ID")


def _category_segment(category: str) -> str:
    cleaned = (category or "").strip()
    if not cleaned:
        raise ValidationError("Category cannot be empty")
    return quote(cleaned, safe="")


def _number(value: Any, label: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ApiError(500, f"malformed {label}: {value!r}") from exc


class ShopApiClient(BaseApiClient):
    """Typed wrappers over the shop's REST endpoints.

    All methods block; callers on the event loop run them through
    ``asyncio.to_thread``. Malformed rows in list responses are skipped;
    a malformed single object raises :class:`ApiError`.
    """

    def __init__(
        self, base_url: str | None = None, token: str | None = None
    ) -> None:
        super().__init__(
            base_url or Settings.API_BASE_URL, name="shop", token=token
        )

    # ── Products ─────────────────────────────────────────

    def get_products_by_category(self, category: str) -> list[Product]:
        segment = _category_segment(category)
        rows = self._get_list(f"products/by-category/{segment}")
        return self._parse_rows(rows, Product.from_api, "product")

    def get_brands_by_category(self, category: str) -> list[str]:
        segment = _category_segment(category)
        rows = self._get_list(f"products/brands/by-category/{segment}")
        return [str(b) for b in rows if b]

    def get_all_products(self) -> list[Product]:
        rows = self._get_list("products")
        return self._parse_rows(rows, Product.from_api, "product")

    def get_product(self, product_id: int) -> Product:
        _require_id(product_id)
        data = self._get(f"products/{product_id}")
        if not isinstance(data, dict):
            raise ApiError(404, f"product {product_id}")
        return self._parse_object(data, Product.from_api, "product")

    def search_products(self, query: str) -> list[Product]:
        cleaned = (query or "").strip()
        if not cleaned:
            raise ValidationError("Search query cannot be empty")
        rows = self._get_list("Search", params={"query": cleaned})
        return self._parse_rows(rows, Product.from_api, "product")

    def get_newly_added(
        self, max_products: int = 20, days_back: int = 30
    ) -> list[Product]:
        if max_products <= 0:
            raise ValidationError("Max products must be greater than 0")
        if days_back <= 0:
            raise ValidationError("Days back must be greater than 0")
        rows = self._get_list(
            "products/newly-added",
            params={
                "maxProducts": str(max_products),
                "daysBack": str(days_back),
            },
        )
        return self._parse_rows(rows, Product.from_api, "product")

    def apply_discount(
        self, product_id: int, discount_percentage: float
    ) -> Any:
        _require_id(product_id)
        if not 1 <= discount_percentage <= 100:
            raise ValidationError(
                "Discount percentage must be between 1 and 100"
            )
        return self._put(
            f"products/{product_id}/discount", discount_percentage
        )

    def remove_discount(self, product_id: int) -> Any:
        _require_id(product_id)
        return self._delete(f"products/{product_id}/discount")

    # ── Ratings ──────────────────────────────────────────

    def create_rating(self, product_id: int, value: int) -> float:
        data = self._post(
            "Rating", {"productId": product_id, "rating": value}
        )
        return _rating_value(data, value)

    def update_rating(self, product_id: int, value: int) -> float:
        data = self._put(
            f"Rating/product/{product_id}",
            {"productId": product_id, "rating": value},
        )
        return _rating_value(data, value)

    def delete_rating(self, product_id: int) -> None:
        self._delete(f"Rating/product/{product_id}")

    def get_user_rating(self, user_id: int, product_id: int) -> float | None:
        """The user's rating for a product, or ``None`` if not rated."""
        try:
            data = self._get(f"Rating/user/{user_id}/product/{product_id}")
        except ApiError as exc:
            if exc.status_code == 404:
                return None
            raise
        if not isinstance(data, dict) or data.get("value") is None:
            return None
        return _number(data["value"], "rating")

    def get_average_rating(self, product_id: int) -> tuple[float, int]:
        """Return ``(average_rating, rating_count)`` from the server."""
        data = self._get(f"Rating/product/{product_id}/average")
        if not isinstance(data, dict):
            return 0.0, 0
        return (
            _number(data.get("averageRating") or 0.0, "average rating"),
            int(_number(data.get("ratingCount") or 0, "rating count")),
        )

    # ── Reviews ──────────────────────────────────────────

    def get_reviews(self, product_id: int) -> list[Review]:
        _require_id(product_id)
        rows = self._get_list(f"comment/product/{product_id}")
        return self._parse_rows(rows, Review.from_api, "review")

    def post_review(
        self, user_id: int, product_id: int, content: str
    ) -> Review:
        data = self._post(
            "comment",
            {"userId": user_id, "productId": product_id, "content": content},
        )
        return self._parse_object(data, Review.from_api, "review")

    def update_review(
        self, review_id: int, user_id: int, product_id: int, content: str
    ) -> None:
        _require_id(review_id, "review")
        self._put(
            f"comment/{review_id}",
            {"userId": user_id, "productId": product_id, "content": content},
        )

    def delete_review(self, review_id: int) -> None:
        _require_id(review_id, "review")
        self._delete(f"comment/{review_id}")

    # ── Cart ─────────────────────────────────────────────

    def get_cart(self, user_id: int) -> list[CartItem]:
        rows = self._get_list(f"cart/user/{user_id}")
        return self._parse_rows(rows, CartItem.from_api, "cart item")

    def add_cart_item(
        self, user_id: int, product: Product, quantity: int
    ) -> CartItem:
        data = self._post(
            "cart",
            {
                "userId": user_id,
                "productId": product.id,
                "name": product.name,
                "price": product.effective_price,
                "quantity": quantity,
                "quantityAvailable": product.quantity,
            },
        )
        return self._parse_object(data, CartItem.from_api, "cart item")

    def update_cart_quantity(self, cart_item_id: int, quantity: int) -> None:
        self._put(f"cart/{cart_item_id}", quantity)

    def remove_cart_item(self, cart_item_id: int) -> None:
        self._delete(f"cart/{cart_item_id}")

    def clear_cart(self, user_id: int) -> None:
        self._delete(f"cart/user/{user_id}")

    # ── Orders ───────────────────────────────────────────

    def submit_order(self, order: dict[str, Any]) -> Any:
        return self._post("order", order)

    def get_orders_for_user(self, user_id: int) -> list[Order]:
        rows = self._get_list(f"order/user/{user_id}")
        return self._parse_rows(rows, Order.from_api, "order")

    def get_all_orders(self) -> list[Order]:
        rows = self._get_list("order")
        return self._parse_rows(rows, Order.from_api, "order")

    # ── Accounts ─────────────────────────────────────────

    def login(self, email: str, password: str) -> AuthSession:
        """Exchange credentials for a bearer token.

        Raises:
            ApiError: the credentials were rejected or no token came back.
        """
        data = self._post("auth/login", {"Email": email, "Password": password})
        session = self._parse_object(data, AuthSession.from_api, "login")
        if not session.token:
            raise ApiError(401, "Login failed: No token received")
        return session

    def register(
        self,
        name: str,
        last_name: str,
        email: str,
        password: str,
        address: str = "",
    ) -> Any:
        return self._post(
            "users",
            {
                "name": name,
                "lastName": last_name,
                "email": email,
                "password": password,
                "address": address,
            },
        )

    def get_user(self, user_id: int) -> dict[str, Any]:
        _require_id(user_id, "user")
        data = self._get(f"users/{user_id}")
        if not isinstance(data, dict):
            raise ApiError(404, f"user {user_id}")
        return data


def _rating_value(data: Any, fallback: int) -> float:
    if isinstance(data, dict) and data.get("value") is not None:
        return _number(data["value"], "rating")
    return float(fallback)

# tests/test_shop_client.py

"""Tests for the HTTP clients: retries, decoding and endpoint wrappers."""

import json
import unittest
from typing import Any
from unittest.mock import MagicMock, patch

from src.api.exchange_rates import ExchangeRateClient
from src.api.shop_client import ShopApiClient
from src.models.errors import ApiError, ValidationError
from src.models.product import Product


def _response(status: int = 200, body: Any = None) -> MagicMock:
    """Build a fake curl_cffi response."""
    resp = MagicMock()
    resp.status_code = status
    if body is None:
        resp.text = ""
    elif isinstance(body, str):
        resp.text = body
    else:
        resp.text = json.dumps(body)
    return resp


@patch("src.api.base_client.curl_requests.Session")
class TestRequestRetries(unittest.TestCase):
    """GETs retry on transient failures; writes are sent once."""

    def _client(self, mock_session_cls: MagicMock) -> tuple[ShopApiClient, MagicMock]:
        session = MagicMock()
        mock_session_cls.return_value = session
        return ShopApiClient("https://shop.test/api", token="t0k"), session

    def test_get_retries_then_succeeds(
        self, mock_session_cls: MagicMock,
    ) -> None:
        client, session = self._client(mock_session_cls)
        session.request.side_effect = [
            _response(503),
            _response(200, [{"id": 1, "name": "A", "price": 5}]),
        ]
        products = client.get_products_by_category("IT Equipment")
        self.assertEqual([p.id for p in products], [1])
        self.assertEqual(session.request.call_count, 2)

    def test_get_retries_on_transport_error(
        self, mock_session_cls: MagicMock,
    ) -> None:
        client, session = self._client(mock_session_cls)
        session.request.side_effect = [
            ConnectionError("reset"),
            _response(200, ["Sony"]),
        ]
        self.assertEqual(client.get_brands_by_category("Phones"), ["Sony"])

    def test_get_gives_up_after_max_retries(
        self, mock_session_cls: MagicMock,
    ) -> None:
        client, session = self._client(mock_session_cls)
        session.request.return_value = _response(500, "down")
        with self.assertRaises(ApiError) as ctx:
            client.get_all_products()
        self.assertEqual(ctx.exception.status_code, 500)
        self.assertEqual(
            session.request.call_count, client.settings.MAX_RETRIES
        )

    def test_client_error_not_retried(
        self, mock_session_cls: MagicMock,
    ) -> None:
        client, session = self._client(mock_session_cls)
        session.request.return_value = _response(404, "missing")
        with self.assertRaises(ApiError):
            client.get_product(9)
        self.assertEqual(session.request.call_count, 1)

    def test_unreachable_server_is_status_zero(
        self, mock_session_cls: MagicMock,
    ) -> None:
        client, session = self._client(mock_session_cls)
        session.request.side_effect = ConnectionError("refused")
        with self.assertRaises(ApiError) as ctx:
            client.get_all_products()
        self.assertEqual(ctx.exception.status_code, 0)

    def test_write_sent_once(
        self, mock_session_cls: MagicMock,
    ) -> None:
        client, session = self._client(mock_session_cls)
        session.request.return_value = _response(503)
        with self.assertRaises(ApiError):
            client.remove_discount(3)
        self.assertEqual(session.request.call_count, 1)

    def test_bearer_token_and_url(
        self, mock_session_cls: MagicMock,
    ) -> None:
        client, session = self._client(mock_session_cls)
        session.request.return_value = _response(200, [])
        client.get_products_by_category(" Home Appliances ")
        method, url = session.request.call_args.args
        headers = session.request.call_args.kwargs["headers"]
        self.assertEqual(method, "GET")
        self.assertEqual(
            url,
            "https://shop.test/api/products/by-category/Home%20Appliances",
        )
        self.assertEqual(headers["Authorization"], "Bearer t0k")
        self.assertNotIn("timeout", session.request.call_args.kwargs)

    def test_non_list_payload_is_empty(
        self, mock_session_cls: MagicMock,
    ) -> None:
        client, session = self._client(mock_session_cls)
        session.request.return_value = _response(200, {"error": "nope"})
        self.assertEqual(client.get_all_products(), [])


@patch("src.api.base_client.curl_requests.Session")
class TestShopEndpoints(unittest.TestCase):
    """Validation and payload shapes of the endpoint wrappers."""

    def setUp(self) -> None:
        self.session = MagicMock()

    def _client(self, mock_session_cls: MagicMock) -> ShopApiClient:
        mock_session_cls.return_value = self.session
        return ShopApiClient("https://shop.test/api", token="")

    def test_empty_category_rejected(
        self, mock_session_cls: MagicMock,
    ) -> None:
        client = self._client(mock_session_cls)
        with self.assertRaises(ValidationError):
            client.get_products_by_category("   ")
        self.session.request.assert_not_called()

    def test_newly_added_validation(
        self, mock_session_cls: MagicMock,
    ) -> None:
        client = self._client(mock_session_cls)
        with self.assertRaises(ValidationError):
            client.get_newly_added(0, 30)
        with self.assertRaises(ValidationError):
            client.get_newly_added(10, 0)

    def test_newly_added_params(
        self, mock_session_cls: MagicMock,
    ) -> None:
        client = self._client(mock_session_cls)
        self.session.request.return_value = _response(200, [])
        client.get_newly_added(5, 7)
        params = self.session.request.call_args.kwargs["params"]
        self.assertEqual(params, {"maxProducts": "5", "daysBack": "7"})

    def test_discount_range(
        self, mock_session_cls: MagicMock,
    ) -> None:
        client = self._client(mock_session_cls)
        for bad in (0, 101):
            with self.subTest(pct=bad):
                with self.assertRaises(ValidationError):
                    client.apply_discount(1, bad)
        with self.assertRaises(ValidationError):
            client.apply_discount(0, 10)
        self.session.request.return_value = _response(200, {"ok": True})
        client.apply_discount(1, 25)
        self.assertEqual(self.session.request.call_args.kwargs["json"], 25)

    def test_no_token_no_auth_header(
        self, mock_session_cls: MagicMock,
    ) -> None:
        client = self._client(mock_session_cls)
        self.session.request.return_value = _response(200, [])
        client.get_all_products()
        headers = self.session.request.call_args.kwargs["headers"]
        self.assertNotIn("Authorization", headers)

    def test_user_rating_404_is_none(
        self, mock_session_cls: MagicMock,
    ) -> None:
        client = self._client(mock_session_cls)
        self.session.request.return_value = _response(404)
        self.assertIsNone(client.get_user_rating(1, 2))

    def test_user_rating_value(
        self, mock_session_cls: MagicMock,
    ) -> None:
        client = self._client(mock_session_cls)
        self.session.request.return_value = _response(200, {"value": 4})
        self.assertEqual(client.get_user_rating(1, 2), 4.0)

    def test_average_rating(
        self, mock_session_cls: MagicMock,
    ) -> None:
        client = self._client(mock_session_cls)
        self.session.request.return_value = _response(
            200, {"averageRating": 4.25, "ratingCount": 8}
        )
        self.assertEqual(client.get_average_rating(3), (4.25, 8))

    def test_add_cart_item_payload(
        self, mock_session_cls: MagicMock,
    ) -> None:
        client = self._client(mock_session_cls)
        self.session.request.return_value = _response(
            200, {"id": 11, "productId": 4, "name": "A", "price": 8,
                  "quantity": 2, "quantityAvailable": 5},
        )
        product = Product(id=4, name="A", price=10, discounted_price=8,
                          quantity=5)
        item = client.add_cart_item(7, product, 2)
        payload = self.session.request.call_args.kwargs["json"]
        self.assertEqual(payload["price"], 8)
        self.assertEqual(payload["userId"], 7)
        self.assertEqual(item.id, 11)
        self.assertEqual(item.quantity_available, 5)


@patch("src.api.base_client.curl_requests.Session")
class TestMalformedRows(unittest.TestCase):
    """Bad rows are dropped from lists; a bad single object is an error."""

    def _client(self, mock_session_cls: MagicMock) -> tuple[ShopApiClient, MagicMock]:
        session = MagicMock()
        mock_session_cls.return_value = session
        return ShopApiClient("https://shop.test/api", token=""), session

    def test_unparseable_product_rows_skipped(
        self, mock_session_cls: MagicMock,
    ) -> None:
        client, session = self._client(mock_session_cls)
        session.request.return_value = _response(
            200,
            [
                {"id": 1, "name": "a", "price": "N/A"},
                None,
                "text",
                {"id": 2, "name": "b", "price": 9.5},
            ],
        )
        with self.assertLogs("storefront.api.shop", level="WARNING"):
            products = client.get_products_by_category("Phones")
        self.assertEqual([p.id for p in products], [2])

    def test_unparseable_order_rows_skipped(
        self, mock_session_cls: MagicMock,
    ) -> None:
        client, session = self._client(mock_session_cls)
        session.request.return_value = _response(
            200, [{"id": "x"}, {"id": 4, "totalPrice": 12}]
        )
        with self.assertLogs("storefront.api.shop", level="WARNING"):
            orders = client.get_all_orders()
        self.assertEqual([o.id for o in orders], [4])

    def test_malformed_single_product_raises(
        self, mock_session_cls: MagicMock,
    ) -> None:
        client, session = self._client(mock_session_cls)
        session.request.return_value = _response(
            200, {"id": 3, "name": "a", "price": "free"}
        )
        with self.assertLogs("storefront.api.shop", level="ERROR"):
            with self.assertRaises(ApiError) as ctx:
                client.get_product(3)
        self.assertEqual(ctx.exception.status_code, 500)

    def test_malformed_rating_value_raises(
        self, mock_session_cls: MagicMock,
    ) -> None:
        client, session = self._client(mock_session_cls)
        session.request.return_value = _response(200, {"value": "lots"})
        with self.assertRaises(ApiError):
            client.get_user_rating(1, 2)


@patch("src.api.base_client.curl_requests.Session")
class TestSearchReviewsAndAccounts(unittest.TestCase):
    """Search, review and account endpoints."""

    def setUp(self) -> None:
        self.session = MagicMock()

    def _client(self, mock_session_cls: MagicMock) -> ShopApiClient:
        mock_session_cls.return_value = self.session
        return ShopApiClient("https://shop.test/api", token="")

    def test_search_sends_query_param(
        self, mock_session_cls: MagicMock,
    ) -> None:
        client = self._client(mock_session_cls)
        self.session.request.return_value = _response(
            200, [{"id": 5, "name": "Galaxy", "price": 300}]
        )
        products = client.search_products("  galaxy ")
        method, url = self.session.request.call_args.args
        self.assertEqual(method, "GET")
        self.assertEqual(url, "https://shop.test/api/Search")
        self.assertEqual(
            self.session.request.call_args.kwargs["params"],
            {"query": "galaxy"},
        )
        self.assertEqual([p.name for p in products], ["Galaxy"])

    def test_empty_search_rejected(
        self, mock_session_cls: MagicMock,
    ) -> None:
        client = self._client(mock_session_cls)
        with self.assertRaises(ValidationError):
            client.search_products("  ")
        self.session.request.assert_not_called()

    def test_reviews_for_product(
        self, mock_session_cls: MagicMock,
    ) -> None:
        client = self._client(mock_session_cls)
        self.session.request.return_value = _response(
            200,
            [
                {
                    "id": 1,
                    "productId": 7,
                    "userId": 3,
                    "commentText": "Solid",
                    "user": {"name": "Ana", "lastName": "B"},
                },
                {"id": 2, "productId": 7, "userId": 4, "content": "Meh"},
            ],
        )
        reviews = client.get_reviews(7)
        url = self.session.request.call_args.args[1]
        self.assertEqual(url, "https://shop.test/api/comment/product/7")
        self.assertEqual([r.content for r in reviews], ["Solid", "Meh"])
        self.assertEqual(reviews[0].author, "Ana B")
        self.assertEqual(reviews[1].author, "Unknown User")

    def test_post_update_delete_review(
        self, mock_session_cls: MagicMock,
    ) -> None:
        client = self._client(mock_session_cls)
        self.session.request.return_value = _response(
            200, {"id": 9, "productId": 7, "userId": 3, "content": "Nice"}
        )
        review = client.post_review(3, 7, "Nice")
        self.assertEqual(review.id, 9)
        self.assertEqual(
            self.session.request.call_args.kwargs["json"],
            {"userId": 3, "productId": 7, "content": "Nice"},
        )

        self.session.request.return_value = _response(204)
        client.update_review(9, 3, 7, "Nicer")
        method, url = self.session.request.call_args.args
        self.assertEqual(
            (method, url), ("PUT", "https://shop.test/api/comment/9")
        )

        client.delete_review(9)
        method, url = self.session.request.call_args.args
        self.assertEqual(
            (method, url), ("DELETE", "https://shop.test/api/comment/9")
        )
        with self.assertRaises(ValidationError):
            client.delete_review(0)

    def test_login_returns_session(
        self, mock_session_cls: MagicMock,
    ) -> None:
        client = self._client(mock_session_cls)
        self.session.request.return_value = _response(
            200,
            {"token": "abc", "userId": 12, "role": 0, "name": "Kim"},
        )
        session = client.login("kim@example.com", "pw")
        self.assertEqual(
            self.session.request.call_args.kwargs["json"],
            {"Email": "kim@example.com", "Password": "pw"},
        )
        self.assertEqual(session.token, "abc")
        self.assertEqual(session.user_id, 12)
        self.assertTrue(session.is_admin)

    def test_login_without_token_fails(
        self, mock_session_cls: MagicMock,
    ) -> None:
        client = self._client(mock_session_cls)
        self.session.request.return_value = _response(200, {"userId": 12})
        with self.assertRaises(ApiError) as ctx:
            client.login("kim@example.com", "pw")
        self.assertEqual(ctx.exception.status_code, 401)

    def test_register_payload(
        self, mock_session_cls: MagicMock,
    ) -> None:
        client = self._client(mock_session_cls)
        self.session.request.return_value = _response(201, {"id": 1})
        client.register("Kim", "Lee", "kim@example.com", "pw", "Main St")
        payload = self.session.request.call_args.kwargs["json"]
        self.assertEqual(payload["lastName"], "Lee")
        self.assertEqual(payload["address"], "Main St")


@patch("src.api.base_client.curl_requests.Session")
class TestExchangeRateClient(unittest.TestCase):

    def test_parses_rates(self, mock_session_cls: MagicMock) -> None:
        session = MagicMock()
        mock_session_cls.return_value = session
        session.request.return_value = _response(
            200, {"base": "USD", "rates": {"eur": 0.9, "BAD": "x", "GBP": 0.8}}
        )
        rates = ExchangeRateClient("https://rates.test/latest").fetch_rates()
        self.assertEqual(rates, {"EUR": 0.9, "GBP": 0.8})
        headers = session.request.call_args.kwargs["headers"]
        self.assertNotIn("Authorization", headers)

    def test_missing_rates_raise(self, mock_session_cls: MagicMock) -> None:
        session = MagicMock()
        mock_session_cls.return_value = session
        session.request.return_value = _response(200, {"result": "error"})
        with self.assertRaises(ApiError):
            ExchangeRateClient("https://rates.test/latest").fetch_rates()


if __name__ == "__main__":
    unittest.main()

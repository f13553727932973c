# src/api/base_client.py

"""Base class for the JSON HTTP clients."""

import json
import logging
import time
from collections.abc import Callable
from typing import Any, TypeVar

from curl_cffi import requests as curl_requests

from src.config.settings import Settings
from src.models.errors import ApiError

T = TypeVar("T")


class BaseApiClient:
    """Shared ``curl_cffi`` session with retrying GETs and JSON decoding.

    GET requests are retried on transport errors and on the status
    codes in ``Settings.RETRY_STATUS_CODES``. Writes are sent once.
    Every failure surfaces as :class:`ApiError`.
    """

    def __init__(
        self,
        base_url: str,
        name: str,
        token: str | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.name = name
        self.logger = logging.getLogger(f"storefront.api.{name}")
        self.settings = Settings()
        self.token = token if token is not None else self.settings.API_TOKEN
        self.session = curl_requests.Session(
            impersonate=self.settings.IMPERSONATE_BROWSER
        )

    def _headers(self) -> dict[str, str]:
        headers = dict(self.settings.DEFAULT_HEADERS)
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def _send(
        self,
        method: str,
        url: str,
        payload: Any = None,
        params: dict[str, str] | None = None,
    ) -> curl_requests.Response:
        kwargs: dict[str, Any] = {
            "headers": self._headers(),
            "params": params,
        }
        if payload is not None:
            kwargs["json"] = payload
        if self.settings.REQUEST_TIMEOUT is not None:
            kwargs["timeout"] = self.settings.REQUEST_TIMEOUT
        return self.session.request(method, url, **kwargs)

    @staticmethod
    def _decode(resp: curl_requests.Response) -> Any:
        text = resp.text
        if not text or not text.strip():
            return None
        try:
            return json.loads(text)
        except ValueError:
            return text

    def _request(
        self,
        method: str,
        path: str,
        payload: Any = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Raises:
            ApiError: after the final failed attempt.
        """
        url = self._url(path)
        attempts = self.settings.MAX_RETRIES if method == "GET" else 1
        last_error = ApiError(0, "no attempt made")

        for attempt in range(attempts):
            try:
                resp = self._send(method, url, payload, params)
            except Exception as exc:
                self.logger.warning(
                    "[%s] %s %s failed on attempt %d: %s",
                    self.name,
                    method,
                    url,
                    attempt + 1,
                    exc,
                    exc_info=True,
                )
                last_error = ApiError(0, str(exc))
            else:
                if 200 <= resp.status_code < 300:
                    return self._decode(resp)
                self.logger.warning(
                    "[%s] HTTP %d for %s %s on attempt %d",
                    self.name,
                    resp.status_code,
                    method,
                    url,
                    attempt + 1,
                )
                last_error = ApiError(resp.status_code, resp.text[:200])
                if resp.status_code not in self.settings.RETRY_STATUS_CODES:
                    break

            if attempt + 1 < attempts:
                time.sleep(self.settings.RETRY_DELAY * (attempt + 1))

        self.logger.error(
            "[%s] %s %s gave up: %s",
            self.name,
            method,
            url,
            last_error.user_message,
        )
        raise last_error

    def _get(
        self, path: str, params: dict[str, str] | None = None
    ) -> Any:
        return self._request("GET", path, params=params)

    def _post(self, path: str, payload: Any) -> Any:
        return self._request("POST", path, payload=payload)

    def _put(self, path: str, payload: Any) -> Any:
        return self._request("PUT", path, payload=payload)

    def _delete(self, path: str) -> Any:
        return self._request("DELETE", path)

    def _get_list(
        self, path: str, params: dict[str, str] | None = None
    ) -> list[Any]:
        """GET an endpoint that should return a JSON array.

        Non-list payloads resolve to an empty list.
        """
        data = self._get(path, params=params)
        if not isinstance(data, list):
            self.logger.warning(
                "[%s] Expected a list from %s, got %s",
                self.name,
                path,
                type(data).__name__,
            )
            return []
        return data

    def _parse_rows(
        self,
        rows: list[Any],
        parse: Callable[[dict[str, Any]], T],
        label: str,
    ) -> list[T]:
        """Parse each JSON object in ``rows``; malformed rows are skipped."""
        parsed: list[T] = []
        for row in rows:
            if not isinstance(row, dict):
                self.logger.warning(
                    "[%s] Skipping %s that is not an object: %r",
                    self.name,
                    label,
                    row,
                )
                continue
            try:
                parsed.append(parse(row))
            except (TypeError, ValueError) as exc:
                self.logger.warning(
                    "[%s] Skipping malformed %s %r: %s",
                    self.name,
                    label,
                    row,
                    exc,
                )
        if len(parsed) < len(rows):
            self.logger.info(
                "[%s] Parsed %d of %d %s rows",
                self.name,
                len(parsed),
                len(rows),
                label,
            )
        return parsed

    def _parse_object(
        self,
        data: Any,
        parse: Callable[[dict[str, Any]], T],
        label: str,
    ) -> T:
        """Parse a single JSON object.

        Raises:
            ApiError: the payload is missing or malformed.
        """
        if not isinstance(data, dict):
            raise ApiError(500, f"{label} missing from response")
        try:
            return parse(data)
        except (TypeError, ValueError) as exc:
            self.logger.error(
                "[%s] Malformed %s: %r", self.name, label, data, exc_info=True
            )
            raise ApiError(500, f"malformed {label}") from exc

    def close(self) -> None:
        self.session.close()

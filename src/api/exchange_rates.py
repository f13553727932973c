# src/api/exchange_rates.py

"""Client for the public exchange-rate endpoint."""

from src.api.base_client import BaseApiClient
from src.config.settings import Settings
from src.models.errors import ApiError


class ExchangeRateClient(BaseApiClient):
    """Fetches reference-currency-relative rates."""

    def __init__(self, url: str | None = None) -> None:
        # Third-party endpoint: never send the shop's bearer token
        super().__init__(
            url or Settings.EXCHANGE_RATE_URL, name="rates", token=""
        )

    def fetch_rates(self) -> dict[str, float]:
        """Return ``{code: rate}`` from a ``{"rates": {...}}`` payload."""
        data = self._get(self.base_url)
        rates = data.get("rates") if isinstance(data, dict) else None
        if not isinstance(rates, dict) or not rates:
            raise ApiError(500, "exchange-rate payload has no rates")
        return {
            str(code).upper(): float(rate)
            for code, rate in rates.items()
            if isinstance(rate, (int, float)) and rate > 0
        }

# src/services/currency_service.py

"""Active display currency, rate table and price conversion."""

import asyncio
import logging
from collections.abc import Callable

from src.api.exchange_rates import ExchangeRateClient
from src.config.settings import Settings
from src.models.currency import Currency, CurrencyChange
from src.models.errors import ValidationError
from src.services.observer import ObserverRegistry, Subscription
from src.storage.local_store import LocalStore

logger = logging.getLogger("storefront.currency")

CURRENCY_STATE_KEY = "currency"


class CurrencyService:
    """Owns the active currency and the rate table.

    The rate table starts as ``Settings.FALLBACK_RATES`` and is replaced
    once by the remote table on the first successful ``load_rates``.
    Subscribers receive a :class:`CurrencyChange` synchronously, in
    subscription order.
    """

    def __init__(
        self,
        rate_client: ExchangeRateClient | None = None,
        store: LocalStore | None = None,
    ) -> None:
        self.settings = Settings()
        self.reference_code = self.settings.REFERENCE_CURRENCY
        self._rate_client = rate_client
        self._store = store
        self._rates: dict[str, float] = dict(self.settings.FALLBACK_RATES)
        self._rates_loaded = False
        self.using_fallback_rates = True
        self._changes: ObserverRegistry[CurrencyChange] = ObserverRegistry(
            "currency"
        )
        self._current = self._currency_for(self._restore_code())

    # ── Rates ────────────────────────────────────────────

    @property
    def rates(self) -> dict[str, float]:
        return dict(self._rates)

    def rate_for(self, code: str) -> float:
        """Rate for ``code``; unknown codes are treated as 1.0."""
        rate = self._rates.get(code.upper())
        return rate if rate else 1.0

    def load_rates(self, force: bool = False) -> dict[str, float]:
        """Fetch the remote rate table once (blocking).

        Any failure keeps the built-in fallback table.
        """
        if not self._rates_loaded or force:
            self._apply_rates(self._fetch_remote())
        return self.rates

    async def refresh_rates(self, force: bool = False) -> dict[str, float]:
        """Non-blocking ``load_rates`` for use on the event loop."""
        if not self._rates_loaded or force:
            remote = await asyncio.to_thread(self._fetch_remote)
            self._apply_rates(remote)
        return self.rates

    def _fetch_remote(self) -> dict[str, float] | None:
        if self._rate_client is None:
            return None
        try:
            return self._rate_client.fetch_rates()
        except Exception:
            logger.warning(
                "Failed to fetch exchange rates, using defaults",
                exc_info=True,
            )
            return None

    def _apply_rates(self, remote: dict[str, float] | None) -> None:
        if remote:
            self._rates = {**self.settings.FALLBACK_RATES, **remote}
            self.using_fallback_rates = False
        else:
            self._rates = dict(self.settings.FALLBACK_RATES)
            self.using_fallback_rates = True
        self._rates_loaded = True
        self._sync_current_rate()

    def _sync_current_rate(self) -> None:
        updated = self._currency_for(self._current.code)
        if updated.rate != self._current.rate:
            self._publish(updated)

    # ── Conversion ───────────────────────────────────────

    def convert(self, amount: float, from_code: str, to_code: str) -> float:
        return amount / self.rate_for(from_code) * self.rate_for(to_code)

    def to_reference(self, amount: float, from_code: str) -> float:
        """Convert into the reference currency, rounded to cents."""
        return round(self.convert(amount, from_code, self.reference_code), 2)

    def from_reference(self, amount: float, to_code: str) -> float:
        return round(self.convert(amount, self.reference_code, to_code), 2)

    def format_price(self, reference_amount: float) -> str:
        """Format a reference-currency price in the active currency."""
        converted = self.from_reference(reference_amount, self._current.code)
        return self._current.format(converted)

    # ── Active currency ──────────────────────────────────

    @property
    def current(self) -> Currency:
        return self._current

    def currencies(self) -> list[Currency]:
        return [
            self._currency_for(entry["code"])
            for entry in self.settings.AVAILABLE_CURRENCIES
        ]

    def set_currency(self, code: str) -> Currency:
        """Make ``code`` the active currency and persist the choice."""
        currency = self._currency_for(code)
        if currency.code != code.upper():
            raise ValidationError(f"Unsupported currency: {code}")
        if self._store is not None:
            try:
                self._store.set(CURRENCY_STATE_KEY, currency.code)
            except OSError:
                logger.error(
                    "Could not persist currency selection", exc_info=True
                )
        if currency != self._current:
            self._publish(currency)
        return currency

    def subscribe(
        self, callback: Callable[[CurrencyChange], None]
    ) -> Subscription:
        return self._changes.subscribe(callback)

    def _publish(self, currency: Currency) -> None:
        change = CurrencyChange(previous=self._current, current=currency)
        self._current = currency
        logger.info(
            "Active currency %s (rate %.4f)", currency.code, currency.rate
        )
        self._changes.publish(change)

    def _currency_for(self, code: str) -> Currency:
        wanted = code.upper()
        for entry in self.settings.AVAILABLE_CURRENCIES:
            if entry["code"] == wanted:
                return Currency(
                    code=entry["code"],
                    name=entry["name"],
                    symbol=entry["symbol"],
                    rate=self.rate_for(wanted),
                )
        # Unknown code: fall back to the reference currency
        return self._currency_for(self.reference_code)

    def _restore_code(self) -> str:
        if self._store is None:
            return self.settings.DEFAULT_CURRENCY
        saved = self._store.get(CURRENCY_STATE_KEY)
        known = {c["code"] for c in self.settings.AVAILABLE_CURRENCIES}
        if isinstance(saved, str) and saved.upper() in known:
            return saved.upper()
        return self.settings.DEFAULT_CURRENCY

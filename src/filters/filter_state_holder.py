# src/filters/filter_state_holder.py

"""Mutable filter selection for one listing page."""

import dataclasses
import logging
from collections.abc import Callable, Iterable

from src.config.settings import Settings
from src.models.currency import CurrencyChange
from src.models.errors import ValidationError
from src.models.filter_state import (
    ALL,
    FilterState,
    PriceInput,
    SortKey,
    normalize_key,
)
from src.services.currency_service import CurrencyService
from src.services.observer import ObserverRegistry, Subscription

logger = logging.getLogger("storefront.filters")


def _validate_price_range(
    min_value: float | None, max_value: float | None
) -> None:
    for value in (min_value, max_value):
        if value is not None and value < 0:
            raise ValidationError("Price cannot be negative")
    if (
        min_value is not None
        and max_value is not None
        and min_value > max_value
    ):
        raise ValidationError(
            "Minimum price cannot be greater than maximum price"
        )


def _validate_rating(min_rating: float | None) -> None:
    if min_rating is None:
        return
    if not 0 <= min_rating <= Settings.MAX_RATING:
        raise ValidationError(
            f"Minimum rating must be between 0 and {Settings.MAX_RATING:g}"
        )


class FilterStateHolder:
    """Merges top-bar, side-panel and category-navigation updates.

    Prices arrive in the display currency and are stored in the
    reference currency; the typed values are kept in ``price_input``
    so they can be shown back to the user. Both panels write the same
    price field, so the last writer wins.

    Every accepted change is published to subscribers. Invalid input
    raises :class:`ValidationError` and leaves the state untouched.
    """

    def __init__(
        self,
        currency_service: CurrencyService,
        category: str = ALL,
    ) -> None:
        self._currency = currency_service
        self._state = FilterState(category=category)
        self.price_input = PriceInput(
            currency_code=currency_service.current.code
        )
        self._changes: ObserverRegistry[FilterState] = ObserverRegistry(
            "filters"
        )
        self._currency_subscription = currency_service.subscribe(
            self._on_currency_change
        )

    @property
    def state(self) -> FilterState:
        """A copy of the current selection."""
        return dataclasses.replace(self._state)

    def subscribe(
        self, callback: Callable[[FilterState], None]
    ) -> Subscription:
        return self._changes.subscribe(callback)

    # ── Top bar ──────────────────────────────────────────

    def set_sort(self, sort_key: SortKey | str) -> None:
        self._commit(sort_key=SortKey.parse(sort_key))

    def set_sub_category(self, sub_category: str | None) -> None:
        value = normalize_key(sub_category) if sub_category else ALL
        self._commit(sub_category=value or ALL)

    def set_min_rating(self, min_rating: float | None) -> None:
        _validate_rating(min_rating)
        self._commit(min_rating=min_rating)

    def apply_top_bar(
        self,
        sort_key: SortKey | str,
        sub_category: str | None,
        min_rating: float | None,
        min_price: float | None,
        max_price: float | None,
    ) -> None:
        """Replace every top-bar field in one change."""
        _validate_rating(min_rating)
        _validate_price_range(min_price, max_price)
        sub = normalize_key(sub_category) if sub_category else ALL
        self._commit(
            sort_key=SortKey.parse(sort_key),
            sub_category=sub or ALL,
            min_rating=min_rating,
            **self._price_fields(min_price, max_price),
        )

    # ── Side panel ───────────────────────────────────────

    def set_price_range(
        self,
        min_value: float | None,
        max_value: float | None,
        currency_code: str | None = None,
    ) -> None:
        """Set price bounds typed in ``currency_code`` (default: active)."""
        _validate_price_range(min_value, max_value)
        self._commit(
            **self._price_fields(min_value, max_value, currency_code)
        )

    def set_brands(self, brands: Iterable[str]) -> None:
        normalized = frozenset(
            normalize_key(b) for b in brands if b and b.strip()
        )
        self._commit(selected_brands=normalized)

    def toggle_brand(self, brand: str, selected: bool) -> None:
        key = normalize_key(brand)
        if not key:
            return
        brands = set(self._state.selected_brands)
        if selected:
            brands.add(key)
        else:
            brands.discard(key)
        self._commit(selected_brands=frozenset(brands))

    def is_brand_selected(self, brand: str) -> bool:
        return normalize_key(brand) in self._state.selected_brands

    def clear_brands(self) -> None:
        self._commit(selected_brands=frozenset())

    def clear_side_filters(self) -> None:
        self.price_input = PriceInput(
            currency_code=self._currency.current.code
        )
        self._commit(
            min_price=None, max_price=None, selected_brands=frozenset()
        )

    # ── Category navigation ──────────────────────────────

    def change_category(self, category: str) -> None:
        """Switch category; sub-category and brands reset."""
        self._commit(
            category=category or ALL,
            sub_category=ALL,
            selected_brands=frozenset(),
        )

    def clear_all(self) -> None:
        self.price_input = PriceInput(
            currency_code=self._currency.current.code
        )
        self._state = FilterState(category=self._state.category)
        self._publish()

    # ── Summary ──────────────────────────────────────────

    def active_filter_count(self) -> int:
        s = self._state
        count = len(s.selected_brands)
        count += sum(
            1 for bound in (s.min_price, s.max_price, s.min_rating)
            if bound is not None
        )
        if s.sort_key is not SortKey.DEFAULT:
            count += 1
        if s.sub_category != ALL:
            count += 1
        return count

    def has_active_filters(self) -> bool:
        return self.active_filter_count() > 0

    def close(self) -> None:
        self._currency_subscription.unsubscribe()

    # ── Internals ────────────────────────────────────────

    def _price_fields(
        self,
        min_value: float | None,
        max_value: float | None,
        currency_code: str | None = None,
    ) -> dict[str, float | None]:
        code = currency_code or self._currency.current.code
        self.price_input = PriceInput(
            min_value=min_value,
            max_value=max_value,
            currency_code=self._currency.current.code,
        )
        if code != self._currency.current.code:
            # Typed in another currency: show it in the active one
            self.price_input.min_value = self._reexpress(
                min_value, code, self._currency.current.code
            )
            self.price_input.max_value = self._reexpress(
                max_value, code, self._currency.current.code
            )
        return {
            "min_price": (
                self._currency.to_reference(min_value, code)
                if min_value is not None
                else None
            ),
            "max_price": (
                self._currency.to_reference(max_value, code)
                if max_value is not None
                else None
            ),
        }

    def _reexpress(
        self, value: float | None, from_code: str, to_code: str
    ) -> float | None:
        if value is None:
            return None
        return round(self._currency.convert(value, from_code, to_code), 2)

    def _on_currency_change(self, change: CurrencyChange) -> None:
        if change.code_changed:
            previous = self.price_input.currency_code
            current = change.current.code
            self.price_input = PriceInput(
                min_value=self._reexpress(
                    self.price_input.min_value, previous, current
                ),
                max_value=self._reexpress(
                    self.price_input.max_value, previous, current
                ),
                currency_code=current,
            )
        self._publish()

    def _commit(self, **changes: object) -> None:
        self._state = dataclasses.replace(self._state, **changes)  # type: ignore[arg-type]
        self._publish()

    def _publish(self) -> None:
        logger.debug("Filter state changed: %s", self._state)
        self._changes.publish(self.state)

# src/filters/product_filter.py

"""Client-side candidate reduction: filter stages plus final sort."""

import logging
from collections.abc import Iterable
from datetime import datetime
from functools import cmp_to_key

from src.models.filter_state import (
    ALL,
    FilterState,
    SortKey,
    normalize_key,
)
from src.models.product import Product

logger = logging.getLogger("storefront.filters")


def _compare_created(
    first: datetime | None, second: datetime | None
) -> int:
    """Order two timestamps; a missing one compares equal to anything."""
    if first is None or second is None:
        return 0
    if first < second:
        return -1
    if first > second:
        return 1
    return 0


class ProductFilter:
    """Reduce a category's product list to the visible, ordered set."""

    @staticmethod
    def by_category(
        products: list[Product], category: str
    ) -> list[Product]:
        wanted = normalize_key(category)
        if wanted == ALL:
            return products
        return [
            p for p in products
            if p.category and normalize_key(p.category) == wanted
        ]

    @staticmethod
    def by_sub_category(
        products: list[Product], sub_category: str
    ) -> list[Product]:
        wanted = normalize_key(sub_category)
        if wanted == ALL:
            return products
        return [
            p for p in products
            if p.sub_category and normalize_key(p.sub_category) == wanted
        ]

    @staticmethod
    def by_price(
        products: list[Product],
        min_price: float | None,
        max_price: float | None,
    ) -> list[Product]:
        """Keep products whose reference price lies within the bounds."""
        return [
            p for p in products
            if (min_price is None or p.price >= min_price)
            and (max_price is None or p.price <= max_price)
        ]

    @staticmethod
    def by_brands(
        products: list[Product], selected_brands: Iterable[str]
    ) -> list[Product]:
        """Keep products of the selected brands.

        An empty selection disables the stage.
        """
        wanted = {normalize_key(b) for b in selected_brands}
        if not wanted:
            return products
        return [
            p for p in products
            if p.brand and normalize_key(p.brand) in wanted
        ]

    @staticmethod
    def by_min_rating(
        products: list[Product], min_rating: float | None
    ) -> list[Product]:
        if min_rating is None:
            return products
        return [p for p in products if p.effective_rating >= min_rating]

    @staticmethod
    def sort(
        products: list[Product], sort_key: SortKey | str
    ) -> list[Product]:
        """Return a new, stably sorted list. Unknown keys sort by id."""
        key = SortKey.parse(sort_key)

        if key is SortKey.PRICE_LOW:
            return sorted(products, key=lambda p: p.price)
        if key is SortKey.PRICE_HIGH:
            return sorted(products, key=lambda p: p.price, reverse=True)
        if key is SortKey.NAME_ASC:
            return sorted(products, key=lambda p: p.name.casefold())
        if key is SortKey.NAME_DESC:
            return sorted(
                products, key=lambda p: p.name.casefold(), reverse=True
            )
        if key is SortKey.RATING_HIGH:
            return sorted(
                products, key=lambda p: p.effective_rating, reverse=True
            )
        if key is SortKey.RATING_LOW:
            return sorted(products, key=lambda p: p.effective_rating)
        if key is SortKey.NEWEST:
            return sorted(
                products,
                key=cmp_to_key(
                    lambda a, b: _compare_created(
                        b.created_at_dt, a.created_at_dt
                    )
                ),
            )
        if key is SortKey.OLDEST:
            return sorted(
                products,
                key=cmp_to_key(
                    lambda a, b: _compare_created(
                        a.created_at_dt, b.created_at_dt
                    )
                ),
            )
        return sorted(products, key=lambda p: p.id)

    @staticmethod
    def reduce(
        products: list[Product], state: FilterState
    ) -> list[Product]:
        """Apply every filter stage in order, then sort.

        The result only ever contains items from ``products``.
        """
        if not products:
            return []

        working = ProductFilter.by_category(products, state.category)
        working = ProductFilter.by_sub_category(
            working, state.sub_category
        )
        working = ProductFilter.by_price(
            working, state.min_price, state.max_price
        )
        working = ProductFilter.by_brands(
            working, state.selected_brands
        )
        working = ProductFilter.by_min_rating(working, state.min_rating)
        result = ProductFilter.sort(working, state.sort_key)

        logger.debug(
            "Reduced %d products to %d (sort=%s)",
            len(products),
            len(result),
            SortKey.parse(state.sort_key).value,
        )
        return result

    @staticmethod
    def extract_brands(products: Iterable[Product]) -> list[str]:
        """Distinct trimmed brand names, sorted case-insensitively."""
        brands: dict[str, str] = {}
        for p in products:
            name = p.brand.strip()
            if name:
                brands.setdefault(normalize_key(name), name)
        return sorted(brands.values(), key=str.casefold)

    @staticmethod
    def extract_sub_categories(
        products: Iterable[Product], category: str = ALL
    ) -> list[str]:
        """Distinct normalised sub-categories within ``category``."""
        wanted = normalize_key(category)
        found = {
            normalize_key(p.sub_category)
            for p in products
            if p.sub_category
            and (wanted == ALL or normalize_key(p.category) == wanted)
        }
        return sorted(found)

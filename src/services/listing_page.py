# src/services/listing_page.py

"""Loading, filtering and paging for a category or search listing."""

import asyncio
import dataclasses
import logging
from collections.abc import Callable

from src.api.shop_client import ShopApiClient
from src.filters.filter_state_holder import FilterStateHolder
from src.filters.product_filter import ProductFilter
from src.models.errors import StorefrontError, ValidationError
from src.models.filter_state import ALL, FilterState, normalize_key
from src.models.order import RatingUpdate
from src.models.product import Product
from src.services.currency_service import CurrencyService
from src.services.observer import ObserverRegistry, Subscription
from src.services.paginator import PageView, Paginator
from src.services.rating_service import RatingService

logger = logging.getLogger("storefront.listing")


class ListingPage:
    """View-model behind a category listing.

    Holds the category's product snapshot, the filter selection and
    the paginator. Any filter, currency or rating change re-runs the
    reducer; views subscribe via :meth:`subscribe` and re-render.
    """

    def __init__(
        self,
        category: str,
        api: ShopApiClient,
        currency_service: CurrencyService,
        rating_service: RatingService | None = None,
        paginator: Paginator[Product] | None = None,
        query: str | None = None,
    ) -> None:
        self.category = category
        self.query: str | None = (query or "").strip() or None
        self.api = api
        self.currency = currency_service
        self.filters = FilterStateHolder(
            currency_service, ALL if self.query else category
        )
        self.paginator: Paginator[Product] = paginator or Paginator()
        self.paginator.on_change = self._emit

        self.products: list[Product] = []
        self.filtered: list[Product] = []
        self.available_brands: list[str] = []
        self.is_loading = False
        self.is_loading_brands = False
        self.error: str | None = None

        self._brand_generation = 0
        self._brands_from_products = False
        self._product_generation = 0
        self._updates: ObserverRegistry[ListingPage] = ObserverRegistry(
            f"listing:{category}"
        )
        self._subscriptions: list[Subscription] = [
            self.filters.subscribe(self._on_filters_changed),
        ]
        if rating_service is not None:
            self._subscriptions.append(
                rating_service.subscribe(self.apply_rating_update)
            )

    # ── View binding ─────────────────────────────────────

    @property
    def view(self) -> PageView[Product]:
        return self.paginator.view

    @property
    def state(self) -> FilterState:
        return self.filters.state

    def subscribe(
        self, callback: Callable[["ListingPage"], None]
    ) -> Subscription:
        return self._updates.subscribe(callback)

    def available_sub_categories(self) -> list[str]:
        return ProductFilter.extract_sub_categories(
            self.products, self.state.category
        )

    def display_price(self, product: Product) -> str:
        return self.currency.format_price(product.effective_price)

    # ── Loading ──────────────────────────────────────────

    async def load(self) -> None:
        """Load products and brands for the current category."""
        await asyncio.gather(self.load_products(), self.load_brands())

    async def load_products(self) -> None:
        self._product_generation += 1
        generation = self._product_generation
        category = self.category
        query = self.query
        label = f"'{query}'" if query else category
        self.is_loading = True
        self.error = None
        self._emit()

        try:
            if query:
                products = await asyncio.to_thread(
                    self.api.search_products, query
                )
            else:
                products = await asyncio.to_thread(
                    self.api.get_products_by_category, category
                )
        except StorefrontError as exc:
            if generation != self._product_generation:
                return
            logger.error(
                "Failed to load products for %s: %s",
                label,
                exc,
                exc_info=True,
            )
            if query:
                self.error = (
                    f"Search for '{query}' failed. Please try again later."
                )
            else:
                self.error = (
                    f"Failed to load {category} products. "
                    "Please try again later."
                )
            products = []

        if generation != self._product_generation:
            logger.debug("Discarding stale products for %s", label)
            return

        self.products = products
        self.is_loading = False
        if self._brands_from_products:
            self.available_brands = ProductFilter.extract_brands(products)
        logger.info("Loaded %d products for %s", len(products), label)
        self.refresh(reset_page=False)

    async def load_brands(self) -> None:
        """Fetch the brand list; stale responses are discarded."""
        self._brand_generation += 1
        generation = self._brand_generation
        category = self.category
        self.is_loading_brands = True
        self.available_brands = []
        self._brands_from_products = False

        if self.query:
            # Search results have no brand endpoint
            self._brands_from_products = True
            self.available_brands = ProductFilter.extract_brands(
                self.products
            )
            self.is_loading_brands = False
            self._emit()
            return

        try:
            brands: list[str] | None = await asyncio.to_thread(
                self.api.get_brands_by_category, category
            )
        except StorefrontError:
            logger.warning(
                "Brand list failed for '%s'", category, exc_info=True
            )
            brands = None

        if generation != self._brand_generation:
            logger.debug(
                "Category changed while loading brands for '%s'; "
                "ignoring results",
                category,
            )
            return

        if brands is None:
            # Fall back to whatever the product snapshot offers
            self._brands_from_products = True
            self.available_brands = ProductFilter.extract_brands(
                self.products
            )
        else:
            unique: dict[str, str] = {}
            for brand in brands:
                if brand.strip():
                    unique.setdefault(normalize_key(brand), brand.strip())
            self.available_brands = sorted(unique.values(), key=str.casefold)
        self.is_loading_brands = False
        self._emit()

    async def change_category(self, category: str) -> None:
        """Navigate to another category and reload everything."""
        if category == self.category and self.query is None:
            return
        logger.info("Category change %s -> %s", self.category, category)
        self.category = category
        self.query = None
        self.products = []
        self.available_brands = []
        self.filters.change_category(category)
        await self.load()

    async def search(self, query: str) -> None:
        """Replace the listing with search results for ``query``.

        Filters reset as on a category change; the category stage is
        skipped so every match is a candidate.
        """
        cleaned = query.strip()
        if not cleaned:
            raise ValidationError("Search query cannot be empty")
        logger.info(
            "Search '%s' (was %s)", cleaned, self.query or self.category
        )
        self.query = cleaned
        self.products = []
        self.available_brands = []
        self.filters.change_category(ALL)
        await self.load()

    # ── Pipeline ─────────────────────────────────────────

    def refresh(self, reset_page: bool = True) -> None:
        """Re-run the reducer over the snapshot and re-page."""
        self.filtered = ProductFilter.reduce(
            self.products, self.filters.state
        )
        self.paginator.set_items(self.filtered, reset=reset_page)

    def apply_rating_update(self, update: RatingUpdate) -> None:
        for index, product in enumerate(self.products):
            if product.id == update.product_id:
                self.products[index] = dataclasses.replace(
                    product,
                    average_rating=update.average_rating,
                    rating_count=update.rating_count,
                )
                self.refresh(reset_page=False)
                return

    def _on_filters_changed(self, _state: FilterState) -> None:
        self.refresh(reset_page=True)

    # ── Navigation ───────────────────────────────────────

    async def go_to_page(self, page: int) -> bool:
        return await self.paginator.go_to_page(page)

    async def next_page(self) -> bool:
        return await self.paginator.next_page()

    async def previous_page(self) -> bool:
        return await self.paginator.previous_page()

    async def first_page(self) -> bool:
        return await self.paginator.first_page()

    async def last_page(self) -> bool:
        return await self.paginator.last_page()

    # ── Teardown ─────────────────────────────────────────

    def close(self) -> None:
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions.clear()
        self.filters.close()
        self.paginator.on_change = None

    def _emit(self) -> None:
        self._updates.publish(self)

# src/ui/app.py

"""Terminal UI for browsing the storefront catalogue."""

import logging
from collections.abc import Coroutine
from typing import Any, cast

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.widgets import (
    Button,
    DataTable,
    Footer,
    Header,
    Input,
    Select,
    SelectionList,
    Static,
)

from src.api.exchange_rates import ExchangeRateClient
from src.api.shop_client import ShopApiClient
from src.config.settings import Settings
from src.models.errors import StorefrontError, ValidationError
from src.models.filter_state import ALL, SORT_LABELS, SortKey
from src.models.product import Product
from src.services.account_service import AccountService
from src.services.cart_service import CartService
from src.services.currency_service import CurrencyService
from src.services.favorites_service import FavoritesService
from src.services.listing_page import ListingPage
from src.services.rating_service import RatingService
from src.services.review_service import ReviewService
from src.storage.local_store import LocalStore

logger = logging.getLogger("storefront.ui")

def _parse_optional_float(raw: str, label: str) -> float | None:
    text = raw.strip()
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        raise ValidationError(f"{label} must be a number") from None


class StorefrontApp(App[object]):
    """Category listing with filters, currency switch and pagination."""

    CSS = """
    #top_bar, #price_bar, #pager { height: auto; }
    #top_bar Select { width: 1fr; }
    #price_bar Input { width: 1fr; }
    #price_bar #search_input { width: 2fr; }
    #body { height: 1fr; }
    #brand_list { width: 28; }
    #results_table { width: 1fr; }
    #results_table.-paging { opacity: 0%; }
    #page_info { width: 1fr; content-align: center middle; }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("f", "toggle_favorite", "Favourite"),
        Binding("a", "add_to_cart", "Add to cart"),
        Binding("r", "show_reviews", "Reviews"),
        Binding("x", "clear_filters", "Clear filters"),
        Binding("[", "previous_page", "Prev page"),
        Binding("]", "next_page", "Next page"),
        Binding("1", "rate(1)", "Rate 1", show=False),
        Binding("2", "rate(2)", "Rate 2", show=False),
        Binding("3", "rate(3)", "Rate 3", show=False),
        Binding("4", "rate(4)", "Rate 4", show=False),
        Binding("5", "rate(5)", "Rate 5", show=False),
        Binding("0", "unrate", "Remove rating", show=False),
    ]

    def __init__(
        self,
        api: ShopApiClient | None = None,
        currency_service: CurrencyService | None = None,
        store: LocalStore | None = None,
        category: str | None = None,
    ) -> None:
        super().__init__()
        self.settings = Settings()
        self.store = store or LocalStore()
        self.api = api or ShopApiClient()
        self.account = AccountService(self.api, self.store)
        self.currency = currency_service or CurrencyService(
            ExchangeRateClient(), self.store
        )
        user_id = self.account.user_id
        self.ratings = RatingService(self.api, user_id)
        self.cart = CartService(self.api, user_id)
        self.reviews = ReviewService(self.api, user_id)
        self.favorites = FavoritesService(self.store)
        self.listing = ListingPage(
            category or self.settings.AVAILABLE_CATEGORIES[0]["label"],
            self.api,
            self.currency,
            self.ratings,
        )
        self._shown_brands: list[str] = []
        self._shown_sub_categories: list[str] = []

    def compose(self) -> ComposeResult:
        """Build the widget tree for the TUI."""
        category_options = [
            (c["label"], c["label"])
            for c in self.settings.AVAILABLE_CATEGORIES
        ]
        sort_options = [(label, key.value) for key, label in SORT_LABELS.items()]
        currency_options = [
            (f"{c.code} ({c.symbol})", c.code)
            for c in self.currency.currencies()
        ]

        yield Header()
        yield Container(
            Horizontal(
                Select(
                    category_options,
                    value=self.listing.category,
                    allow_blank=False,
                    id="category_select",
                ),
                Select(
                    [("All", ALL)],
                    value=ALL,
                    allow_blank=False,
                    id="sub_category_select",
                ),
                Select(
                    sort_options,
                    value=SortKey.DEFAULT.value,
                    allow_blank=False,
                    id="sort_select",
                ),
                Select(
                    currency_options,
                    value=self.currency.current.code,
                    allow_blank=False,
                    id="currency_select",
                ),
                id="top_bar",
            ),
            Horizontal(
                Input(placeholder="Search products", id="search_input"),
                Input(placeholder="Min price", id="min_price"),
                Input(placeholder="Max price", id="max_price"),
                Input(placeholder="Min rating (0-5)", id="min_rating"),
                Button("Apply", variant="primary", id="apply_btn"),
                Button("Clear", id="clear_btn"),
                id="price_bar",
            ),
            Horizontal(
                SelectionList[str](id="brand_list"),
                cast(
                    DataTable[str | Text],
                    DataTable(
                        id="results_table",
                        zebra_stripes=True,
                        cursor_type="row",
                    ),
                ),
                id="body",
            ),
            Horizontal(
                Button("«", id="first_btn"),
                Button("‹ Prev", id="prev_btn"),
                Static("", id="page_info"),
                Button("Next ›", id="next_btn"),
                Button("»", id="last_btn"),
                id="pager",
            ),
            Static("Ready", id="status"),
            id="main_container",
        )
        yield Footer()

    def on_mount(self) -> None:
        """Configure the results table and start loading."""
        table = self._table()
        table.add_columns("Name", "Brand", "Price", "Rating", "Stock", "")
        self.listing.subscribe(lambda _listing: self.render_listing())
        self.currency.subscribe(lambda _change: self._sync_price_inputs())
        session = self.account.session
        if session is not None:
            self.sub_title = f"Signed in as {session.display_name}"
        self.run_worker(self.load_initial(), exclusive=True, group="load")

    def on_unmount(self) -> None:
        self.listing.close()

    async def load_initial(self) -> None:
        self.query_one("#status", Static).update("Loading products...")
        await self.currency.refresh_rates()
        if self.currency.using_fallback_rates:
            self.notify(
                "Exchange rates unavailable, using default rates",
                severity="warning",
            )
        await self.listing.load()
        await self.cart.load()

    # ── Rendering ────────────────────────────────────────

    def _table(self) -> DataTable[str | Text]:
        return cast(
            DataTable[str | Text],
            self.query_one("#results_table", DataTable),
        )

    def render_listing(self) -> None:
        """Redraw table, pager, brand list and status from the listing."""
        listing = self.listing
        view = listing.view
        table = self._table()
        table.set_class(not listing.paginator.content_visible, "-paging")
        table.clear()
        for product in view.items:
            table.add_row(*self._row_for(product), key=str(product.id))

        self._render_pager()
        self._render_brands()
        self._render_sub_categories()

        status = self.query_one("#status", Static)
        if listing.error:
            status.update(f"❌ {listing.error}")
        elif listing.is_loading:
            status.update("Loading products...")
        else:
            active = listing.filters.active_filter_count()
            suffix = f" · {active} filter(s) active" if active else ""
            status.update(f"{view.summary}{suffix}")

    def _row_for(self, product: Product) -> tuple[str | Text, ...]:
        price = Text(self.listing.display_price(product))
        if product.has_active_discount:
            price.stylize("bold green")
            price.append(
                f" -{product.derived_discount_percentage:g}%", style="dim"
            )
        favorite = "♥" if self.favorites.is_favorite(product.id) else ""
        return (
            product.name[:50],
            product.brand,
            price,
            f"⭐ {product.effective_rating:.1f} ({product.rating_count})",
            str(product.quantity),
            favorite,
        )

    def _render_pager(self) -> None:
        paginator = self.listing.paginator
        view = paginator.view
        pages = Text()
        for number in view.visible_pages:
            style = "bold reverse" if number == view.page else ""
            pages.append(f" {number} ", style=style)
        if view.total_pages:
            pages.append(f"  of {view.total_pages}", style="dim")
        self.query_one("#page_info", Static).update(pages)
        self.query_one("#prev_btn", Button).disabled = (
            not paginator.can_go_previous()
        )
        self.query_one("#first_btn", Button).disabled = (
            not paginator.can_go_previous()
        )
        self.query_one("#next_btn", Button).disabled = (
            not paginator.can_go_next()
        )
        self.query_one("#last_btn", Button).disabled = (
            not paginator.can_go_next()
        )

    def _render_brands(self) -> None:
        brands = self.listing.available_brands
        if brands == self._shown_brands:
            return
        self._shown_brands = list(brands)
        brand_list = cast(
            SelectionList[str], self.query_one("#brand_list", SelectionList)
        )
        brand_list.clear_options()
        brand_list.add_options(
            [
                (brand, brand, self.listing.filters.is_brand_selected(brand))
                for brand in brands
            ]
        )

    def _render_sub_categories(self) -> None:
        subs = self.listing.available_sub_categories()
        if subs == self._shown_sub_categories:
            return
        self._shown_sub_categories = subs
        select = cast(
            Select[str], self.query_one("#sub_category_select", Select)
        )
        with select.prevent(Select.Changed):
            select.set_options(
                [("All", ALL)] + [(s.title(), s) for s in subs]
            )
            current = self.listing.state.sub_category
            select.value = current if current in subs else ALL

    def _sync_price_inputs(self) -> None:
        price_input = self.listing.filters.price_input
        for widget_id, value in (
            ("#min_price", price_input.min_value),
            ("#max_price", price_input.max_value),
        ):
            self.query_one(widget_id, Input).value = (
                "" if value is None else f"{value:g}"
            )

    # ── Events ───────────────────────────────────────────

    async def on_select_changed(self, event: Select.Changed) -> None:
        value = event.value
        if not isinstance(value, str):
            return
        try:
            if event.select.id == "category_select":
                if (
                    value == self.listing.category
                    and self.listing.query is None
                ):
                    return
                self.query_one("#search_input", Input).value = ""
                self._shown_sub_categories = []
                self.run_worker(
                    self.listing.change_category(value),
                    exclusive=True,
                    group="load",
                )
            elif event.select.id == "sub_category_select":
                if value != self.listing.state.sub_category:
                    self.listing.filters.set_sub_category(value)
            elif event.select.id == "sort_select":
                if SortKey.parse(value) is not self.listing.state.sort_key:
                    self.listing.filters.set_sort(value)
            elif event.select.id == "currency_select":
                self.currency.set_currency(value)
        except StorefrontError as exc:
            self.notify(str(exc), severity="error")

    def on_selection_list_selected_changed(
        self, event: SelectionList.SelectedChanged[str]
    ) -> None:
        selected = set(event.selection_list.selected)
        current = {
            b for b in self._shown_brands
            if self.listing.filters.is_brand_selected(b)
        }
        if selected != current:
            self.listing.filters.set_brands(selected)

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle button click events."""
        button_id = event.button.id
        if button_id == "apply_btn":
            self.apply_price_and_rating()
        elif button_id == "clear_btn":
            self.action_clear_filters()
        elif button_id == "prev_btn":
            self.action_previous_page()
        elif button_id == "next_btn":
            self.action_next_page()
        elif button_id == "first_btn":
            self._page(self.listing.first_page())
        elif button_id == "last_btn":
            self._page(self.listing.last_page())

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Enter runs a search in the search box, else applies filters."""
        if event.input.id == "search_input":
            self.run_search(event.value)
        else:
            self.apply_price_and_rating()

    def run_search(self, raw: str) -> None:
        """Search all products; an empty query goes back to the category."""
        query = raw.strip()
        self._shown_sub_categories = []
        if query:
            move = self._search(query)
        else:
            category = self.query_one("#category_select", Select).value
            if not isinstance(category, str):
                return
            move = self.listing.change_category(category)
        self.run_worker(move, exclusive=True, group="load")

    async def _search(self, query: str) -> None:
        try:
            await self.listing.search(query)
        except ValidationError as exc:
            self.notify(str(exc), severity="error")

    def apply_price_and_rating(self) -> None:
        try:
            min_price = _parse_optional_float(
                self.query_one("#min_price", Input).value, "Min price"
            )
            max_price = _parse_optional_float(
                self.query_one("#max_price", Input).value, "Max price"
            )
            min_rating = _parse_optional_float(
                self.query_one("#min_rating", Input).value, "Min rating"
            )
            filters = self.listing.filters
            filters.apply_top_bar(
                filters.state.sort_key,
                filters.state.sub_category,
                min_rating,
                min_price,
                max_price,
            )
        except ValidationError as exc:
            self.notify(str(exc), severity="error")

    # ── Actions ──────────────────────────────────────────

    def _selected_product(self) -> Product | None:
        items = self.listing.view.items
        row = self._table().cursor_row
        if 0 <= row < len(items):
            return items[row]
        return None

    def _page(self, move: Coroutine[Any, Any, bool]) -> None:
        self.run_worker(move, group="paging")

    def action_next_page(self) -> None:
        self._page(self.listing.next_page())

    def action_previous_page(self) -> None:
        self._page(self.listing.previous_page())

    def action_clear_filters(self) -> None:
        self.listing.filters.clear_all()
        for widget_id in ("#min_price", "#max_price", "#min_rating"):
            self.query_one(widget_id, Input).value = ""
        self.query_one("#sort_select", Select).value = SortKey.DEFAULT.value
        self.query_one("#sub_category_select", Select).value = ALL
        self._shown_brands = []
        self.render_listing()

    def action_toggle_favorite(self) -> None:
        product = self._selected_product()
        if product is None:
            return
        try:
            added = self.favorites.toggle(product)
        except OSError:
            logger.error("Failed to save favourites", exc_info=True)
            self.notify("Could not save favourites", severity="error")
            return
        self.notify(
            f"{'Added' if added else 'Removed'} {product.name} "
            f"{'to' if added else 'from'} favourites"
        )
        self.render_listing()

    def action_add_to_cart(self) -> None:
        product = self._selected_product()
        if product is None:
            return
        if not self.cart.user_id:
            self.notify(
                "Sign in with --login to use the cart", severity="warning"
            )
            return
        self.run_worker(self._add_to_cart(product), group="cart")

    async def _add_to_cart(self, product: Product) -> None:
        if await self.cart.add_to_cart(product):
            self.notify(
                f"Added {product.name} to cart "
                f"({self.cart.count()} items, "
                f"{self.currency.format_price(self.cart.total())})"
            )
        else:
            self.notify(
                f"Could not add {product.name} to cart", severity="error"
            )

    def action_rate(self, value: int) -> None:
        product = self._selected_product()
        if product is None:
            return
        self.run_worker(self._rate(product, value), group="rating")

    async def _rate(self, product: Product, value: int) -> None:
        try:
            update = await self.ratings.submit_rating(product.id, value)
        except StorefrontError as exc:
            logger.error("Rating product %d failed", product.id, exc_info=True)
            self.notify(str(exc), severity="error")
            return
        self.notify(
            f"Rated {product.name} {value}/5, "
            f"average {update.average_rating:.1f}"
        )

    def action_unrate(self) -> None:
        product = self._selected_product()
        if product is None:
            return
        self.run_worker(self._unrate(product), group="rating")

    async def _unrate(self, product: Product) -> None:
        try:
            update = await self.ratings.delete_rating(product.id)
        except StorefrontError as exc:
            logger.error(
                "Removing rating of product %d failed",
                product.id,
                exc_info=True,
            )
            self.notify(str(exc), severity="error")
            return
        self.notify(
            f"Removed your rating of {product.name}, "
            f"average {update.average_rating:.1f}"
        )

    def action_show_reviews(self) -> None:
        product = self._selected_product()
        if product is None:
            return
        self.run_worker(self._show_reviews(product), group="reviews")

    async def _show_reviews(self, product: Product) -> None:
        reviews = await self.reviews.load(product.id)
        if not reviews:
            self.notify(f"No reviews for {product.name} yet")
            return
        lines = [f"{r.author}: {r.content[:80]}" for r in reviews[:5]]
        if len(reviews) > 5:
            lines.append(f"... and {len(reviews) - 5} more")
        self.notify(
            "\n".join(lines),
            title=f"Reviews for {product.name}",
            timeout=10,
        )

# src/cli/runner.py

"""Headless CLI listing runner, built on the same listing page as the TUI."""

import json
import logging
import sys

from rich.console import Console
from rich.table import Table

from src.api.exchange_rates import ExchangeRateClient
from src.api.shop_client import ShopApiClient
from src.config.settings import Settings
from src.models.errors import StorefrontError, ValidationError
from src.models.filter_state import ALL
from src.models.product import Product
from src.services.currency_service import CurrencyService
from src.services.listing_page import ListingPage
from src.services.paginator import PageView, Paginator, paginate

logger = logging.getLogger("storefront.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)


def resolve_category(raw: str) -> str:
    """Map a category id or label (any case) to its label.

    Raises ``SystemExit`` on unknown categories.
    """
    wanted = raw.strip().casefold()
    for category in Settings.AVAILABLE_CATEGORIES:
        if wanted in (category["id"], category["label"].casefold()):
            return category["label"]

    valid = ", ".join(c["id"] for c in Settings.AVAILABLE_CATEGORIES)
    _err.print(f"[red]Unknown category: {raw}[/red]")
    _err.print(f"[dim]Available: {valid}[/dim]")
    raise SystemExit(1)


def _split_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def _products_to_dicts(
    products: list[Product], currency: CurrencyService
) -> list[dict[str, object]]:
    """Serialise a page of products, prices in the display currency."""
    code = currency.current.code
    return [
        {
            "id": p.id,
            "name": p.name,
            "brand": p.brand,
            "subCategory": p.sub_category,
            "price": currency.from_reference(p.effective_price, code),
            "currency": code,
            "discountPercentage": p.derived_discount_percentage,
            "rating": p.effective_rating,
            "ratingCount": p.rating_count,
            "quantity": p.quantity,
        }
        for p in products
    ]


def _print_table(
    view: PageView[Product], currency: CurrencyService, title: str
) -> None:
    """Render a Rich table of one page to stdout."""
    table = Table(
        title=title,
        caption=view.summary,
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("Name", max_width=50)
    table.add_column("Brand", style="magenta")
    table.add_column("Price", justify="right", style="green")
    table.add_column("Rating", justify="center")
    table.add_column("Stock", justify="right", style="dim")

    first = (view.page - 1) * view.page_size + 1
    for idx, p in enumerate(view.items, first):
        price = currency.format_price(p.effective_price)
        if p.has_active_discount:
            price += f" (-{p.derived_discount_percentage:g}%)"
        table.add_row(
            str(idx),
            p.name[:50],
            p.brand or "-",
            price,
            f"{p.effective_rating:.1f} ({p.rating_count})",
            str(p.quantity),
        )

    Console().print(table)


async def cli_browse(
    category: str | None,
    sort: str = "default",
    min_price: float | None = None,
    max_price: float | None = None,
    currency_code: str | None = None,
    brands_csv: str | None = None,
    min_rating: float | None = None,
    page: int = 1,
    output_format: str = "json",
    query: str | None = None,
) -> int:
    """Load, filter and page one category or search; return an exit code.

    With ``query`` the listing holds the search results instead of a
    category. Price bounds are read in ``currency_code``. Exit codes:
    0 ok, 1 load failure or empty result, 2 invalid filters.
    """
    query = (query or "").strip() or None
    if query:
        label = f"Search: {query}"
    elif category:
        label = resolve_category(category)
    else:
        _err.print("[red]A category or --search query is required.[/red]")
        return 2
    currency = CurrencyService(ExchangeRateClient())
    await currency.refresh_rates()
    if currency.using_fallback_rates:
        _err.print("[yellow]Using default exchange rates.[/yellow]")

    api = ShopApiClient(token=Settings.API_TOKEN)
    listing = ListingPage(
        ALL if query else label,
        api,
        currency,
        paginator=Paginator(hide_delay=0, reveal_delay=0),
        query=query,
    )
    try:
        if currency_code:
            currency.set_currency(currency_code)
        filters = listing.filters
        filters.set_sort(sort)
        filters.set_price_range(min_price, max_price)
        filters.set_min_rating(min_rating)
        filters.set_brands(_split_csv(brands_csv))
    except ValidationError as exc:
        _err.print(f"[red]{exc}[/red]")
        listing.close()
        api.close()
        return 2

    _err.print(
        f"[bold]Browsing:[/bold] {label}  "
        f"[dim]currency={currency.current.code} "
        f"filters={listing.filters.active_filter_count()}[/dim]"
    )

    try:
        await listing.load()
    finally:
        listing.close()
        api.close()

    if listing.error:
        _err.print(f"[red]{listing.error}[/red]")
        return 1

    view = paginate(listing.filtered, page)
    if not view.items:
        _err.print("[yellow]No products found.[/yellow]")
        return 1

    _err.print(f"[green]✓ {view.summary}[/green]")
    if listing.available_brands:
        _err.print(
            f"[dim]Brands: {', '.join(listing.available_brands)}[/dim]"
        )

    if output_format == "table":
        _print_table(view, currency, f"{label} (page {view.page})")
    else:
        json.dump(
            {
                "category": label,
                "currency": currency.current.code,
                "page": view.page,
                "totalPages": view.total_pages,
                "totalItems": view.total_items,
                "visiblePages": view.visible_pages,
                "products": _products_to_dicts(view.items, currency),
            },
            sys.stdout,
            ensure_ascii=False,
            indent=2,
        )
        sys.stdout.write("\n")

    return 0


def run_newly_added(
    max_products: int = 20,
    days_back: int = 30,
    currency_code: str | None = None,
    output_format: str = "json",
) -> int:
    """Print products added in the last ``days_back`` days, newest first."""
    currency = CurrencyService(ExchangeRateClient())
    api = ShopApiClient(token=Settings.API_TOKEN)
    try:
        if currency_code:
            currency.load_rates()
            currency.set_currency(currency_code)
        products = api.get_newly_added(max_products, days_back)
    except ValidationError as exc:
        _err.print(f"[red]{exc}[/red]")
        return 2
    except StorefrontError as exc:
        _err.print(f"[red]{exc}[/red]")
        return 1
    finally:
        api.close()

    products.sort(
        key=lambda p: p.created_at_dt.timestamp() if p.created_at_dt else 0,
        reverse=True,
    )
    if not products:
        _err.print(
            f"[yellow]No products added in the last {days_back} days.[/yellow]"
        )
        return 0

    if output_format == "table":
        view = paginate(products, 1, page_size=len(products))
        _print_table(view, currency, f"New in the last {days_back} days")
    else:
        json.dump(
            _products_to_dicts(products, currency),
            sys.stdout,
            ensure_ascii=False,
            indent=2,
        )
        sys.stdout.write("\n")
    return 0


def run_rates() -> int:
    """Print the supported currencies and their current rates."""
    currency = CurrencyService(ExchangeRateClient())
    currency.load_rates()

    table = Table(
        title=f"Exchange rates (1 {currency.reference_code})",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Code", style="bold")
    table.add_column("Name")
    table.add_column("Symbol", justify="center")
    table.add_column("Rate", justify="right", style="green")

    for entry in currency.currencies():
        table.add_row(
            entry.code, entry.name, entry.symbol, f"{entry.rate:.4f}"
        )

    Console().print(table)
    if currency.using_fallback_rates:
        _err.print(
            "[yellow]Live rates unavailable; showing default rates.[/yellow]"
        )
    return 0

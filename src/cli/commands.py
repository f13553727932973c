# src/cli/commands.py

"""Headless account, cart, order, review and admin commands."""

import getpass
import json
import logging
import sys
from datetime import date
from typing import Any

from rich.console import Console
from rich.table import Table

from src.api.shop_client import ShopApiClient
from src.models.errors import StorefrontError, ValidationError
from src.models.order import Order
from src.models.review import Review
from src.services.account_service import AccountService
from src.services.cart_service import CartService
from src.services.order_stats import (
    ProductPopularity,
    order_status,
    popularity_from_orders,
)
from src.services.rating_service import RatingService
from src.services.review_service import ReviewService
from src.storage.local_store import LocalStore

logger = logging.getLogger("storefront.cli")

_err = Console(stderr=True)


def _open_account(
    store: LocalStore | None = None,
) -> tuple[ShopApiClient, AccountService]:
    """API client authorised with the stored session, if any."""
    api = ShopApiClient()
    return api, AccountService(api, store or LocalStore())


def _fail(exc: StorefrontError) -> int:
    """Report ``exc`` and map it to an exit code (2 invalid, 1 server)."""
    _err.print(f"[red]{exc}[/red]")
    return 2 if isinstance(exc, ValidationError) else 1


def _require_user(account: AccountService) -> int:
    if not account.user_id:
        raise ValidationError(
            "Not signed in. Run with --login EMAIL or set STOREFRONT_USER_ID."
        )
    return account.user_id


def _dump_json(data: Any) -> None:
    json.dump(data, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")


# ── Account ─────────────────────────────────────────────


async def run_login(email: str, password: str | None = None) -> int:
    """Sign in; the session is stored for later runs."""
    api, account = _open_account()
    try:
        secret = password if password is not None else getpass.getpass()
        session = await account.login(email, secret)
    except StorefrontError as exc:
        return _fail(exc)
    finally:
        api.close()
    _err.print(
        f"[green]✓ Signed in as {session.display_name} "
        f"(user {session.user_id}, {session.role})[/green]"
    )
    return 0


async def run_register(
    name: str,
    last_name: str,
    email: str,
    address: str = "",
    password: str | None = None,
) -> int:
    api, account = _open_account()
    try:
        secret = password if password is not None else getpass.getpass()
        await account.register(name, last_name, email, secret, address)
    except StorefrontError as exc:
        return _fail(exc)
    finally:
        api.close()
    _err.print("[green]✓ Registration successful! Please login.[/green]")
    return 0


def run_logout() -> int:
    api, account = _open_account()
    account.logout()
    api.close()
    _err.print("Signed out.")
    return 0


# ── Cart & orders ───────────────────────────────────────


async def run_checkout(
    email: str,
    location: str,
    delivery_type: str = "standard",
    nominated_date: str | None = None,
) -> int:
    """Submit the signed-in user's server cart as an order."""
    try:
        when = date.fromisoformat(nominated_date) if nominated_date else None
    except ValueError:
        _err.print(f"[red]Invalid date: {nominated_date}[/red]")
        return 2

    api, account = _open_account()
    try:
        cart = CartService(api, _require_user(account))
        await cart.load()
        _err.print(
            f"Cart: {cart.count()} item(s), total {cart.total():.2f}"
        )
        response = await cart.checkout(email, location, delivery_type, when)
    except StorefrontError as exc:
        return _fail(exc)
    finally:
        api.close()
    _err.print("[green]✓ Order placed.[/green]")
    if response is not None:
        _dump_json(response)
    return 0


def _orders_table(orders: list[Order], today: date | None = None) -> Table:
    table = Table(title="My orders", show_lines=True, title_style="bold cyan")
    table.add_column("Order", style="dim")
    table.add_column("Placed")
    table.add_column("Delivery")
    table.add_column("Items", justify="right")
    table.add_column("Total", justify="right", style="green")
    table.add_column("Status", style="bold")
    for order in orders:
        placed = order.order_date_dt
        status = order_status(order, today)
        table.add_row(
            str(order.id),
            placed.date().isoformat() if placed else "-",
            order.delivery_type or "-",
            str(sum(item.quantity for item in order.items)),
            f"{order.total_price:,.2f}",
            f"{status.label} ({status.progress}%)",
        )
    return table


def run_orders(output_format: str = "table") -> int:
    """List the signed-in user's orders with their delivery status."""
    api, account = _open_account()
    try:
        user_id = _require_user(account)
        orders = api.get_orders_for_user(user_id)
    except StorefrontError as exc:
        return _fail(exc)
    finally:
        api.close()

    if not orders:
        _err.print("[yellow]No orders yet.[/yellow]")
        return 0
    orders.sort(
        key=lambda o: o.order_date_dt.timestamp() if o.order_date_dt else 0,
        reverse=True,
    )
    if output_format == "json":
        _dump_json(
            [
                {
                    "id": o.id,
                    "orderDate": o.order_date,
                    "deliveryDate": o.delivery_date,
                    "deliveryType": o.delivery_type,
                    "totalPrice": o.total_price,
                    "status": order_status(o).label,
                }
                for o in orders
            ]
        )
    else:
        Console().print(_orders_table(orders))
    return 0


def _popularity_rows(
    stats: list[ProductPopularity], names: dict[int, str]
) -> list[dict[str, Any]]:
    return [
        {
            "productId": s.product_id,
            "name": names.get(s.product_id, f"Product {s.product_id}"),
            "totalOrders": s.total_orders,
            "totalQuantity": s.total_quantity,
            "lastOrderDate": (
                s.last_order_date.isoformat() if s.last_order_date else None
            ),
        }
        for s in stats
    ]


def run_popular(limit: int = 10, output_format: str = "table") -> int:
    """Rank products by how many orders include them."""
    api, _account = _open_account()
    try:
        orders = api.get_all_orders()
        names = {p.id: p.name for p in api.get_all_products()}
    except StorefrontError as exc:
        return _fail(exc)
    finally:
        api.close()

    rows = _popularity_rows(popularity_from_orders(orders)[:limit], names)
    if not rows:
        _err.print("[yellow]No orders to rank.[/yellow]")
        return 0
    if output_format == "json":
        _dump_json(rows)
        return 0

    table = Table(
        title="Popular products", show_lines=True, title_style="bold cyan"
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("Product", max_width=50)
    table.add_column("Orders", justify="right", style="green")
    table.add_column("Units", justify="right")
    table.add_column("Last ordered", style="dim")
    for rank, row in enumerate(rows, 1):
        table.add_row(
            str(rank),
            row["name"],
            str(row["totalOrders"]),
            str(row["totalQuantity"]),
            (row["lastOrderDate"] or "-")[:10],
        )
    Console().print(table)
    return 0


# ── Reviews & ratings ───────────────────────────────────


def _print_reviews(product_id: int, reviews: list[Review]) -> None:
    table = Table(
        title=f"Reviews for product {product_id}",
        caption=f"{len(reviews)} review(s)",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("ID", style="dim")
    table.add_column("Author", style="magenta")
    table.add_column("Added", style="dim")
    table.add_column("Review", max_width=60)
    for review in reviews:
        added = review.added_at_dt
        table.add_row(
            str(review.id),
            review.author,
            added.date().isoformat() if added else "-",
            review.content,
        )
    Console().print(table)


async def run_reviews(
    product_id: int,
    add: str | None = None,
    edit: tuple[int, str] | None = None,
    delete: int | None = None,
) -> int:
    """List a product's reviews, optionally adding/editing/deleting one."""
    api, account = _open_account()
    reviews = ReviewService(api, account.user_id)
    try:
        current = await reviews.load(product_id)
        if add is not None:
            await reviews.add(product_id, add)
        elif edit is not None:
            await reviews.edit(_find_review(current, edit[0]), edit[1])
        elif delete is not None:
            await reviews.delete(_find_review(current, delete))
    except StorefrontError as exc:
        return _fail(exc)
    finally:
        api.close()
    _print_reviews(product_id, reviews.cached(product_id))
    return 0


def _find_review(reviews: list[Review], review_id: int) -> Review:
    for review in reviews:
        if review.id == review_id:
            return review
    raise ValidationError(f"Review {review_id} not found on this product")


async def run_unrate(product_id: int) -> int:
    """Delete the signed-in user's rating of a product."""
    api, account = _open_account()
    try:
        ratings = RatingService(api, _require_user(account))
        update = await ratings.delete_rating(product_id)
    except StorefrontError as exc:
        return _fail(exc)
    finally:
        api.close()
    _err.print(
        f"Rating removed. Average now {update.average_rating:.2f} "
        f"over {update.rating_count} rating(s)."
    )
    return 0


# ── Admin ───────────────────────────────────────────────


def run_discount(product_id: int, percentage: float | None) -> int:
    """Apply a percentage discount; ``None`` removes it."""
    api, account = _open_account()
    session = account.session
    if session is not None and not session.is_admin:
        _err.print(
            "[yellow]Signed-in user is not an admin; "
            "the server may refuse this.[/yellow]"
        )
    try:
        if percentage is None:
            api.remove_discount(product_id)
        else:
            api.apply_discount(product_id, percentage)
    except StorefrontError as exc:
        return _fail(exc)
    finally:
        api.close()
    if percentage is None:
        _err.print(f"[green]✓ Discount removed from {product_id}.[/green]")
    else:
        _err.print(
            f"[green]✓ {percentage:g}% discount applied to "
            f"{product_id}.[/green]"
        )
    return 0

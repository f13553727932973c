# main.py

"""Entry point for the storefront client (TUI or headless CLI)."""

import argparse
import asyncio
import logging
import sys

from src.config.logging_config import setup_logging
from src.config.settings import Settings
from src.models.filter_state import SortKey

logger = logging.getLogger("storefront.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    valid_ids = ", ".join(c["id"] for c in Settings.AVAILABLE_CATEGORIES)
    currencies = [c["code"] for c in Settings.AVAILABLE_CURRENCIES]

    parser = argparse.ArgumentParser(
        prog="storefront",
        description="Browse the storefront catalogue.",
        epilog=f"Available categories: {valid_ids}",
    )
    parser.add_argument(
        "category",
        nargs="?",
        default=None,
        help="Category id or name. Omit to launch the interactive TUI.",
    )

    listing = parser.add_argument_group("listing options")
    listing.add_argument(
        "--sort",
        choices=[key.value for key in SortKey],
        default=SortKey.DEFAULT.value,
        help="Sort order (default: default).",
    )
    listing.add_argument(
        "--min-price",
        type=float,
        default=None,
        dest="min_price",
        help="Lower price bound, in --currency.",
    )
    listing.add_argument(
        "--max-price",
        type=float,
        default=None,
        dest="max_price",
        help="Upper price bound, in --currency.",
    )
    listing.add_argument(
        "-c",
        "--currency",
        type=str.upper,
        choices=currencies,
        default=None,
        help=f"Display currency (default: {Settings.DEFAULT_CURRENCY}).",
    )
    listing.add_argument(
        "-b",
        "--brands",
        default=None,
        help="Comma-separated brand names.",
    )
    listing.add_argument(
        "--min-rating",
        type=float,
        default=None,
        dest="min_rating",
        help="Minimum average rating (0-5).",
    )
    listing.add_argument(
        "-p",
        "--page",
        type=int,
        default=1,
        help="Page number; out-of-range pages are clamped.",
    )
    listing.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="json",
        dest="output_format",
        help="Output format (default: json).",
    )
    listing.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Rows for --new (default 20) and --popular (default 10).",
    )
    listing.add_argument(
        "--days",
        type=int,
        default=30,
        help="How far back --new looks, in days (default: 30).",
    )

    actions = parser.add_mutually_exclusive_group()
    actions.add_argument(
        "-s",
        "--search",
        default=None,
        metavar="QUERY",
        help="Search all products instead of browsing a category.",
    )
    actions.add_argument(
        "--new",
        action="store_true",
        default=False,
        help="List newly added products.",
    )
    actions.add_argument(
        "--rates",
        action="store_true",
        default=False,
        help="Print the supported currencies and exchange rates.",
    )
    actions.add_argument(
        "--orders",
        action="store_true",
        default=False,
        help="List your orders and their delivery status.",
    )
    actions.add_argument(
        "--popular",
        action="store_true",
        default=False,
        help="Rank products by number of orders.",
    )
    actions.add_argument(
        "--checkout",
        action="store_true",
        default=False,
        help="Place an order for your cart (needs --email and --location).",
    )
    actions.add_argument(
        "--login",
        default=None,
        metavar="EMAIL",
        help="Sign in; the password is prompted for.",
    )
    actions.add_argument(
        "--logout",
        action="store_true",
        default=False,
        help="Forget the stored session.",
    )
    actions.add_argument(
        "--register",
        action="store_true",
        default=False,
        help="Create an account (needs --name, --last-name and --email).",
    )
    actions.add_argument(
        "--reviews",
        type=int,
        default=None,
        metavar="PRODUCT_ID",
        help="Show a product's reviews.",
    )
    actions.add_argument(
        "--unrate",
        type=int,
        default=None,
        metavar="PRODUCT_ID",
        help="Delete your rating of a product.",
    )
    actions.add_argument(
        "--discount",
        type=int,
        default=None,
        metavar="PRODUCT_ID",
        help="Apply --percent discount to a product (admin).",
    )
    actions.add_argument(
        "--remove-discount",
        type=int,
        default=None,
        dest="remove_discount",
        metavar="PRODUCT_ID",
        help="Remove a product's discount (admin).",
    )

    account = parser.add_argument_group("account, checkout and reviews")
    account.add_argument("--email", default=None)
    account.add_argument("--location", default=None)
    account.add_argument(
        "--delivery",
        choices=Settings.DELIVERY_TYPES,
        default="standard",
        help="Delivery type (default: standard).",
    )
    account.add_argument(
        "--date",
        default=None,
        help="Nominated delivery date, YYYY-MM-DD.",
    )
    account.add_argument("--name", default=None)
    account.add_argument("--last-name", default=None, dest="last_name")
    account.add_argument("--address", default="")
    account.add_argument(
        "--add-review",
        default=None,
        dest="add_review",
        metavar="TEXT",
        help="With --reviews: post a review.",
    )
    account.add_argument(
        "--edit-review",
        type=int,
        default=None,
        dest="edit_review",
        metavar="REVIEW_ID",
        help="With --reviews and --text: edit one of your reviews.",
    )
    account.add_argument(
        "--delete-review",
        type=int,
        default=None,
        dest="delete_review",
        metavar="REVIEW_ID",
        help="With --reviews: delete one of your reviews.",
    )
    account.add_argument("--text", default=None, help="New review text.")
    account.add_argument(
        "--percent",
        type=float,
        default=None,
        help="Discount percentage for --discount (1-100).",
    )
    return parser


def _run_tui() -> None:
    """Launch the interactive Textual TUI."""
    from src.ui.app import StorefrontApp

    try:
        app = StorefrontApp()
        app.run()
    except Exception:
        logger.critical("Fatal error during TUI run", exc_info=True)
        raise
    finally:
        logger.info("storefront TUI shutting down")


def _run_cli(args: argparse.Namespace) -> None:
    """Run a headless category or search listing and exit."""
    from src.cli.runner import cli_browse

    exit_code = asyncio.run(
        cli_browse(
            category=args.category,
            sort=args.sort,
            min_price=args.min_price,
            max_price=args.max_price,
            currency_code=args.currency,
            brands_csv=args.brands,
            min_rating=args.min_rating,
            page=args.page,
            output_format=args.output_format,
            query=args.search,
        )
    )
    sys.exit(exit_code)


def _run_rates() -> None:
    """Print the exchange-rate table."""
    from src.cli.runner import run_rates

    sys.exit(run_rates())


def _run_newly_added(args: argparse.Namespace) -> None:
    from src.cli.runner import run_newly_added

    sys.exit(
        run_newly_added(
            max_products=args.limit or 20,
            days_back=args.days,
            currency_code=args.currency,
            output_format=args.output_format,
        )
    )


def _run_account_command(
    args: argparse.Namespace, parser: argparse.ArgumentParser
) -> None:
    """Dispatch the account, order, review and admin actions."""
    from src.cli import commands

    if args.orders:
        exit_code = commands.run_orders(args.output_format)
    elif args.popular:
        exit_code = commands.run_popular(args.limit or 10, args.output_format)
    elif args.checkout:
        if not args.email or not args.location:
            parser.error("--checkout needs --email and --location")
        exit_code = asyncio.run(
            commands.run_checkout(
                args.email, args.location, args.delivery, args.date
            )
        )
    elif args.login:
        exit_code = asyncio.run(commands.run_login(args.login))
    elif args.logout:
        exit_code = commands.run_logout()
    elif args.register:
        if not (args.name and args.last_name and args.email):
            parser.error("--register needs --name, --last-name and --email")
        exit_code = asyncio.run(
            commands.run_register(
                args.name, args.last_name, args.email, args.address
            )
        )
    elif args.reviews is not None:
        edit = None
        if args.edit_review is not None:
            if not args.text:
                parser.error("--edit-review needs --text")
            edit = (args.edit_review, args.text)
        exit_code = asyncio.run(
            commands.run_reviews(
                args.reviews,
                add=args.add_review,
                edit=edit,
                delete=args.delete_review,
            )
        )
    elif args.unrate is not None:
        exit_code = asyncio.run(commands.run_unrate(args.unrate))
    elif args.discount is not None:
        if args.percent is None:
            parser.error("--discount needs --percent")
        exit_code = commands.run_discount(args.discount, args.percent)
    else:
        exit_code = commands.run_discount(args.remove_discount, None)
    sys.exit(exit_code)


def main() -> None:
    """Route to TUI (no args), a listing, or one of the action flags."""
    log_file = setup_logging()
    logger.info("storefront starting, log file: %s", log_file)

    parser = _build_parser()
    args = parser.parse_args()

    if args.rates:
        _run_rates()
    elif args.new:
        _run_newly_added(args)
    elif (
        args.orders
        or args.popular
        or args.checkout
        or args.login
        or args.logout
        or args.register
        or args.reviews is not None
        or args.unrate is not None
        or args.discount is not None
        or args.remove_discount is not None
    ):
        _run_account_command(args, parser)
    elif args.category is None and args.search is None:
        _run_tui()
    else:
        _run_cli(args)


if __name__ == "__main__":
    main()

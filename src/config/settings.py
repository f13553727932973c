# src/config/settings.py

"""Central configuration for the storefront client."""

import os
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Central configuration for the storefront client."""

    # --- Backend ---
    API_BASE_URL: str = os.getenv(
        "STOREFRONT_API_URL", "https://localhost:7233/api"
    ).rstrip("/")
    API_TOKEN: str = os.getenv("STOREFRONT_API_TOKEN", "")
    USER_ID: int = int(os.getenv("STOREFRONT_USER_ID", "0") or 0)
    EXCHANGE_RATE_URL: str = os.getenv(
        "STOREFRONT_RATES_URL",
        "https://api.exchangerate-api.com/v4/latest/USD",
    )

    # --- HTTP ---
    REQUEST_TIMEOUT: float | None = None  # No explicit timeout
    MAX_RETRIES: int = 3                  # GET retry count on transient failures
    RETRY_DELAY: float = 0.5              # Seconds, grows per attempt
    RETRY_STATUS_CODES: frozenset[int] = frozenset(
        {429, 500, 502, 503, 504}
    )

    # --- Browser Impersonation ---
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"
    DEFAULT_HEADERS: dict[str, str] = {
        "Accept": "application/json",
        "Accept-Language": "en-US,en;q=0.9",
        "Content-Type": "application/json",
    }

    # --- Listing ---
    PAGE_SIZE: int = 15                 # Products per page
    MAX_VISIBLE_PAGES: int = 5          # Page numbers shown in the pager
    PAGE_HIDE_DELAY: float = 0.3        # Seconds before the page swap
    PAGE_REVEAL_DELAY: float = 0.4      # Seconds before the next transition
    MAX_RATING: float = 5.0

    # --- Currency ---
    REFERENCE_CURRENCY: str = "USD"
    DEFAULT_CURRENCY: str = "USD"
    FALLBACK_RATES: dict[str, float] = {
        "USD": 1.0,
        "EUR": 0.85,
        "GBP": 0.73,
        "JPY": 110.0,
        "CAD": 1.25,
        "AUD": 1.35,
        "RUB": 75.0,
        "CNY": 6.45,
        "GEL": 2.65,
        "INR": 74.5,
        "TRY": 8.5,
    }
    AVAILABLE_CURRENCIES: list[dict[str, str]] = [
        {"code": "USD", "name": "US Dollar", "symbol": "$"},
        {"code": "EUR", "name": "Euro", "symbol": "€"},
        {"code": "GBP", "name": "British Pound", "symbol": "£"},
        {"code": "JPY", "name": "Japanese Yen", "symbol": "¥"},
        {"code": "CAD", "name": "Canadian Dollar", "symbol": "CA$"},
        {"code": "AUD", "name": "Australian Dollar", "symbol": "A$"},
        {"code": "RUB", "name": "Russian Ruble", "symbol": "₽"},
        {"code": "CNY", "name": "Chinese Yuan", "symbol": "¥"},
        {"code": "GEL", "name": "Georgian Lari", "symbol": "₾"},
        {"code": "INR", "name": "Indian Rupee", "symbol": "₹"},
        {"code": "TRY", "name": "Turkish Lira", "symbol": "₺"},
    ]

    # --- Catalog (category listing pages) ---
    AVAILABLE_CATEGORIES: list[dict[str, str]] = [
        {"id": "it_equipment", "label": "IT Equipment"},
        {"id": "mobile_devices", "label": "Mobile Devices"},
        {"id": "home_appliances", "label": "Home Appliances"},
    ]

    # --- Checkout ---
    DELIVERY_TYPES: list[str] = ["standard", "express", "nominated"]

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    STATE_DIR: Path = BASE_DIR / "state"
    LOGS_DIR: Path = BASE_DIR / "logs"

# src/models/filter_state.py

"""Filter and sort value types for listing pages."""

from dataclasses import dataclass, field
from enum import Enum

ALL = "all"


class SortKey(str, Enum):
    """Sort orders offered by the listing top bar."""

    DEFAULT = "default"
    PRICE_LOW = "price-low"
    PRICE_HIGH = "price-high"
    NAME_ASC = "name-asc"
    NAME_DESC = "name-desc"
    RATING_HIGH = "rating-high"
    RATING_LOW = "rating-low"
    NEWEST = "newest"
    OLDEST = "oldest"

    @classmethod
    def parse(cls, raw: "str | SortKey | None") -> "SortKey":
        """Map a raw value to a SortKey; unknown values are DEFAULT."""
        if isinstance(raw, SortKey):
            return raw
        try:
            return cls(raw)
        except ValueError:
            return cls.DEFAULT


SORT_LABELS: dict[SortKey, str] = {
    SortKey.DEFAULT: "Default",
    SortKey.PRICE_LOW: "Price: Low to High",
    SortKey.PRICE_HIGH: "Price: High to Low",
    SortKey.NAME_ASC: "Name: A to Z",
    SortKey.NAME_DESC: "Name: Z to A",
    SortKey.RATING_HIGH: "Highest Rated",
    SortKey.RATING_LOW: "Lowest Rated",
    SortKey.NEWEST: "Newest First",
    SortKey.OLDEST: "Oldest First",
}


def normalize_key(value: str) -> str:
    """Trim and case-fold a category, sub-category or brand name."""
    return value.strip().casefold()


@dataclass
class FilterState:
    """Current filter selection for one listing page.

    Price bounds are always in the reference currency.
    ``selected_brands`` holds normalised names (see ``normalize_key``).
    """

    sort_key: SortKey = SortKey.DEFAULT
    category: str = ALL
    sub_category: str = ALL
    min_price: float | None = None
    max_price: float | None = None
    min_rating: float | None = None
    selected_brands: frozenset[str] = field(default_factory=frozenset)


@dataclass
class PriceInput:
    """Price bounds as the user typed them, in a display currency."""

    min_value: float | None = None
    max_value: float | None = None
    currency_code: str = "USD"

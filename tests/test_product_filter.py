# tests/test_product_filter.py

"""Tests for ProductFilter stages, sorting and the full reduction."""

import unittest

from src.filters.product_filter import ProductFilter
from src.models.filter_state import ALL, FilterState, SortKey
from src.models.product import Product


def _make_product(
    pid: int,
    name: str = "Item",
    price: float = 10.0,
    brand: str = "Acme",
    sub_category: str = "Laptops",
    rating: float | None = None,
    created_at: str = "",
    category: str = "IT Equipment",
) -> Product:
    """Create a minimal Product for filtering."""
    return Product(
        id=pid,
        name=name,
        price=price,
        brand=brand,
        category=category,
        sub_category=sub_category,
        average_rating=rating,
        created_at=created_at,
    )


class TestFilterStages(unittest.TestCase):
    """Individual filter stages."""

    def test_sub_category_is_normalised(self) -> None:
        products = [
            _make_product(1, sub_category=" Laptops "),
            _make_product(2, sub_category="Monitors"),
        ]
        kept = ProductFilter.by_sub_category(products, "laptops")
        self.assertEqual([p.id for p in kept], [1])

    def test_all_sub_category_keeps_everything(self) -> None:
        products = [_make_product(1), _make_product(2, sub_category="")]
        self.assertEqual(len(ProductFilter.by_sub_category(products, ALL)), 2)

    def test_price_bounds_are_inclusive(self) -> None:
        products = [
            _make_product(1, price=10),
            _make_product(2, price=20),
            _make_product(3, price=30),
        ]
        kept = ProductFilter.by_price(products, 10, 20)
        self.assertEqual([p.id for p in kept], [1, 2])

    def test_open_price_bounds(self) -> None:
        products = [_make_product(1, price=5), _make_product(2, price=50)]
        self.assertEqual(len(ProductFilter.by_price(products, None, None)), 2)
        kept = ProductFilter.by_price(products, 6, None)
        self.assertEqual([p.id for p in kept], [2])

    def test_brand_match_ignores_case_and_spaces(self) -> None:
        products = [
            _make_product(1, brand="Sony"),
            _make_product(2, brand="sony "),
            _make_product(3, brand="SONY"),
            _make_product(4, brand="LG"),
        ]
        kept = ProductFilter.by_brands(products, {"sony"})
        self.assertEqual([p.id for p in kept], [1, 2, 3])

    def test_empty_brand_selection_is_noop(self) -> None:
        products = [_make_product(1), _make_product(2, brand="")]
        self.assertEqual(len(ProductFilter.by_brands(products, [])), 2)

    def test_min_rating_uses_effective_rating(self) -> None:
        products = [
            _make_product(1, rating=4.5),
            _make_product(2, rating=None),
            Product(id=3, name="Legacy", price=1, rating=4.0),
        ]
        kept = ProductFilter.by_min_rating(products, 4.0)
        self.assertEqual([p.id for p in kept], [1, 3])


class TestSort(unittest.TestCase):
    """ProductFilter.sort orders."""

    def setUp(self) -> None:
        self.products = [
            _make_product(3, "banana", 20, rating=3.0,
                          created_at="2024-02-01T00:00:00Z"),
            _make_product(1, "Apple", 30, rating=5.0,
                          created_at="2024-03-01T00:00:00Z"),
            _make_product(2, "cherry", 10, rating=4.0,
                          created_at="2024-01-01T00:00:00Z"),
        ]

    def _ids(self, key: SortKey | str) -> list[int]:
        return [p.id for p in ProductFilter.sort(self.products, key)]

    def test_price_orders(self) -> None:
        self.assertEqual(self._ids(SortKey.PRICE_LOW), [2, 3, 1])
        self.assertEqual(self._ids(SortKey.PRICE_HIGH), [1, 3, 2])

    def test_name_orders_ignore_case(self) -> None:
        self.assertEqual(self._ids(SortKey.NAME_ASC), [1, 3, 2])
        self.assertEqual(self._ids(SortKey.NAME_DESC), [2, 3, 1])

    def test_rating_orders(self) -> None:
        self.assertEqual(self._ids(SortKey.RATING_HIGH), [1, 2, 3])
        self.assertEqual(self._ids(SortKey.RATING_LOW), [3, 2, 1])

    def test_date_orders(self) -> None:
        self.assertEqual(self._ids(SortKey.NEWEST), [1, 3, 2])
        self.assertEqual(self._ids(SortKey.OLDEST), [2, 3, 1])

    def test_default_and_unknown_sort_by_id(self) -> None:
        self.assertEqual(self._ids(SortKey.DEFAULT), [1, 2, 3])
        self.assertEqual(self._ids("bogus"), [1, 2, 3])

    def test_sort_is_stable(self) -> None:
        """Equal keys keep their input order."""
        products = [
            _make_product(5, price=10),
            _make_product(4, price=10),
            _make_product(6, price=10),
        ]
        for key in (SortKey.PRICE_LOW, SortKey.PRICE_HIGH):
            with self.subTest(key=key):
                ids = [p.id for p in ProductFilter.sort(products, key)]
                self.assertEqual(ids, [5, 4, 6])

    def test_missing_timestamps_do_not_raise(self) -> None:
        products = [
            _make_product(1, created_at=""),
            _make_product(2, created_at="2024-01-01T00:00:00Z"),
        ]
        self.assertEqual(
            len(ProductFilter.sort(products, SortKey.NEWEST)), 2
        )

    def test_input_is_not_mutated(self) -> None:
        before = [p.id for p in self.products]
        ProductFilter.sort(self.products, SortKey.PRICE_LOW)
        self.assertEqual([p.id for p in self.products], before)


class TestReduce(unittest.TestCase):
    """The full filter-then-sort pipeline."""

    def test_empty_input(self) -> None:
        self.assertEqual(ProductFilter.reduce([], FilterState()), [])

    def test_all_stages_then_sort(self) -> None:
        products = [
            _make_product(1, price=50, brand="Sony", rating=4.5),
            _make_product(2, price=80, brand="sony ", rating=4.0),
            _make_product(3, price=60, brand="LG", rating=5.0),
            _make_product(4, price=200, brand="Sony", rating=5.0),
            _make_product(5, price=55, brand="Sony", rating=2.0),
            _make_product(6, price=70, brand="Sony", rating=4.8,
                          sub_category="Monitors"),
        ]
        state = FilterState(
            sort_key=SortKey.PRICE_HIGH,
            category="IT Equipment",
            sub_category="laptops",
            min_price=50,
            max_price=100,
            min_rating=4.0,
            selected_brands=frozenset({"sony"}),
        )
        reduced = ProductFilter.reduce(products, state)
        self.assertEqual([p.id for p in reduced], [2, 1])

    def test_reduction_is_idempotent(self) -> None:
        products = [_make_product(i, price=i * 10) for i in range(1, 6)]
        state = FilterState(sort_key=SortKey.PRICE_HIGH, min_price=20)
        once = ProductFilter.reduce(products, state)
        self.assertEqual(ProductFilter.reduce(once, state), once)


class TestExtraction(unittest.TestCase):
    """Brand and sub-category lists derived from a snapshot."""

    def test_brands_deduplicated_and_sorted(self) -> None:
        products = [
            _make_product(1, brand="Sony"),
            _make_product(2, brand="sony "),
            _make_product(3, brand="apple"),
            _make_product(4, brand=""),
        ]
        brands = ProductFilter.extract_brands(products)
        self.assertEqual(len(brands), 2)
        self.assertEqual(brands[0], "apple")
        self.assertEqual(brands[1].casefold(), "sony")

    def test_sub_categories_within_category(self) -> None:
        products = [
            _make_product(1, sub_category="Laptops"),
            _make_product(2, sub_category="laptops"),
            _make_product(3, sub_category="Phones", category="Mobile Devices"),
        ]
        self.assertEqual(
            ProductFilter.extract_sub_categories(products, "IT Equipment"),
            ["laptops"],
        )
        self.assertEqual(
            ProductFilter.extract_sub_categories(products),
            ["laptops", "phones"],
        )


if __name__ == "__main__":
    unittest.main()

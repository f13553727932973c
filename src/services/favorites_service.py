# src/services/favorites_service.py

"""Locally persisted favourite products."""

import logging
from collections.abc import Callable

from src.models.product import Product
from src.services.observer import ObserverRegistry, Subscription
from src.storage.local_store import LocalStore

logger = logging.getLogger("storefront.favorites")

FAVORITES_KEY = "favorites"


class FavoritesService:
    def __init__(self, store: LocalStore) -> None:
        self._store = store
        self._changes: ObserverRegistry[list[Product]] = ObserverRegistry(
            "favorites"
        )
        self._favorites = self._load()

    @property
    def favorites(self) -> list[Product]:
        return list(self._favorites)

    def subscribe(
        self, callback: Callable[[list[Product]], None]
    ) -> Subscription:
        return self._changes.subscribe(callback)

    def is_favorite(self, product_id: int) -> bool:
        return any(p.id == product_id for p in self._favorites)

    def add(self, product: Product) -> bool:
        """Add ``product``; False if it is already a favourite."""
        if self.is_favorite(product.id):
            return False
        self._favorites.append(product)
        self._save()
        return True

    def remove(self, product_id: int) -> bool:
        before = len(self._favorites)
        self._favorites = [p for p in self._favorites if p.id != product_id]
        if len(self._favorites) == before:
            return False
        self._save()
        return True

    def toggle(self, product: Product) -> bool:
        """Flip favourite state; returns the new state."""
        if self.is_favorite(product.id):
            self.remove(product.id)
            return False
        self.add(product)
        return True

    def _load(self) -> list[Product]:
        saved = self._store.get(FAVORITES_KEY)
        if not isinstance(saved, list):
            return []
        products: list[Product] = []
        for row in saved:
            if not isinstance(row, dict):
                logger.warning("Skipping malformed favourite: %r", row)
                continue
            try:
                products.append(Product.from_api(row))
            except (TypeError, ValueError) as exc:
                logger.warning(
                    "Skipping unreadable favourite %r: %s", row, exc
                )
        return products

    def _save(self) -> None:
        self._store.set(
            FAVORITES_KEY, [p.to_dict() for p in self._favorites]
        )
        self._changes.publish(self.favorites)

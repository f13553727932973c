# src/services/rating_service.py

"""Submitting user ratings and broadcasting the server's new averages."""

import asyncio
import logging
from collections.abc import Callable

from src.api.shop_client import ShopApiClient
from src.config.settings import Settings
from src.models.errors import ApiError, ValidationError
from src.models.order import RatingUpdate
from src.services.observer import ObserverRegistry, Subscription

logger = logging.getLogger("storefront.ratings")


class RatingService:
    """Creates, updates and deletes the current user's ratings.

    After every write the product's average is re-read from the server
    and published as a :class:`RatingUpdate`.
    """

    def __init__(self, api: ShopApiClient, user_id: int | None = None) -> None:
        self.api = api
        self.user_id = user_id if user_id is not None else Settings.USER_ID
        self._user_ratings: dict[int, float] = {}
        self._updates: ObserverRegistry[RatingUpdate] = ObserverRegistry(
            "ratings"
        )

    def subscribe(
        self, callback: Callable[[RatingUpdate], None]
    ) -> Subscription:
        return self._updates.subscribe(callback)

    def cached_rating(self, product_id: int) -> float | None:
        return self._user_ratings.get(product_id)

    async def get_user_rating(self, product_id: int) -> float | None:
        """The user's rating for ``product_id``, cached after first read."""
        if product_id in self._user_ratings:
            return self._user_ratings[product_id]
        if not self.user_id:
            return None
        rating = await asyncio.to_thread(
            self.api.get_user_rating, self.user_id, product_id
        )
        if rating is not None:
            self._user_ratings[product_id] = rating
        return rating

    async def submit_rating(self, product_id: int, value: int) -> RatingUpdate:
        """Rate a product 1-5, updating an existing rating if present."""
        if product_id <= 0:
            raise ValidationError("Invalid product ID")
        if not 1 <= value <= int(Settings.MAX_RATING):
            raise ValidationError(
                f"Rating must be between 1 and {Settings.MAX_RATING:g}"
            )

        existing = await self.get_user_rating(product_id)
        try:
            if existing:
                saved = await asyncio.to_thread(
                    self.api.update_rating, product_id, value
                )
            else:
                saved = await asyncio.to_thread(
                    self.api.create_rating, product_id, value
                )
        except ApiError as exc:
            if exc.status_code != 400 or "already rated" not in exc.detail:
                raise
            logger.info(
                "Product %d already rated, updating instead", product_id
            )
            saved = await asyncio.to_thread(
                self.api.update_rating, product_id, value
            )

        self._user_ratings[product_id] = saved
        return await self._publish_average(product_id, saved)

    async def delete_rating(self, product_id: int) -> RatingUpdate:
        await asyncio.to_thread(self.api.delete_rating, product_id)
        self._user_ratings.pop(product_id, None)
        return await self._publish_average(product_id, 0.0)

    async def _publish_average(
        self, product_id: int, user_rating: float
    ) -> RatingUpdate:
        average, count = await asyncio.to_thread(
            self.api.get_average_rating, product_id
        )
        update = RatingUpdate(
            product_id=product_id,
            user_rating=user_rating,
            average_rating=average,
            rating_count=count,
        )
        logger.info(
            "Product %d rated %.1f; average now %.2f over %d",
            product_id,
            user_rating,
            average,
            count,
        )
        self._updates.publish(update)
        return update

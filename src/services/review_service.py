# src/services/review_service.py

"""Reading and writing product reviews."""

import asyncio
import dataclasses
import logging
from datetime import datetime, timezone

from src.api.shop_client import ShopApiClient
from src.config.settings import Settings
from src.models.errors import ApiError, ValidationError
from src.models.review import Review

logger = logging.getLogger("storefront.reviews")

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _newest_first(reviews: list[Review]) -> list[Review]:
    return sorted(
        reviews, key=lambda r: r.added_at_dt or _EPOCH, reverse=True
    )


class ReviewService:
    """Per-product review lists plus create/edit/delete for the user.

    Users may only edit or delete their own reviews. Load failures
    resolve to an empty list; write failures propagate as ``ApiError``.
    """

    def __init__(self, api: ShopApiClient, user_id: int | None = None) -> None:
        self.api = api
        self.user_id = user_id if user_id is not None else Settings.USER_ID
        self._reviews: dict[int, list[Review]] = {}

    def cached(self, product_id: int) -> list[Review]:
        return list(self._reviews.get(product_id, []))

    async def load(self, product_id: int) -> list[Review]:
        try:
            reviews = await asyncio.to_thread(
                self.api.get_reviews, product_id
            )
        except ApiError:
            logger.error(
                "Failed to load reviews for product %d",
                product_id,
                exc_info=True,
            )
            reviews = []
        self._reviews[product_id] = _newest_first(reviews)
        return self.cached(product_id)

    async def add(self, product_id: int, content: str) -> Review:
        text = self._validate(content)
        if product_id <= 0:
            raise ValidationError("Cannot post review: product is missing.")
        review = await asyncio.to_thread(
            self.api.post_review, self.user_id, product_id, text
        )
        self._reviews.setdefault(product_id, []).insert(0, review)
        logger.info("Posted review %d on product %d", review.id, product_id)
        return review

    async def edit(self, review: Review, content: str) -> Review:
        text = self._validate(content)
        self._require_owner(review)
        await asyncio.to_thread(
            self.api.update_review,
            review.id,
            self.user_id,
            review.product_id,
            text,
        )
        updated = dataclasses.replace(review, content=text)
        self._replace(review.product_id, review.id, updated)
        return updated

    async def delete(self, review: Review) -> None:
        self._require_owner(review)
        await asyncio.to_thread(self.api.delete_review, review.id)
        self._replace(review.product_id, review.id, None)
        logger.info("Deleted review %d", review.id)

    def _validate(self, content: str) -> str:
        if not self.user_id:
            raise ValidationError("You must be logged in to post a review.")
        text = (content or "").strip()
        if not text:
            raise ValidationError("Comment cannot be empty.")
        return text

    def _require_owner(self, review: Review) -> None:
        if review.user_id != self.user_id:
            raise ValidationError("You can only change your own reviews.")

    def _replace(
        self, product_id: int, review_id: int, review: Review | None
    ) -> None:
        kept: list[Review] = []
        for existing in self._reviews.get(product_id, []):
            if existing.id != review_id:
                kept.append(existing)
            elif review is not None:
                kept.append(review)
        self._reviews[product_id] = kept

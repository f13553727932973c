# src/models/review.py

"""Product review (comment) model."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from src.models.product import parse_timestamp


def _author(data: dict[str, Any]) -> str:
    full_name = str(data.get("userFullName") or "").strip()
    if full_name:
        return full_name
    user = data.get("user")
    if isinstance(user, dict):
        parts = [str(user.get("name") or ""), str(user.get("lastName") or "")]
        joined = " ".join(p for p in parts if p).strip()
        if joined:
            return joined
    return "Unknown User"


@dataclass
class Review:
    """A user's written comment on a product."""

    id: int
    product_id: int
    user_id: int
    content: str
    added_at: str = ""
    author: str = "Unknown User"

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Review":
        return cls(
            id=int(data.get("id") or 0),
            product_id=int(data.get("productId") or 0),
            user_id=int(data.get("userId") or 0),
            content=str(data.get("content") or data.get("commentText") or ""),
            added_at=str(data.get("addedAt") or ""),
            author=_author(data),
        )

    @property
    def added_at_dt(self) -> datetime | None:
        return parse_timestamp(self.added_at)

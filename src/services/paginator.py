# src/services/paginator.py

"""Page slicing, visible page window and animated page navigation."""

import asyncio
import logging
import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from src.config.settings import Settings

logger = logging.getLogger("storefront.pagination")

T = TypeVar("T")


def total_pages_for(count: int, page_size: int) -> int:
    if count <= 0:
        return 0
    return math.ceil(count / page_size)


def clamp_page(page: int, total_pages: int) -> int:
    """Clamp ``page`` into ``[1, total_pages]`` (1 when there are none)."""
    if total_pages <= 0:
        return 1
    return max(1, min(page, total_pages))


def visible_page_window(
    current_page: int,
    total_pages: int,
    max_visible: int = Settings.MAX_VISIBLE_PAGES,
) -> list[int]:
    """Page numbers to show in the pager, centred on ``current_page``."""
    if total_pages <= max_visible:
        return list(range(1, total_pages + 1))

    start = max(1, current_page - max_visible // 2)
    end = min(total_pages, start + max_visible - 1)
    if end == total_pages:
        start = max(1, end - max_visible + 1)
    return list(range(start, end + 1))


@dataclass
class PageView(Generic[T]):
    """One rendered page of a reduced list."""

    items: list[T]
    page: int
    page_size: int
    total_items: int
    total_pages: int
    visible_pages: list[int] = field(default_factory=list)

    @property
    def summary(self) -> str:
        """Human-readable range, e.g. ``Showing 16-23 of 23 products``."""
        if self.total_items == 0:
            return "No products found"
        first = (self.page - 1) * self.page_size + 1
        last = min(self.page * self.page_size, self.total_items)
        return f"Showing {first}-{last} of {self.total_items} products"


def paginate(
    items: Sequence[T],
    page: int,
    page_size: int = Settings.PAGE_SIZE,
    max_visible: int = Settings.MAX_VISIBLE_PAGES,
) -> PageView[T]:
    """Slice ``items`` for the requested (clamped) page."""
    total_pages = total_pages_for(len(items), page_size)
    current = clamp_page(page, total_pages)
    start = (current - 1) * page_size
    return PageView(
        items=list(items[start:start + page_size]),
        page=current,
        page_size=page_size,
        total_items=len(items),
        total_pages=total_pages,
        visible_pages=visible_page_window(
            current, total_pages, max_visible
        ),
    )


class Paginator(Generic[T]):
    """Holds the current page of a listing and animates page changes.

    A page change hides the content, swaps the page after
    ``hide_delay`` and reveals it again; further navigation is ignored
    until ``reveal_delay`` has also elapsed.
    """

    def __init__(
        self,
        page_size: int = Settings.PAGE_SIZE,
        hide_delay: float = Settings.PAGE_HIDE_DELAY,
        reveal_delay: float = Settings.PAGE_REVEAL_DELAY,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self.page_size = page_size
        self.hide_delay = hide_delay
        self.reveal_delay = reveal_delay
        self.on_change = on_change
        self.current_page = 1
        self.is_animating = False
        self.content_visible = True
        self._items: list[T] = []
        self._view: PageView[T] = paginate([], 1, page_size)

    @property
    def view(self) -> PageView[T]:
        return self._view

    @property
    def total_pages(self) -> int:
        return self._view.total_pages

    def set_items(self, items: Sequence[T], reset: bool = False) -> None:
        """Replace the list being paged; optionally go back to page 1."""
        self._items = list(items)
        if reset:
            self.current_page = 1
        self._refresh()

    def can_go_previous(self) -> bool:
        return self.current_page > 1 and not self.is_animating

    def can_go_next(self) -> bool:
        return (
            self.current_page < self.total_pages
            and not self.is_animating
        )

    async def go_to_page(self, page: int) -> bool:
        """Animate to ``page``. Returns False when the move is ignored."""
        if (
            page < 1
            or page > self.total_pages
            or page == self.current_page
            or self.is_animating
        ):
            return False

        self.is_animating = True
        self.content_visible = False
        self._notify()
        try:
            await asyncio.sleep(self.hide_delay)
            self.current_page = page
            self._refresh(notify=False)
            self.content_visible = True
            self._notify()
            await asyncio.sleep(self.reveal_delay)
        finally:
            self.content_visible = True
            self.is_animating = False
        logger.debug("Moved to page %d of %d", page, self.total_pages)
        return True

    async def next_page(self) -> bool:
        return await self.go_to_page(self.current_page + 1)

    async def previous_page(self) -> bool:
        return await self.go_to_page(self.current_page - 1)

    async def first_page(self) -> bool:
        return await self.go_to_page(1)

    async def last_page(self) -> bool:
        return await self.go_to_page(self.total_pages)

    def _refresh(self, notify: bool = True) -> None:
        self._view = paginate(
            self._items, self.current_page, self.page_size
        )
        self.current_page = self._view.page
        if notify:
            self._notify()

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change()

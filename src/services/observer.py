# src/services/observer.py

"""Ordered publish/subscribe registry used by the client-side stores."""

import logging
from collections.abc import Callable
from typing import Generic, TypeVar

logger = logging.getLogger("storefront.observer")

T = TypeVar("T")


class Subscription:
    """Handle returned by ``ObserverRegistry.subscribe``."""

    def __init__(self, release: Callable[[], None]) -> None:
        self._release: Callable[[], None] | None = release

    @property
    def active(self) -> bool:
        return self._release is not None

    def unsubscribe(self) -> None:
        """Stop receiving events. Safe to call more than once."""
        if self._release is not None:
            self._release()
            self._release = None


class ObserverRegistry(Generic[T]):
    """Dispatches events to callbacks in subscription order.

    Dispatch is synchronous. A callback that raises is logged and the
    remaining callbacks still run.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._callbacks: list[tuple[int, Callable[[T], None]]] = []
        self._next_token = 0

    def __len__(self) -> int:
        return len(self._callbacks)

    def subscribe(self, callback: Callable[[T], None]) -> Subscription:
        token = self._next_token
        self._next_token += 1
        self._callbacks.append((token, callback))

        def release() -> None:
            self._callbacks = [
                entry for entry in self._callbacks if entry[0] != token
            ]

        return Subscription(release)

    def publish(self, event: T) -> None:
        # Snapshot so callbacks may unsubscribe during dispatch
        for _token, callback in list(self._callbacks):
            try:
                callback(event)
            except Exception:
                logger.error(
                    "[%s] Subscriber %r failed",
                    self.name,
                    callback,
                    exc_info=True,
                )

"""Keeps one long-lived :class:`WishlistStore` per user for the HTTP layer."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

from swipeshop.gateway.protocols import WishlistGatewayProtocol
from swipeshop.gateway.session import AuthSession
from swipeshop.services.wishlist.store import (
    DEFAULT_MUTATION_TIMEOUT_SECONDS,
    WishlistStore,
)
from swipeshop.settings import (
    DEFAULT_WISHLIST_REGISTRY_MAX_USERS,
    DEFAULT_WISHLIST_STORE_IDLE_SECONDS,
)

logger = logging.getLogger(__name__)


class WishlistStoreRegistry:
    """Lazily creates and hydrates wishlist stores keyed by user id.

    Requests without a user share a single anonymous store whose session
    never signs in, so reads report "not wishlisted" and writes raise
    :class:`~swipeshop.services.wishlist.errors.UnauthenticatedError`.

    At most ``max_stores`` stores are kept.  Stores unused for
    ``idle_seconds`` are dropped first, then the least recently used ones.
    A store with mutations still in flight is never dropped.
    """

    def __init__(
        self,
        gateway: WishlistGatewayProtocol,
        *,
        mutation_timeout: float | None = DEFAULT_MUTATION_TIMEOUT_SECONDS,
        max_stores: int = DEFAULT_WISHLIST_REGISTRY_MAX_USERS,
        idle_seconds: float = DEFAULT_WISHLIST_STORE_IDLE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_stores < 1:
            raise ValueError("max_stores must be at least 1")
        self._gateway = gateway
        self._mutation_timeout = mutation_timeout
        self._max_stores = max_stores
        self._idle_seconds = idle_seconds
        self._clock = clock
        self._stores: dict[str, WishlistStore] = {}
        # Least recently used first.
        self._last_seen: dict[str, float] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._anonymous = WishlistStore(
            gateway, AuthSession(), mutation_timeout=mutation_timeout
        )

    @property
    def anonymous(self) -> WishlistStore:
        return self._anonymous

    def __len__(self) -> int:
        return len(self._stores)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._stores

    async def get_store(self, user_id: str | None) -> WishlistStore:
        """Return the store for ``user_id``, hydrating it on first access."""

        if user_id is None or not user_id.strip():
            return self._anonymous

        user_id = user_id.strip()
        store = self._stores.get(user_id)
        if store is None:
            store = await self._create_store(user_id)
        elif not store.is_hydrated:
            await store.hydrate()

        self._touch(user_id)
        self._evict(keep=user_id)
        return store

    async def _create_store(self, user_id: str) -> WishlistStore:
        lock = self._locks.setdefault(user_id, asyncio.Lock())
        async with lock:
            store = self._stores.get(user_id)
            if store is not None:
                return store

            store = WishlistStore(
                self._gateway,
                AuthSession(user_id),
                mutation_timeout=self._mutation_timeout,
            )
            await store.hydrate()
            # Published only after the first hydrate so concurrent callers wait on the lock.
            self._stores[user_id] = store
            self._locks.pop(user_id, None)
            logger.debug("Created wishlist store for user %s", user_id)
            return store

    def _touch(self, user_id: str) -> None:
        self._last_seen.pop(user_id, None)
        self._last_seen[user_id] = self._clock()

    def _evict(self, *, keep: str) -> None:
        now = self._clock()
        for user_id, last_seen in list(self._last_seen.items()):
            idle = now - last_seen >= self._idle_seconds
            if not idle and len(self._stores) <= self._max_stores:
                break
            if user_id == keep or self._stores[user_id].has_pending:
                continue
            self._drop(user_id)
            logger.debug(
                "Evicted wishlist store for user %s (%s)",
                user_id,
                "idle" if idle else "capacity",
            )

    def _drop(self, user_id: str) -> None:
        store = self._stores.pop(user_id)
        self._last_seen.pop(user_id, None)
        store.close()

    async def close(self) -> None:
        """Close every store, dropping its observers, and forget it."""

        stores = list(self._stores.values())
        self._stores.clear()
        self._last_seen.clear()
        self._locks.clear()
        for store in stores:
            store.close()
        self._anonymous.close()
        logger.info("Closed %d wishlist stores", len(stores))


__all__ = ["WishlistStoreRegistry"]

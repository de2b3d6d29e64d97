"""SQLAlchemy-backed implementation of the wishlist gateway contract."""

from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from swipeshop.cache import CacheClient, invalidate_wishlist, wishlist_ids_key
from swipeshop.db.connection import get_async_session_context
from swipeshop.db.models import CatalogItemRecord, WishlistEntryRecord

logger = logging.getLogger(__name__)


class SqlWishlistGateway:
    """Reads and writes ``wishlist`` rows on behalf of the wishlist store.

    The store outlives individual HTTP requests, so every call opens its own
    short-lived session from ``session_factory`` instead of borrowing a
    request-scoped one.  Id lists are cached per user in Redis and dropped
    after each successful write.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        cache: CacheClient | None = None,
        cache_ttl: int | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._cache = cache
        self._cache_ttl = cache_ttl

    async def get_wishlist_item_ids(self, user_id: str) -> list[str]:
        """Return the user's outfit ids, oldest heart first."""

        cache_key = wishlist_ids_key(user_id)
        if self._cache is not None:
            cached = await self._cache.get_json(cache_key)
            if isinstance(cached, list):
                return [str(item_id) for item_id in cached]

        query = (
            select(WishlistEntryRecord.outfit_id)
            .where(WishlistEntryRecord.user_id == user_id)
            .order_by(WishlistEntryRecord.created_at, WishlistEntryRecord.id)
        )
        async with get_async_session_context(self._session_factory) as session:
            result = await session.execute(query)
            item_ids = list(result.scalars().all())

        if self._cache is not None:
            await self._cache.set_json(cache_key, item_ids, ttl=self._cache_ttl)
        return item_ids

    async def insert_wishlist_entry(self, user_id: str, item_id: str) -> None:
        """Insert the pair unless it already exists."""

        async with get_async_session_context(self._session_factory) as session:
            outfit = await session.get(CatalogItemRecord, item_id)
            if outfit is None:
                raise LookupError(f"Outfit {item_id} does not exist")

            existing = await session.scalar(
                select(WishlistEntryRecord.id).where(
                    WishlistEntryRecord.user_id == user_id,
                    WishlistEntryRecord.outfit_id == item_id,
                )
            )
            if existing is None:
                session.add(WishlistEntryRecord(user_id=user_id, outfit_id=item_id))
                await session.flush()
            else:
                logger.debug("Wishlist entry %s/%s already present", user_id, item_id)

        await self._invalidate(user_id)

    async def delete_wishlist_entry(self, user_id: str, item_id: str) -> None:
        """Delete the pair; missing rows are ignored."""

        async with get_async_session_context(self._session_factory) as session:
            await session.execute(
                delete(WishlistEntryRecord).where(
                    WishlistEntryRecord.user_id == user_id,
                    WishlistEntryRecord.outfit_id == item_id,
                )
            )

        await self._invalidate(user_id)

    async def _invalidate(self, user_id: str) -> None:
        if self._cache is not None:
            await invalidate_wishlist(self._cache, user_id)


__all__ = ["SqlWishlistGateway"]

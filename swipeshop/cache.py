from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import Sequence
from typing import Any

from redis.asyncio import Redis as RedisClient
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from swipeshop.settings import get_settings

logger = logging.getLogger(__name__)

_DEFAULT_TTL_SECONDS = 600
_CATALOG_PREFIX = "catalog"
_WISHLIST_PREFIX = "wishlist:ids"

_LOCAL_CACHE_DEFAULT_TTL = 300
_local_cache: dict[str, tuple[float, Any]] = {}
_local_cache_lock = asyncio.Lock()

_redis_client: RedisClient | None = None
_client_lock = asyncio.Lock()
_redis_disabled = False


async def local_cache_get(key: str) -> Any | None:
    """Return a value from the in-process fallback cache when it remains valid."""

    async with _local_cache_lock:
        cached_entry = _local_cache.get(key)
        if cached_entry is None:
            return None

        expires_at, value = cached_entry
        if expires_at < time.time():
            _local_cache.pop(key, None)
            return None
        return value


async def local_cache_set(key: str, value: Any, ttl: int | None = None) -> None:
    """Persist ``value`` in the in-process cache while respecting the supplied TTL."""

    ttl_seconds = ttl if ttl is not None and ttl > 0 else _LOCAL_CACHE_DEFAULT_TTL
    async with _local_cache_lock:
        _local_cache[key] = (time.time() + ttl_seconds, value)


async def local_cache_evict(
    *,
    keys: Sequence[str] | None = None,
    prefixes: Sequence[str] | None = None,
) -> None:
    """Remove cached entries that match explicit keys or key prefixes."""

    async with _local_cache_lock:
        if keys:
            for exact_key in keys:
                _local_cache.pop(exact_key, None)

        if prefixes:
            matching_keys = [
                existing_key
                for existing_key in _local_cache
                if any(existing_key.startswith(prefix) for prefix in prefixes)
            ]
            for matching_key in matching_keys:
                _local_cache.pop(matching_key, None)


async def local_cache_clear_all() -> None:
    """Remove every entry from the in-process cache.

    Primarily intended for test isolation.
    """

    async with _local_cache_lock:
        _local_cache.clear()


def catalog_snapshot_key() -> str:
    return f"{_CATALOG_PREFIX}:snapshot"


def wishlist_ids_key(user_id: str) -> str:
    return f"{_WISHLIST_PREFIX}:{user_id}"


async def get_redis() -> RedisClient | None:
    """Get Redis client, returning None if connection fails."""
    global _redis_client, _redis_disabled

    if _redis_disabled:
        logger.debug("Redis connection disabled after previous failure; skipping attempt.")
        return None

    # Acquire the lock before checking the singleton to avoid racing initialisers.
    async with _client_lock:
        if _redis_client is not None:
            return _redis_client

        if _redis_disabled:
            return None

        try:
            client = RedisClient.from_url(
                get_settings().redis_url, decode_responses=True, encoding="utf-8"
            )
            await client.ping()
            _redis_client = client
            logger.info("Redis connection established successfully")
            return _redis_client
        except (RedisConnectionError, RedisTimeoutError, OSError) as exc:
            logger.warning(f"Redis connection failed: {exc}. Caching will be disabled.")
            _redis_client = None
            _redis_disabled = True
            return None


def _is_redis_connection_error(exc: BaseException) -> bool:
    """Return ``True`` when ``exc`` represents a Redis connectivity failure."""

    return isinstance(exc, (RedisConnectionError, RedisTimeoutError))


class CacheClient:
    """JSON oriented wrapper around the optional Redis client.

    Every operation degrades to a no-op when Redis is unavailable so callers
    never need to special-case a missing cache.
    """

    def __init__(self, redis: RedisClient | None) -> None:
        self._redis = redis

    async def get_json(self, key: str) -> Any:
        if self._redis is None:
            return None
        try:
            payload = await self._redis.get(key)
            if payload is None:
                return None
            try:
                return json.loads(payload)
            except json.JSONDecodeError:
                return None
        except Exception as exc:  # type: ignore[broad-except]
            if _is_redis_connection_error(exc):
                logger.debug(f"Redis get failed for key {key}: {exc}")
                return None
            raise

    async def set_json(self, key: str, value: Any, ttl: int | None = None) -> None:
        if self._redis is None:
            return
        try:
            encoded = json.dumps(value, default=str)
            if ttl is None:
                ttl = _DEFAULT_TTL_SECONDS
            await self._redis.set(key, encoded, ex=ttl)
        except Exception as exc:  # type: ignore[broad-except]
            if _is_redis_connection_error(exc):
                logger.debug(f"Redis set failed for key {key}: {exc}")
                return
            raise

    async def delete(self, *keys: str) -> None:
        if self._redis is None or not keys:
            return
        try:
            await self._redis.delete(*keys)
        except Exception as exc:  # type: ignore[broad-except]
            if _is_redis_connection_error(exc):
                logger.debug(f"Redis delete failed: {exc}")
                return
            raise

    async def delete_pattern(self, pattern: str) -> None:
        if self._redis is None:
            return
        try:
            async for key in self._redis.scan_iter(match=pattern):
                await self._redis.delete(key)
        except Exception as exc:  # type: ignore[broad-except]
            if _is_redis_connection_error(exc):
                logger.debug(f"Redis delete_pattern failed for {pattern}: {exc}")
                return
            raise


async def get_cache_client() -> CacheClient:
    redis = await get_redis()
    return CacheClient(redis)


async def close_redis() -> None:
    """Close the global Redis connection gracefully."""
    global _redis_client, _redis_disabled
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
    _redis_disabled = False


async def invalidate_catalog(cache: CacheClient) -> None:
    """Drop every cached catalog payload after the outfit table changed."""

    await cache.delete_pattern(f"{_CATALOG_PREFIX}:*")
    await local_cache_evict(prefixes=[_CATALOG_PREFIX])


async def invalidate_wishlist(cache: CacheClient, user_id: str) -> None:
    """Drop the cached id list for ``user_id`` after a wishlist mutation."""

    await cache.delete(wishlist_ids_key(user_id))


__all__ = [
    "CacheClient",
    "catalog_snapshot_key",
    "close_redis",
    "get_cache_client",
    "get_redis",
    "invalidate_catalog",
    "invalidate_wishlist",
    "local_cache_clear_all",
    "local_cache_evict",
    "local_cache_get",
    "local_cache_set",
    "wishlist_ids_key",
]

"""Two-tier caching helpers shared by read-heavy services.

The :func:`cached` decorator wraps an async service method: it consults Redis
(when available) and then the in-process cache from :mod:`swipeshop.cache`
before calling through, and stores the serialised result on the way back.
Using the shared in-process cache means :func:`swipeshop.cache.invalidate_catalog`
evicts entries written here as well.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, Concatenate, ParamSpec, TypeVar, cast

from swipeshop.cache import CacheClient, local_cache_get, local_cache_set

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")

CacheKeyBuilder = Callable[Concatenate["CacheableService", P], str | None]
CacheSerializer = Callable[[T], Any]
CacheDeserializer = Callable[[Any], T]
DecoratedCallable = Callable[Concatenate["CacheableService", P], Awaitable[T]]


class CacheableService:
    """Base class exposing ``_cache_get``/``_cache_set`` over both cache tiers."""

    def __init__(self, cache: CacheClient | None = None) -> None:
        self._cache = cache

    async def _cache_get(self, key: str) -> Any:
        cached: Any | None = None
        if self._cache is not None:
            cached = await self._cache.get_json(key)
        if cached is not None:
            return cached
        return await local_cache_get(key)

    async def _cache_set(self, key: str, value: Any, ttl: int | None = None) -> None:
        if self._cache is not None:
            await self._cache.set_json(key, value, ttl=ttl)
        if value is not None:
            await local_cache_set(key, value, ttl=ttl)


def cached(
    key_builder: CacheKeyBuilder[P],
    *,
    ttl: int | Callable[[], int] | None = None,
    serializer: CacheSerializer[T] | None = None,
    deserializer: CacheDeserializer[T] | None = None,
    deserialize_error_message: str | None = None,
) -> Callable[[DecoratedCallable], DecoratedCallable]:
    """Decorate an async service method with transparent caching.

    Parameters
    ----------
    key_builder:
        Returns the cache key for the invocation; ``None`` disables caching
        for that call.
    ttl:
        Lifetime in seconds, or a zero-argument callable resolved on every
        write so settings changes take effect without re-importing.
    serializer / deserializer:
        Convert between Python objects and JSON-serialisable payloads.
    deserialize_error_message:
        ``str.format`` template logged when a cached payload cannot be
        deserialised; the call then falls through to the wrapped method.
    """

    def decorator(func: DecoratedCallable) -> DecoratedCallable:
        @wraps(func)
        async def wrapper(self: "CacheableService", *args: P.args, **kwargs: P.kwargs) -> T:
            cache_key = key_builder(self, *args, **kwargs)
            if cache_key:
                cached_value = await self._cache_get(cache_key)
                if cached_value is not None:
                    if deserializer is None:
                        return cast(T, cached_value)
                    try:
                        return deserializer(cached_value)
                    except Exception as exc:
                        if deserialize_error_message:
                            logger.warning(
                                deserialize_error_message.format(key=cache_key, error=exc)
                            )

            result = await func(self, *args, **kwargs)

            if cache_key and result is not None:
                payload: Any = serializer(result) if serializer is not None else result
                lifetime = ttl() if callable(ttl) else ttl
                try:
                    await self._cache_set(cache_key, payload, ttl=lifetime)
                except Exception as exc:  # pragma: no cover - cache backend issues
                    logger.warning("Failed to persist cache entry for key %s: %s", cache_key, exc)

            return result

        return wrapper

    return decorator


__all__ = ["CacheableService", "cached"]

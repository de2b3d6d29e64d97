"""FastAPI dependency wiring for catalog and wishlist services.

Keeping the factories here keeps the service modules free of web-layer
concerns so tests and scripts can build them directly.
"""

from __future__ import annotations

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from swipeshop.cache import CacheClient, get_cache_client
from swipeshop.db.connection import get_db
from swipeshop.services.catalog.service import CatalogRepository, CatalogService
from swipeshop.services.wishlist.registry import WishlistStoreRegistry
from swipeshop.services.wishlist.store import WishlistStore


def get_catalog_service(
    session: AsyncSession = Depends(get_db),
    cache: CacheClient = Depends(get_cache_client),
) -> CatalogService:
    """Provide a :class:`CatalogService` bound to the request's session."""

    return CatalogService(CatalogRepository(session), cache=cache)


def get_wishlist_registry(request: Request) -> WishlistStoreRegistry:
    """Return the process-wide registry created during application startup."""

    registry = getattr(request.app.state, "wishlist_registry", None)
    if registry is None:
        raise RuntimeError("Wishlist registry is not initialised")
    return registry


def get_current_user_id(
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
) -> str | None:
    """Resolve the caller from the auth provider header; blank means anonymous."""

    if x_user_id is None:
        return None
    cleaned = x_user_id.strip()
    return cleaned or None


async def get_wishlist_store(
    user_id: str | None = Depends(get_current_user_id),
    registry: WishlistStoreRegistry = Depends(get_wishlist_registry),
) -> WishlistStore:
    return await registry.get_store(user_id)


__all__ = [
    "get_catalog_service",
    "get_current_user_id",
    "get_wishlist_registry",
    "get_wishlist_store",
]

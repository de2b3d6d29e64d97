"""FastAPI router for hearting and unhearting outfits.

Every route works against the caller's long-lived :class:`WishlistStore`, so
reads are served from memory and writes go through the optimistic mutation
path.  Store errors propagate to the application's ``WishlistError`` handler.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from swipeshop.schemas.wishlist import (
    WishlistItemsResponse,
    WishlistMembershipResponse,
    WishlistMutationResponse,
    WishlistResponse,
)
from swipeshop.services.catalog.service import CatalogService
from swipeshop.services.dependencies import get_catalog_service, get_wishlist_store
from swipeshop.services.wishlist.errors import UnauthenticatedError
from swipeshop.services.wishlist.store import WishlistStore

router = APIRouter()


def _require_user(store: WishlistStore) -> str:
    user_id = store.user_id
    if user_id is None:
        raise UnauthenticatedError("Sign in to view your wishlist")
    return user_id


@router.get("", response_model=WishlistResponse)
async def get_wishlist(
    store: WishlistStore = Depends(get_wishlist_store),
) -> WishlistResponse:
    """Return the caller's wishlisted outfit ids."""

    user_id = _require_user(store)
    item_ids = sorted(store.items)
    return WishlistResponse(
        user_id=user_id,
        total=len(item_ids),
        item_ids=item_ids,
        hydrated=store.is_hydrated,
    )


@router.get("/items", response_model=WishlistItemsResponse)
async def get_wishlist_items(
    store: WishlistStore = Depends(get_wishlist_store),
    service: CatalogService = Depends(get_catalog_service),
) -> WishlistItemsResponse:
    """Return wishlisted outfits with their catalog details."""

    user_id = _require_user(store)
    items = await service.items_by_ids(store.items)
    return WishlistItemsResponse(user_id=user_id, total=len(items), items=items)


@router.post("/refresh", response_model=WishlistResponse)
async def refresh_wishlist(
    store: WishlistStore = Depends(get_wishlist_store),
) -> WishlistResponse:
    """Re-read the caller's wishlist from the database."""

    user_id = _require_user(store)
    await store.hydrate()
    item_ids = sorted(store.items)
    return WishlistResponse(
        user_id=user_id,
        total=len(item_ids),
        item_ids=item_ids,
        hydrated=store.is_hydrated,
    )


@router.get("/{item_id}", response_model=WishlistMembershipResponse)
async def get_membership(
    item_id: str,
    store: WishlistStore = Depends(get_wishlist_store),
) -> WishlistMembershipResponse:
    return WishlistMembershipResponse(
        item_id=item_id,
        is_member=store.is_member(item_id),
        pending=store.is_pending(item_id),
    )


@router.put("/{item_id}", response_model=WishlistMutationResponse)
async def add_to_wishlist(
    item_id: str,
    store: WishlistStore = Depends(get_wishlist_store),
    service: CatalogService = Depends(get_catalog_service),
) -> WishlistMutationResponse:
    """Heart ``item_id``; repeating the call is harmless."""

    if store.user_id is None:
        raise UnauthenticatedError("Wishlist changes require a signed-in user", item_id=item_id)
    if await service.get_item(item_id) is None:
        raise HTTPException(status_code=404, detail="Outfit not found")

    await store.add(item_id)
    return WishlistMutationResponse(
        item_id=item_id,
        is_member=store.is_member(item_id),
        message="Added to wishlist",
    )


@router.delete("/{item_id}", response_model=WishlistMutationResponse)
async def remove_from_wishlist(
    item_id: str,
    store: WishlistStore = Depends(get_wishlist_store),
) -> WishlistMutationResponse:
    """Unheart ``item_id``; removing an absent item is harmless."""

    await store.remove(item_id)
    return WishlistMutationResponse(
        item_id=item_id,
        is_member=store.is_member(item_id),
        message="Removed from wishlist",
    )

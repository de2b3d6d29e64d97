"""Pydantic schemas that power the wishlist API surface."""

from __future__ import annotations

from pydantic import BaseModel, Field

from swipeshop.schemas.catalog import CatalogItem


class WishlistResponse(BaseModel):
    """Current membership set for the signed-in user."""

    user_id: str = Field(..., description="Identifier reported by the auth provider")
    total: int = Field(..., ge=0)
    item_ids: list[str] = Field(
        default_factory=list, description="Wishlisted outfit ids, sorted for stable output"
    )
    hydrated: bool = Field(
        ..., description="False when the last hydrate attempt failed and the set may be stale"
    )


class WishlistItemsResponse(BaseModel):
    """Wishlisted outfits with their catalog details, in catalog order."""

    user_id: str
    total: int = Field(..., ge=0)
    items: list[CatalogItem] = Field(default_factory=list)


class WishlistMembershipResponse(BaseModel):
    item_id: str
    is_member: bool
    pending: bool = Field(
        False, description="True while a mutation for this item awaits the backend"
    )


class WishlistMutationResponse(BaseModel):
    """Outcome of a heart / unheart action."""

    item_id: str
    is_member: bool
    message: str = Field(..., description="Toast text shown to the user")

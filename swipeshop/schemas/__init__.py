"""Pydantic schemas for API responses."""

from swipeshop.schemas.catalog import (  # noqa: F401
    CatalogItem,
    CatalogItemView,
    Category,
    Color,
    FacetOptionsResponse,
    FacetSelectionPayload,
    FilteredCatalogResponse,
    Gender,
    PriceBand,
)
from swipeshop.schemas.wishlist import (  # noqa: F401
    WishlistItemsResponse,
    WishlistMembershipResponse,
    WishlistMutationResponse,
    WishlistResponse,
)

"""FastAPI router exposing the filtered catalog behind the swipe deck."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from swipeshop.schemas.catalog import (
    PRICE_BAND_BOUNDS,
    CatalogItem,
    CatalogItemView,
    Category,
    Color,
    FacetOptionsResponse,
    FacetSelectionPayload,
    FilteredCatalogResponse,
    Gender,
    PriceBandOption,
)
from swipeshop.services.catalog.filters import normalize_facet_selection
from swipeshop.services.catalog.service import CatalogService
from swipeshop.services.dependencies import get_catalog_service, get_wishlist_store
from swipeshop.services.wishlist.store import WishlistStore

router = APIRouter()


@router.get("", response_model=FilteredCatalogResponse)
async def list_catalog(
    gender: list[str] | None = Query(default=None, description="Repeatable gender facet"),
    category: list[str] | None = Query(default=None, description="Repeatable category facet"),
    color: list[str] | None = Query(default=None, description="Repeatable color facet"),
    price_band: list[str] | None = Query(
        default=None, description="Repeatable price band facet (budget, mid, premium, luxury)"
    ),
    service: CatalogService = Depends(get_catalog_service),
    store: WishlistStore = Depends(get_wishlist_store),
) -> FilteredCatalogResponse:
    """Return catalog items matching every selected facet, newest first."""

    try:
        selection = normalize_facet_selection(
            gender=gender, category=category, color=color, price_band=price_band
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc

    items, catalog_size = await service.filtered(selection)
    return FilteredCatalogResponse(
        total=len(items),
        catalog_size=catalog_size,
        filters=FacetSelectionPayload(
            gender=sorted(selection.genders, key=list(Gender).index),
            category=sorted(selection.categories, key=list(Category).index),
            color=sorted(selection.colors, key=list(Color).index),
            price_band=sorted(selection.price_bands, key=list(PRICE_BAND_BOUNDS).index),
        ),
        items=[
            CatalogItemView(**item.model_dump(), is_wishlisted=store.is_member(item.id))
            for item in items
        ],
    )


@router.get("/facets", response_model=FacetOptionsResponse)
async def list_facets() -> FacetOptionsResponse:
    """Enumerate the values offered by the filter bar."""

    return FacetOptionsResponse(
        gender=list(Gender),
        category=list(Category),
        color=list(Color),
        price_band=[
            PriceBandOption(value=band, min_price=low, max_price=high)
            for band, (low, high) in PRICE_BAND_BOUNDS.items()
        ],
    )


@router.get("/{item_id}", response_model=CatalogItem)
async def get_catalog_item(
    item_id: str,
    service: CatalogService = Depends(get_catalog_service),
) -> CatalogItem:
    item = await service.get_item(item_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Outfit not found")
    return item

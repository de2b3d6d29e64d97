"""Pydantic schemas describing catalog items and their filterable facets."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class _FacetEnum(str, Enum):
    """String enum whose lookup ignores case and surrounding whitespace."""

    @classmethod
    def _missing_(cls, value: object) -> "_FacetEnum | None":
        if not isinstance(value, str):
            return None
        needle = value.strip().lower()
        for member in cls:
            if member.value.lower() == needle or member.name.lower() == needle:
                return member
        return None


class Gender(_FacetEnum):
    MEN = "Men"
    WOMEN = "Women"
    UNISEX = "Unisex"


class Category(_FacetEnum):
    SHIRT = "Shirt"
    T_SHIRT = "T-Shirt"
    SWEATER = "Sweater"
    JACKET = "Jacket"
    DRESS = "Dress"
    SKIRT = "Skirt"
    PANTS = "Pants"
    JEANS = "Jeans"
    SHORTS = "Shorts"
    ACTIVEWEAR = "Activewear"
    SHOES = "Shoes"
    ACCESSORY = "Accessory"


class Color(_FacetEnum):
    BLACK = "Black"
    WHITE = "White"
    GRAY = "Gray"
    BEIGE = "Beige"
    BROWN = "Brown"
    RED = "Red"
    PINK = "Pink"
    ORANGE = "Orange"
    YELLOW = "Yellow"
    GREEN = "Green"
    BLUE = "Blue"
    PURPLE = "Purple"
    MULTICOLOR = "Multicolor"


class PriceBand(_FacetEnum):
    """Price ranges offered by the filter bar; bounds live in ``PRICE_BAND_BOUNDS``."""

    BUDGET = "budget"
    MID = "mid"
    PREMIUM = "premium"
    LUXURY = "luxury"

    @classmethod
    def for_price(cls, price: float) -> "PriceBand":
        """Return the band whose half-open ``[low, high)`` range contains ``price``."""

        for band, (low, high) in PRICE_BAND_BOUNDS.items():
            if price >= low and (high is None or price < high):
                return band
        return cls.BUDGET


PRICE_BAND_BOUNDS: dict[PriceBand, tuple[float, float | None]] = {
    PriceBand.BUDGET: (0.0, 50.0),
    PriceBand.MID: (50.0, 150.0),
    PriceBand.PREMIUM: (150.0, 300.0),
    PriceBand.LUXURY: (300.0, None),
}


class CatalogItem(BaseModel):
    """Immutable outfit card as fetched from the catalog table."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str = Field(..., min_length=1, description="Primary key of the outfit")
    name: str = Field(..., description="Display name rendered on the card header")
    price: float = Field(..., ge=0, description="Price in the store's currency unit")
    image: str = Field(..., description="Image URL rendered by the card")
    purchase_link: str | None = Field(None, description="External shop URL")
    description: str | None = Field(None)
    gender: Gender | None = Field(None)
    category: Category | None = Field(None)
    color: Color | None = Field(None)
    created_at: datetime | None = Field(
        None, description="Insertion timestamp used for newest-first ordering"
    )

    @property
    def price_band(self) -> PriceBand:
        return PriceBand.for_price(self.price)


class CatalogItemView(CatalogItem):
    """Catalog item annotated with the caller's wishlist membership."""

    is_wishlisted: bool = Field(
        False, description="Whether the requesting user currently has the item hearted"
    )


class FacetSelectionPayload(BaseModel):
    """Echo of the facet values applied to a filtered catalog response."""

    gender: list[Gender] = Field(default_factory=list)
    category: list[Category] = Field(default_factory=list)
    color: list[Color] = Field(default_factory=list)
    price_band: list[PriceBand] = Field(default_factory=list)


class FilteredCatalogResponse(BaseModel):
    """Filtered view over the current catalog snapshot."""

    total: int = Field(..., ge=0, description="Number of items after filtering")
    catalog_size: int = Field(..., ge=0, description="Number of items before filtering")
    filters: FacetSelectionPayload
    items: list[CatalogItemView] = Field(default_factory=list)


class PriceBandOption(BaseModel):
    value: PriceBand
    min_price: float
    max_price: float | None = None


class FacetOptionsResponse(BaseModel):
    """Enumerated facet values rendered by the filter bar."""

    gender: list[Gender]
    category: list[Category]
    color: list[Color]
    price_band: list[PriceBandOption]

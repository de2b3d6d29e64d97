"""Shared type definitions for the catalog package."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol

from swipeshop.schemas.catalog import CatalogItem, Category, Color, Gender, PriceBand


@dataclass(frozen=True, slots=True)
class FacetSelection:
    """Values selected per facet; an empty set leaves that facet unrestricted."""

    genders: frozenset[Gender] = field(default_factory=frozenset)
    categories: frozenset[Category] = field(default_factory=frozenset)
    colors: frozenset[Color] = field(default_factory=frozenset)
    price_bands: frozenset[PriceBand] = field(default_factory=frozenset)

    @property
    def is_empty(self) -> bool:
        return not (self.genders or self.categories or self.colors or self.price_bands)


class CatalogLoader(Protocol):
    """Zero-argument coroutine returning the current catalog snapshot."""

    async def __call__(self) -> Sequence[CatalogItem]: ...


__all__ = ["CatalogLoader", "FacetSelection"]

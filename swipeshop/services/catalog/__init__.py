"""Catalog snapshot service and the pure facet filter."""

from .filters import filter_catalog, normalize_facet_selection, price_band_for
from .service import CatalogRepository, CatalogService
from .types import CatalogLoader, FacetSelection

__all__ = [
    "CatalogLoader",
    "CatalogRepository",
    "CatalogService",
    "FacetSelection",
    "filter_catalog",
    "normalize_facet_selection",
    "price_band_for",
]

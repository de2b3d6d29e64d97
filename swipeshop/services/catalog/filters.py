"""Facet filtering helpers for catalog snapshots."""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from typing import TypeVar

from swipeshop.schemas.catalog import CatalogItem, Category, Color, Gender, PriceBand
from swipeshop.services.catalog.types import FacetSelection

E = TypeVar("E", bound=Enum)


def price_band_for(price: float) -> PriceBand:
    """Return the price band containing ``price``."""

    return PriceBand.for_price(price)


def _normalize_facet(
    enum_cls: type[E], facet: str, values: Iterable[str | E] | None
) -> frozenset[E]:
    if not values:
        return frozenset()

    selected: set[E] = set()
    for raw in values:
        if isinstance(raw, enum_cls):
            selected.add(raw)
            continue
        candidate = str(raw).strip()
        if not candidate:
            continue
        try:
            selected.add(enum_cls(candidate))
        except ValueError:
            allowed = ", ".join(str(member.value) for member in enum_cls)
            msg = f"Invalid {facet} value: {raw!r} (expected one of {allowed})"
            raise ValueError(msg) from None
    return frozenset(selected)


def normalize_facet_selection(
    *,
    gender: Iterable[str | Gender] | None = None,
    category: Iterable[str | Category] | None = None,
    color: Iterable[str | Color] | None = None,
    price_band: Iterable[str | PriceBand] | None = None,
) -> FacetSelection:
    """Build a :class:`FacetSelection` from raw query values.

    Blank values are ignored and matching is case-insensitive; anything that
    does not name a known facet value raises ``ValueError``.
    """

    return FacetSelection(
        genders=_normalize_facet(Gender, "gender", gender),
        categories=_normalize_facet(Category, "category", category),
        colors=_normalize_facet(Color, "color", color),
        price_bands=_normalize_facet(PriceBand, "price_band", price_band),
    )


def _matches(item: CatalogItem, selection: FacetSelection) -> bool:
    if selection.genders and item.gender not in selection.genders:
        return False
    if selection.categories and item.category not in selection.categories:
        return False
    if selection.colors and item.color not in selection.colors:
        return False
    if selection.price_bands and price_band_for(item.price) not in selection.price_bands:
        return False
    return True


def filter_catalog(
    catalog: Iterable[CatalogItem], selection: FacetSelection
) -> list[CatalogItem]:
    """Return the items matching every constrained facet, in snapshot order.

    Facets combine with AND, values within a facet with OR.  An item missing
    the value of a constrained facet never matches.
    """

    if selection.is_empty:
        return list(catalog)
    return [item for item in catalog if _matches(item, selection)]


__all__ = ["filter_catalog", "normalize_facet_selection", "price_band_for"]

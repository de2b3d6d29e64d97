"""Unit tests for the pure catalog facet filter."""

from __future__ import annotations

import pytest

from swipeshop.schemas.catalog import CatalogItem, Category, Color, Gender, PriceBand
from swipeshop.services.catalog import (
    FacetSelection,
    filter_catalog,
    normalize_facet_selection,
    price_band_for,
)


def make_item(item_id: str, **overrides: object) -> CatalogItem:
    payload: dict[str, object] = {
        "id": item_id,
        "name": item_id.replace("-", " ").title(),
        "price": 40.0,
        "image": f"https://cdn.example.com/{item_id}.jpg",
    }
    payload.update(overrides)
    return CatalogItem.model_validate(payload)


@pytest.fixture
def catalog() -> list[CatalogItem]:
    return [
        make_item("black-tee", gender="Men", category="T-Shirt", color="Black", price=25),
        make_item("red-dress", gender="Women", category="Dress", color="Red", price=120),
        make_item("blue-jeans", gender="Unisex", category="Jeans", color="Blue", price=80),
        make_item("black-coat", gender="Women", category="Jacket", color="Black", price=320),
        make_item("mystery-item", price=10),
    ]


def test_empty_selection_returns_catalog_unchanged(catalog: list[CatalogItem]) -> None:
    result = filter_catalog(catalog, FacetSelection())

    assert result == catalog
    assert result is not catalog


def test_filter_accepts_any_iterable(catalog: list[CatalogItem]) -> None:
    result = filter_catalog(iter(catalog), FacetSelection(colors=frozenset({Color.RED})))

    assert [item.id for item in result] == ["red-dress"]


def test_values_within_a_facet_are_ored(catalog: list[CatalogItem]) -> None:
    selection = FacetSelection(colors=frozenset({Color.BLACK, Color.BLUE}))

    result = filter_catalog(catalog, selection)

    assert [item.id for item in result] == ["black-tee", "blue-jeans", "black-coat"]


def test_facets_are_anded(catalog: list[CatalogItem]) -> None:
    selection = FacetSelection(
        genders=frozenset({Gender.WOMEN}),
        colors=frozenset({Color.BLACK}),
    )

    result = filter_catalog(catalog, selection)

    assert [item.id for item in result] == ["black-coat"]


def test_every_result_satisfies_every_constrained_facet(catalog: list[CatalogItem]) -> None:
    selection = FacetSelection(
        genders=frozenset({Gender.WOMEN, Gender.UNISEX}),
        price_bands=frozenset({PriceBand.MID}),
    )

    result = filter_catalog(catalog, selection)

    assert [item.id for item in result] == ["red-dress", "blue-jeans"]
    for item in result:
        assert item.gender in selection.genders
        assert item.price_band in selection.price_bands


def test_item_missing_a_constrained_facet_does_not_match(catalog: list[CatalogItem]) -> None:
    result = filter_catalog(catalog, FacetSelection(categories=frozenset(Category)))

    assert "mystery-item" not in [item.id for item in result]
    assert len(result) == 4


@pytest.mark.parametrize(
    ("price", "band"),
    [
        (0, PriceBand.BUDGET),
        (49.99, PriceBand.BUDGET),
        (50, PriceBand.MID),
        (149.99, PriceBand.MID),
        (150, PriceBand.PREMIUM),
        (299.99, PriceBand.PREMIUM),
        (300, PriceBand.LUXURY),
        (10_000, PriceBand.LUXURY),
    ],
)
def test_price_band_boundaries(price: float, band: PriceBand) -> None:
    assert price_band_for(price) is band


def test_normalize_trims_and_ignores_case() -> None:
    selection = normalize_facet_selection(
        gender=[" women ", "MEN"],
        category=["t-shirt"],
        color=["black", ""],
        price_band=["Luxury"],
    )

    assert selection == FacetSelection(
        genders=frozenset({Gender.WOMEN, Gender.MEN}),
        categories=frozenset({Category.T_SHIRT}),
        colors=frozenset({Color.BLACK}),
        price_bands=frozenset({PriceBand.LUXURY}),
    )


def test_normalize_without_values_is_empty() -> None:
    selection = normalize_facet_selection()

    assert selection.is_empty
    assert normalize_facet_selection(gender=["  "]).is_empty


def test_normalize_rejects_unknown_values() -> None:
    with pytest.raises(ValueError, match="Invalid color value"):
        normalize_facet_selection(color=["chartreuse"])

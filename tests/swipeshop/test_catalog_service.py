"""Tests for catalog snapshot loading, caching and filtered views."""

from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from swipeshop.cache import CacheClient, catalog_snapshot_key, invalidate_catalog
from swipeshop.schemas.catalog import CatalogItem, Color, Gender
from swipeshop.services.catalog import CatalogRepository, CatalogService, FacetSelection
from tests.swipeshop.support.gateways import MemoryCache


class CountingRepository:
    """Repository double that counts how often the database would be hit."""

    def __init__(self, items: list[CatalogItem]) -> None:
        self.items = items
        self.list_calls = 0

    async def list_items(self) -> list[CatalogItem]:
        self.list_calls += 1
        return list(self.items)

    async def get_item(self, item_id: str) -> CatalogItem | None:
        return next((item for item in self.items if item.id == item_id), None)


def make_item(item_id: str, **overrides: object) -> CatalogItem:
    payload: dict[str, object] = {
        "id": item_id,
        "name": item_id.title(),
        "price": 30.0,
        "image": f"https://cdn.example.com/{item_id}.jpg",
    }
    payload.update(overrides)
    return CatalogItem.model_validate(payload)


@pytest.fixture
def repository() -> CountingRepository:
    return CountingRepository(
        [
            make_item("coat", gender="Women", color="Black", price=310),
            make_item("dress", gender="Women", color="Red", price=90),
            make_item("tee", gender="Men", color="Black"),
        ]
    )


@pytest.mark.asyncio
async def test_snapshot_is_served_from_cache(repository: CountingRepository) -> None:
    cache = MemoryCache()
    service = CatalogService(repository, cache=cache)

    first = await service.snapshot()
    second = await service.snapshot()

    assert first == second == repository.items
    assert repository.list_calls == 1
    assert isinstance(cache.store[catalog_snapshot_key()], list)
    assert cache.ttls[catalog_snapshot_key()] == 300


@pytest.mark.asyncio
async def test_snapshot_ttl_follows_settings(
    repository: CountingRepository, monkeypatch: pytest.MonkeyPatch
) -> None:
    from swipeshop.settings import get_settings

    monkeypatch.setenv("CATALOG_CACHE_TTL_SECONDS", "42")
    get_settings.cache_clear()
    cache = MemoryCache()

    await CatalogService(repository, cache=cache).snapshot()

    assert cache.ttls[catalog_snapshot_key()] == 42


@pytest.mark.asyncio
async def test_local_cache_is_used_without_redis(repository: CountingRepository) -> None:
    await CatalogService(repository).snapshot()
    await CatalogService(repository).snapshot()

    assert repository.list_calls == 1

    await invalidate_catalog(CacheClient(None))
    await CatalogService(repository).snapshot()

    assert repository.list_calls == 2


@pytest.mark.asyncio
async def test_corrupt_cache_payload_falls_back_to_repository(
    repository: CountingRepository,
) -> None:
    cache = MemoryCache()
    cache.store[catalog_snapshot_key()] = {"not": "a list"}
    service = CatalogService(repository, cache=cache)

    items = await service.snapshot()

    assert [item.id for item in items] == ["coat", "dress", "tee"]
    assert repository.list_calls == 1


@pytest.mark.asyncio
async def test_filtered_reports_catalog_size(repository: CountingRepository) -> None:
    service = CatalogService(repository, cache=MemoryCache())

    items, catalog_size = await service.filtered(
        FacetSelection(genders=frozenset({Gender.WOMEN}), colors=frozenset({Color.BLACK}))
    )

    assert [item.id for item in items] == ["coat"]
    assert catalog_size == 3


@pytest.mark.asyncio
async def test_items_by_ids_follow_catalog_order(repository: CountingRepository) -> None:
    service = CatalogService(repository, cache=MemoryCache())

    items = await service.items_by_ids(["tee", "coat", "unknown"])

    assert [item.id for item in items] == ["coat", "tee"]
    assert await service.items_by_ids([]) == []


@pytest.mark.asyncio
async def test_get_item(repository: CountingRepository) -> None:
    service = CatalogService(repository, cache=MemoryCache())

    item = await service.get_item("dress")

    assert item is not None and item.price == 90
    assert await service.get_item("missing") is None


@pytest.mark.asyncio
async def test_repository_lists_newest_first(
    seeded_factory: async_sessionmaker[AsyncSession],
) -> None:
    async with seeded_factory() as session:
        repository = CatalogRepository(session)
        items = await repository.list_items()
        single = await repository.get_item("red-dress")

    assert [item.id for item in items] == ["blue-jeans", "red-dress", "black-tee"]
    assert items[0].gender is Gender.UNISEX
    assert single is not None and single.color is Color.RED
    assert single.price_band.value == "mid"

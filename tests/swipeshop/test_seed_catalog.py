"""Tests for the catalog seeding script helpers."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from swipeshop.cache import catalog_snapshot_key
from swipeshop.schemas.catalog import Category, Gender
from swipeshop.scripts.seed_catalog import (
    build_parser,
    parse_catalog_records,
    read_records,
    seed_catalog,
)
from swipeshop.services.catalog import CatalogRepository
from tests.swipeshop.support.gateways import MemoryCache

RECORDS = [
    {
        "id": "linen-shirt",
        "name": "Linen Shirt",
        "price": 45,
        "image": "https://cdn.example.com/linen-shirt.jpg",
        "gender": "men",
        "category": "shirt",
    },
    {
        "outfit_id": "wrap-dress",
        "name": "Wrap Dress",
        "price": 140,
        "image": "https://cdn.example.com/wrap-dress.jpg",
        "purchase_link": "https://shop.example.com/wrap-dress",
    },
    {"id": "broken", "name": "No price or image"},
]


def test_read_records_accepts_json_array(tmp_path: Path) -> None:
    path = tmp_path / "outfits.json"
    path.write_text(json.dumps(RECORDS + ["not a record"]), encoding="utf-8")

    assert read_records(path) == RECORDS


def test_read_records_skips_bad_jsonl_lines(tmp_path: Path) -> None:
    path = tmp_path / "outfits.jsonl"
    lines = [json.dumps(RECORDS[0]), "", "{not json", json.dumps(RECORDS[1])]
    path.write_text("\n".join(lines), encoding="utf-8")

    assert read_records(path) == RECORDS[:2]


def test_parse_catalog_records_normalises_and_skips_invalid() -> None:
    items, skipped = parse_catalog_records(RECORDS)

    assert [item.id for item in items] == ["linen-shirt", "wrap-dress"]
    assert items[0].gender is Gender.MEN
    assert items[0].category is Category.SHIRT
    assert skipped == 1


def test_parse_catalog_records_honours_limit() -> None:
    items, skipped = parse_catalog_records(RECORDS, limit=1)

    assert [item.id for item in items] == ["linen-shirt"]
    assert skipped == 0


def test_build_parser_defaults() -> None:
    args = build_parser().parse_args(["outfits.json", "--dry-run"])

    assert args.path == "outfits.json"
    assert args.dry_run is True
    assert args.limit is None


@pytest.mark.asyncio
async def test_seed_catalog_upserts_and_invalidates_cache(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    items, _ = parse_catalog_records(RECORDS)
    cache = MemoryCache()
    cache.store[catalog_snapshot_key()] = []

    loaded = await seed_catalog(items, session_factory=session_factory, cache=cache)
    reloaded = await seed_catalog(items[:1], session_factory=session_factory)

    assert loaded == 2
    assert reloaded == 1
    assert catalog_snapshot_key() in cache.deleted

    async with session_factory() as session:
        stored = await CatalogRepository(session).list_items()

    assert sorted(item.id for item in stored) == ["linen-shirt", "wrap-dress"]
    shirt = next(item for item in stored if item.id == "linen-shirt")
    assert shirt.gender is Gender.MEN

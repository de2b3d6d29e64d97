#!/usr/bin/env python
"""Seed outfits into the catalog table from a JSON array or JSONL file.

Usage:
    python -m swipeshop.scripts.seed_catalog ./data/fixtures/outfits.jsonl
    python -m swipeshop.scripts.seed_catalog ./data/outfits.json --limit 50
    python -m swipeshop.scripts.seed_catalog ./data/outfits.json --dry-run
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Iterable
from enum import Enum
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from swipeshop.cache import CacheClient, close_redis, get_cache_client, invalidate_catalog
from swipeshop.db.connection import get_async_session_context
from swipeshop.db.models import CatalogItemRecord
from swipeshop.schemas.catalog import CatalogItem

load_dotenv()

console = Console()


def read_records(path: Path) -> list[dict[str, Any]]:
    """Return raw outfit dictionaries from a JSON array or a JSONL file."""

    text = path.read_text(encoding="utf-8")
    stripped = text.lstrip()
    if stripped.startswith("["):
        payload = json.loads(stripped)
        return [record for record in payload if isinstance(record, dict)]

    records: list[dict[str, Any]] = []
    for line_num, line in enumerate(text.splitlines(), 1):
        if not line.strip():
            continue
        try:
            record = json.loads(line)
        except json.JSONDecodeError as exc:
            console.print(f"[red]Line {line_num}: JSON decode error: {exc}[/red]")
            continue
        if isinstance(record, dict):
            records.append(record)
    return records


def parse_catalog_records(
    records: Iterable[dict[str, Any]],
    *,
    limit: int | None = None,
) -> tuple[list[CatalogItem], int]:
    """Validate raw records into catalog items; returns ``(items, skipped)``.

    ``outfit_id`` is accepted as an alias of ``id`` to match older exports.
    """

    items: list[CatalogItem] = []
    skipped = 0
    for index, record in enumerate(records, 1):
        if limit and len(items) >= limit:
            break
        data = dict(record)
        if "id" not in data and "outfit_id" in data:
            data["id"] = data.pop("outfit_id")
        try:
            items.append(CatalogItem.model_validate(data))
        except ValidationError as exc:
            console.print(
                f"[yellow]Record {index}: invalid outfit, skipping ({exc.error_count()} errors)[/yellow]"
            )
            skipped += 1
    return items, skipped


def _to_record(item: CatalogItem) -> CatalogItemRecord:
    values = {
        key: value.value if isinstance(value, Enum) else value
        for key, value in item.model_dump(exclude_none=True).items()
    }
    return CatalogItemRecord(**values)


async def seed_catalog(
    items: Iterable[CatalogItem],
    *,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    cache: CacheClient | None = None,
) -> int:
    """Upsert ``items`` into the catalog table and drop cached snapshots."""

    count = 0
    async with get_async_session_context(session_factory) as session:
        for item in items:
            await session.merge(_to_record(item))
            count += 1

    if cache is not None:
        await invalidate_catalog(cache)
    return count


async def main(args: argparse.Namespace) -> int:
    from swipeshop.main import validate_environment

    validate_environment()
    console.print("[bold blue]SwipeShop Catalog Seeder[/bold blue]\n")

    path = Path(args.path)
    if not path.exists():
        console.print(f"[red]File not found: {path}[/red]")
        return 1

    items, skipped = parse_catalog_records(read_records(path), limit=args.limit)
    if args.dry_run:
        for item in items:
            console.print(f"✓ Would load: {item.name} ({item.id})")
        console.print(f"\n[green]{len(items)} valid[/green], [yellow]{skipped} skipped[/yellow]")
        return 0

    cache = await get_cache_client()
    try:
        loaded = await seed_catalog(items, cache=cache)
    finally:
        await close_redis()

    console.print(
        f"\n[bold green]Loaded {loaded} outfits[/bold green] ([yellow]{skipped} skipped[/yellow])"
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Seed the outfit catalog")
    parser.add_argument("path", help="JSON array or JSONL file with outfit records")
    parser.add_argument("--limit", type=int, default=None, help="Maximum outfits to load")
    parser.add_argument(
        "--dry-run", action="store_true", help="Validate records without writing"
    )
    return parser


if __name__ == "__main__":
    sys.exit(asyncio.run(main(build_parser().parse_args())))

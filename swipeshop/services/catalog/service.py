"""Catalog read model: snapshot loading, caching and filtered views."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any, Protocol, runtime_checkable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from swipeshop.cache import CacheClient, catalog_snapshot_key
from swipeshop.db.models import CatalogItemRecord
from swipeshop.schemas.catalog import CatalogItem
from swipeshop.services.caching import CacheableService, cached
from swipeshop.services.catalog.filters import filter_catalog
from swipeshop.services.catalog.types import FacetSelection
from swipeshop.settings import get_settings

logger = logging.getLogger(__name__)


def serialize_catalog(items: Iterable[CatalogItem]) -> list[dict[str, Any]]:
    return [item.model_dump(mode="json") for item in items]


def deserialize_catalog(payload: Any) -> list[CatalogItem]:
    if not isinstance(payload, list):
        raise TypeError("Expected cached catalog snapshot to be a list")
    return [CatalogItem.model_validate(item) for item in payload]


class CatalogRepository:
    """Loads outfits from the ``outfits`` table."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_items(self) -> list[CatalogItem]:
        """Return every outfit, newest first."""

        query = select(CatalogItemRecord).order_by(
            CatalogItemRecord.created_at.desc().nulls_last(),
            CatalogItemRecord.id,
        )
        result = await self._session.execute(query)
        return [CatalogItem.model_validate(record) for record in result.scalars().all()]

    async def get_item(self, item_id: str) -> CatalogItem | None:
        record = await self._session.get(CatalogItemRecord, item_id)
        if record is None:
            return None
        return CatalogItem.model_validate(record)


@runtime_checkable
class CatalogRepositoryProtocol(Protocol):
    async def list_items(self) -> Sequence[CatalogItem]: ...

    async def get_item(self, item_id: str) -> CatalogItem | None: ...


class CatalogService(CacheableService):
    """Serves the catalog snapshot and facet-filtered views over it."""

    def __init__(
        self,
        repository: CatalogRepositoryProtocol,
        *,
        cache: CacheClient | None = None,
    ) -> None:
        super().__init__(cache=cache)
        self._repository = repository

    @cached(
        lambda _self: catalog_snapshot_key(),
        ttl=lambda: get_settings().catalog_cache_ttl_seconds,
        serializer=serialize_catalog,
        deserializer=deserialize_catalog,
        deserialize_error_message=(
            "Failed to deserialize cached catalog snapshot for key {key}: {error}"
        ),
    )
    async def snapshot(self) -> list[CatalogItem]:
        """Return the full catalog, newest first."""

        items = await self._repository.list_items()
        logger.debug("Loaded %d catalog items from the database", len(items))
        return list(items)

    async def filtered(self, selection: FacetSelection) -> tuple[list[CatalogItem], int]:
        """Return ``(matching items, catalog size)`` for ``selection``."""

        catalog = await self.snapshot()
        return filter_catalog(catalog, selection), len(catalog)

    async def get_item(self, item_id: str) -> CatalogItem | None:
        for item in await self.snapshot():
            if item.id == item_id:
                return item
        return await self._repository.get_item(item_id)

    async def items_by_ids(self, item_ids: Iterable[str]) -> list[CatalogItem]:
        """Return catalog items whose id is in ``item_ids``, in catalog order."""

        wanted = set(item_ids)
        if not wanted:
            return []
        return [item for item in await self.snapshot() if item.id in wanted]


__all__ = [
    "CatalogRepository",
    "CatalogRepositoryProtocol",
    "CatalogService",
    "deserialize_catalog",
    "serialize_catalog",
]

"""Shared fixtures for database-backed tests."""

from __future__ import annotations

from collections.abc import AsyncIterator
from datetime import datetime, timedelta, timezone

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from swipeshop.db.models import Base, CatalogItemRecord

_BASE_TIME = datetime(2025, 1, 1, tzinfo=timezone.utc)


def outfit_record(item_id: str, *, minutes: int = 0, **overrides: object) -> CatalogItemRecord:
    """Build an outfit row created ``minutes`` after a fixed base time."""

    values: dict[str, object] = {
        "id": item_id,
        "name": item_id.replace("-", " ").title(),
        "price": 40.0,
        "image": f"https://cdn.example.com/{item_id}.jpg",
        "created_at": _BASE_TIME + timedelta(minutes=minutes),
    }
    values.update(overrides)
    return CatalogItemRecord(**values)


@pytest_asyncio.fixture
async def session_factory() -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Yield a session factory over a fresh in-memory SQLite database.

    ``StaticPool`` keeps a single connection so every session sees the same
    in-memory database.
    """

    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def seeded_factory(
    session_factory: async_sessionmaker[AsyncSession],
) -> async_sessionmaker[AsyncSession]:
    """Session factory whose database holds three outfits."""

    async with session_factory() as session:
        session.add_all(
            [
                outfit_record("black-tee", minutes=0, gender="Men", color="Black", price=25),
                outfit_record("red-dress", minutes=10, gender="Women", color="Red", price=120),
                outfit_record("blue-jeans", minutes=20, gender="Unisex", color="Blue", price=80),
            ]
        )
        await session.commit()
    return session_factory

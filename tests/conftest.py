"""Pytest configuration shared by the whole suite."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from tests import _ensure_repo_on_path


def pytest_configure(config: pytest.Config) -> None:
    """Hook executed by pytest prior to running any tests."""

    _ensure_repo_on_path()


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Drop the cached settings singleton so env tweaks apply per test."""

    from swipeshop.settings import get_settings

    monkeypatch.delenv("DATABASE_URL", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def _empty_local_cache() -> Iterator[None]:
    """Start every test with an empty in-process cache."""

    from swipeshop import cache as cache_module

    cache_module._local_cache.clear()
    yield
    cache_module._local_cache.clear()

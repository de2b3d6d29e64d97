"""Centralized configuration management for the Swipe Shop backend."""

from __future__ import annotations

import logging
import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field, PrivateAttr
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables defined in a local .env file before instantiating the
# settings singleton so every consumer importing :mod:`swipeshop.settings` sees
# the same values as the FastAPI application.
load_dotenv()

# -- Application-wide constants -------------------------------------------------

DEFAULT_SQLITE_DATABASE_URL = "sqlite+aiosqlite:///./data/app.db"
POSTGRES_ASYNC_PREFIX = "postgresql+psycopg://"
POSTGRES_SYNC_PREFIXES = ("postgres://", "postgresql://")
DEFAULT_REDIS_URL = "redis://localhost:6379/0"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_WISHLIST_MUTATION_TIMEOUT_SECONDS = 10.0
DEFAULT_CATALOG_CACHE_TTL_SECONDS = 300
DEFAULT_WISHLIST_CACHE_TTL_SECONDS = 120
DEFAULT_WISHLIST_REGISTRY_MAX_USERS = 1000
DEFAULT_WISHLIST_STORE_IDLE_SECONDS = 900.0


def _normalize_origin(origin: str) -> str:
    """Return the origin stripped of whitespace and trailing slashes."""

    return origin.strip().rstrip("/")


class AppSettings(BaseSettings):
    """Typed configuration surface built on top of ``pydantic-settings``.

    Besides the raw environment values the class exposes a few derived helpers
    (normalized database URL, numeric log level, startup warnings) so callers
    never repeat parsing logic.
    """

    _explicit_redis_url: bool = PrivateAttr(default=False)
    _explicit_cors_allow_origins: bool = PrivateAttr(default=False)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    def __init__(self, **values: object) -> None:
        """Capture explicit overrides prior to delegating to ``BaseSettings``."""

        normalized_keys = {str(key).lower() for key in values}
        super().__init__(**values)
        self._explicit_redis_url = "redis_url" in normalized_keys
        self._explicit_cors_allow_origins = "cors_allow_origins_raw" in normalized_keys
        redis_env = os.getenv("REDIS_URL")
        if redis_env is not None and redis_env.strip():
            self._explicit_redis_url = True
        cors_env = os.getenv("CORS_ALLOW_ORIGINS")
        if cors_env is not None and cors_env.strip():
            self._explicit_cors_allow_origins = True

    database_url: str | None = Field(
        default=None,
        alias="DATABASE_URL",
        description=(
            "Full SQLAlchemy-compatible database URL holding the catalog and"
            " wishlist tables. Postgres URLs supplied in sync format are coerced"
            " into the async psycopg driver string at runtime."
        ),
    )
    use_sqlite: bool = Field(
        default=False,
        alias="USE_SQLITE",
        description="Force SQLite usage regardless of DATABASE_URL.",
    )
    redis_url: str = Field(
        default=DEFAULT_REDIS_URL,
        alias="REDIS_URL",
        description="Redis connection string consumed by the cache utilities.",
    )
    cors_allow_origins_raw: str | None = Field(
        default=None,
        alias="CORS_ALLOW_ORIGINS",
        description="Comma-separated list of additional CORS origins.",
    )
    log_level: str = Field(
        default=DEFAULT_LOG_LEVEL,
        alias="LOG_LEVEL",
        description="Root logging level (e.g. INFO, DEBUG, WARNING).",
    )
    wishlist_mutation_timeout_seconds: float = Field(
        default=DEFAULT_WISHLIST_MUTATION_TIMEOUT_SECONDS,
        alias="WISHLIST_MUTATION_TIMEOUT_SECONDS",
        gt=0,
        description=(
            "Upper bound applied to every wishlist gateway round trip; timeouts"
            " roll the optimistic change back."
        ),
    )
    catalog_cache_ttl_seconds: int = Field(
        default=DEFAULT_CATALOG_CACHE_TTL_SECONDS,
        alias="CATALOG_CACHE_TTL_SECONDS",
        ge=0,
        description="Lifetime of the cached catalog snapshot.",
    )
    wishlist_cache_ttl_seconds: int = Field(
        default=DEFAULT_WISHLIST_CACHE_TTL_SECONDS,
        alias="WISHLIST_CACHE_TTL_SECONDS",
        ge=0,
        description="Lifetime of cached per-user wishlist id lists.",
    )
    wishlist_registry_max_users: int = Field(
        default=DEFAULT_WISHLIST_REGISTRY_MAX_USERS,
        alias="WISHLIST_REGISTRY_MAX_USERS",
        ge=1,
        description="Most per-user wishlist stores kept in memory; least recently used go first.",
    )
    wishlist_store_idle_seconds: float = Field(
        default=DEFAULT_WISHLIST_STORE_IDLE_SECONDS,
        alias="WISHLIST_STORE_IDLE_SECONDS",
        gt=0,
        description="Seconds without a request after which a user's store is dropped.",
    )

    @property
    def resolved_database_url(self) -> str:
        """Return the async-compatible database URL after applying fallbacks."""

        if self.use_sqlite or not self.database_url:
            return DEFAULT_SQLITE_DATABASE_URL

        url = self.database_url.strip()

        for prefix in POSTGRES_SYNC_PREFIXES:
            if url.startswith(prefix):
                return url.replace(prefix, POSTGRES_ASYNC_PREFIX, 1)

        if url.startswith(POSTGRES_ASYNC_PREFIX) or url.startswith("sqlite+aiosqlite://"):
            return url

        raise RuntimeError(
            f"Expected a PostgreSQL or SQLite connection string, received: {url}"
        )

    @property
    def database_type(self) -> str:
        """Return ``sqlite`` when using SQLite otherwise ``postgresql``."""

        if self.resolved_database_url.startswith("sqlite"):
            return "sqlite"
        return "postgresql"

    @property
    def cors_allow_origins(self) -> list[str]:
        """Return normalised CORS origins supplied via environment variables."""

        if not self.cors_allow_origins_raw:
            return []

        origins = [
            _normalize_origin(origin)
            for origin in self.cors_allow_origins_raw.split(",")
            if origin.strip()
        ]
        return [origin for origin in origins if origin]

    @property
    def log_level_numeric(self) -> int:
        """Translate ``log_level`` into the numeric constant expected by logging."""

        candidate = logging.getLevelName(self.log_level.upper())
        if isinstance(candidate, int):
            return candidate
        return logging.INFO

    def optional_config_warnings(self) -> list[str]:
        """Return human-readable warnings for unset optional configuration."""

        warnings: list[str] = []

        if not self._explicit_redis_url and self.redis_url == DEFAULT_REDIS_URL:
            warnings.append(
                "REDIS_URL is not set - caching will use in-memory fallback "
                "(performance may be degraded)"
            )

        if not self._explicit_cors_allow_origins and not self.cors_allow_origins:
            warnings.append(
                "CORS_ALLOW_ORIGINS is not set - using default localhost origins only "
                "(may cause CORS issues in production)"
            )

        return warnings


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return a cached instance of :class:`AppSettings`."""

    return AppSettings()


settings = get_settings()

__all__ = [
    "AppSettings",
    "DEFAULT_CATALOG_CACHE_TTL_SECONDS",
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_REDIS_URL",
    "DEFAULT_SQLITE_DATABASE_URL",
    "DEFAULT_WISHLIST_CACHE_TTL_SECONDS",
    "DEFAULT_WISHLIST_MUTATION_TIMEOUT_SECONDS",
    "DEFAULT_WISHLIST_REGISTRY_MAX_USERS",
    "DEFAULT_WISHLIST_STORE_IDLE_SECONDS",
    "POSTGRES_ASYNC_PREFIX",
    "POSTGRES_SYNC_PREFIXES",
    "get_settings",
    "settings",
]

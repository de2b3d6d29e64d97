import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import (
    DatabaseError,
    DBAPIError,
    IntegrityError,
    OperationalError,
)
from sqlalchemy.exc import (
    TimeoutError as SQLAlchemyTimeoutError,
)

from swipeshop.cache import close_redis, get_cache_client
from swipeshop.db.connection import (
    dispose_engine,
    get_database_type,
    get_database_url,
    get_engine,
    get_session_factory,
)
from swipeshop.db.models import Base
from swipeshop.gateway.persistence import SqlWishlistGateway
from swipeshop.services.wishlist.errors import WishlistError
from swipeshop.services.wishlist.registry import WishlistStoreRegistry
from swipeshop.settings import AppSettings, get_settings

from .api import catalog, wishlist
from .schemas.error import ErrorType, ValidationErrorDetail
from .utils.error_responses import (
    build_error_response,
    build_validation_error_response,
    build_wishlist_error_response,
)
from .utils.request_context import (
    clear_request_id,
    get_request_id,
    new_request_id,
    set_request_id,
)

# Load environment variables from .env file
load_dotenv()

logging.basicConfig(
    level=get_settings().log_level_numeric,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _validate_environment(active_settings: AppSettings | None = None) -> list[str]:
    """Log warnings for unset optional settings and return them."""

    warnings = (active_settings or get_settings()).optional_config_warnings()
    if warnings:
        logger.warning("=" * 60)
        logger.warning("Environment Configuration Warnings:")
        for warning in warnings:
            logger.warning("  • %s", warning)
        logger.warning("=" * 60)
    return warnings


def validate_environment() -> list[str]:
    """Public wrapper so CLI tools emit the same startup diagnostics."""

    return _validate_environment()


def _sanitize_database_url(url: str) -> str:
    """Hide the password portion of ``url`` for log output."""
    if "://" not in url:
        return url

    scheme, rest = url.split("://", 1)
    if "@" in rest:
        auth, host_db = rest.split("@", 1)
        if ":" in auth:
            user, _ = auth.split(":", 1)
            return f"{scheme}://{user}:***@{host_db}"
        return f"{scheme}://{auth}@{host_db}"
    return url


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Wire the database, cache and wishlist registry for the process lifetime."""
    active_settings = get_settings()
    validate_environment()

    db_type = get_database_type()
    logger.info("=" * 60)
    logger.info("SwipeShop API - Database Preflight Check")
    logger.info("=" * 60)
    logger.info("Database Type: %s", db_type.upper())
    logger.info("Database URL: %s", _sanitize_database_url(get_database_url()))
    logger.info("=" * 60)

    if db_type == "sqlite":
        async with get_engine().begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("SQLite mode - tables ensured")

    cache = await get_cache_client()
    gateway = SqlWishlistGateway(
        get_session_factory(),
        cache=cache,
        cache_ttl=active_settings.wishlist_cache_ttl_seconds,
    )
    registry = WishlistStoreRegistry(
        gateway,
        mutation_timeout=active_settings.wishlist_mutation_timeout_seconds,
        max_stores=active_settings.wishlist_registry_max_users,
        idle_seconds=active_settings.wishlist_store_idle_seconds,
    )
    app.state.wishlist_registry = registry

    yield

    logger.info("Shutting down SwipeShop API")
    await registry.close()
    await close_redis()
    await dispose_engine()


app = FastAPI(
    title="SwipeShop API",
    version="0.1.0",
    description="Swipe-to-browse clothing catalog with a personal wishlist.",
    lifespan=lifespan,
    redirect_slashes=False,
)


def _default_origins() -> list[str]:
    ports = [3000, 5173, 8081, 19006]
    origins = []
    for host in ("localhost", "127.0.0.1"):
        origins.extend([f"http://{host}:{port}" for port in ports])
    return origins


def _combine_origins(*origin_groups: list[str]) -> list[str]:
    """Merge origins preserving order and removing duplicates."""
    seen: set[str] = set()
    combined: list[str] = []
    for group in origin_groups:
        for origin in group:
            normalized = origin.rstrip("/")
            if normalized and normalized not in seen:
                seen.add(normalized)
                combined.append(normalized)
    return combined


allow_origins = _combine_origins(_default_origins(), get_settings().cors_allow_origins)
logger.info("Configured CORS allow_origins: %s", ", ".join(allow_origins))

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Tag each request with an id echoed in ``X-Request-ID`` and error payloads."""
    request_id = request.headers.get("X-Request-ID") or new_request_id()
    token = set_request_id(request_id)
    try:
        response = await call_next(request)
    finally:
        clear_request_id(token)
    response.headers["X-Request-ID"] = request_id
    return response


def _error_json(status_code: int, payload) -> JSONResponse:
    headers = None
    retry_after = getattr(payload, "retry_after", None)
    if retry_after is not None:
        headers = {"Retry-After": str(retry_after)}
    return JSONResponse(
        status_code=status_code,
        content=payload.model_dump(mode="json"),
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle FastAPI request validation errors."""
    errors = [
        ValidationErrorDetail(
            field=".".join(str(loc) for loc in error["loc"]),
            message=error["msg"],
            value=error.get("input"),
        )
        for error in exc.errors()
    ]

    logger.warning(
        "Validation error for request %s to %s: %s errors",
        get_request_id(),
        request.url.path,
        len(errors),
    )

    error_response = build_validation_error_response(
        message="Request validation failed",
        detail=f"{len(errors)} validation error(s)",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        path=str(request.url.path),
        errors=errors,
    )
    return _error_json(status.HTTP_422_UNPROCESSABLE_ENTITY, error_response)


@app.exception_handler(ValidationError)
async def pydantic_validation_exception_handler(request: Request, exc: ValidationError):
    """Handle Pydantic validation errors."""
    errors = [
        ValidationErrorDetail(
            field=".".join(str(loc) for loc in error["loc"]),
            message=error["msg"],
            value=error.get("input"),
        )
        for error in exc.errors()
    ]

    logger.warning(
        "Pydantic validation error for request %s to %s: %s errors",
        get_request_id(),
        request.url.path,
        len(errors),
    )

    error_response = build_validation_error_response(
        message="Data validation failed",
        detail=f"{len(errors)} validation error(s)",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        path=str(request.url.path),
        errors=errors,
    )
    return _error_json(status.HTTP_422_UNPROCESSABLE_ENTITY, error_response)


@app.exception_handler(WishlistError)
async def wishlist_exception_handler(request: Request, exc: WishlistError):
    """Map wishlist store failures onto 401 / 409 / 503 payloads."""
    logger.warning(
        "Wishlist error for request %s to %s: %s",
        get_request_id(),
        request.url.path,
        exc,
    )

    error_response = build_wishlist_error_response(exc, path=str(request.url.path))
    return _error_json(error_response.status_code, error_response)


@app.exception_handler(OperationalError)
@app.exception_handler(DBAPIError)
async def database_connection_exception_handler(request: Request, exc: Exception):
    """Handle database connection errors."""
    logger.error(
        "Database connection error for request %s to %s: %s",
        get_request_id(),
        request.url.path,
        str(exc),
    )

    error_response = build_error_response(
        error_type=ErrorType.DATABASE_ERROR,
        message="Database connection failed",
        detail="Unable to connect to the database. Please try again later.",
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        path=str(request.url.path),
        retry_after=5,
    )
    return _error_json(status.HTTP_503_SERVICE_UNAVAILABLE, error_response)


@app.exception_handler(SQLAlchemyTimeoutError)
async def database_timeout_exception_handler(
    request: Request, exc: SQLAlchemyTimeoutError
):
    """Handle database query timeout errors."""
    logger.error(
        "Database timeout error for request %s to %s: %s",
        get_request_id(),
        request.url.path,
        str(exc),
    )

    error_response = build_error_response(
        error_type=ErrorType.TIMEOUT_ERROR,
        message="Database query timeout",
        detail="The database query took too long to complete. Please try again.",
        status_code=status.HTTP_504_GATEWAY_TIMEOUT,
        path=str(request.url.path),
        retry_after=3,
    )
    return _error_json(status.HTTP_504_GATEWAY_TIMEOUT, error_response)


@app.exception_handler(IntegrityError)
async def database_integrity_exception_handler(request: Request, exc: IntegrityError):
    """Handle database integrity constraint errors."""
    logger.error(
        "Database integrity error for request %s to %s: %s",
        get_request_id(),
        request.url.path,
        str(exc),
    )

    error_response = build_error_response(
        error_type=ErrorType.DATABASE_ERROR,
        message="Data integrity constraint violation",
        detail="The operation would violate a database constraint.",
        status_code=status.HTTP_409_CONFLICT,
        path=str(request.url.path),
    )
    return _error_json(status.HTTP_409_CONFLICT, error_response)


@app.exception_handler(DatabaseError)
async def database_generic_exception_handler(request: Request, exc: DatabaseError):
    """Handle generic database errors."""
    logger.error(
        "Database error for request %s to %s: %s",
        get_request_id(),
        request.url.path,
        str(exc),
    )

    error_response = build_error_response(
        error_type=ErrorType.DATABASE_ERROR,
        message="Database operation failed",
        detail="An error occurred while accessing the database. Please try again.",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        path=str(request.url.path),
        retry_after=3,
    )
    return _error_json(status.HTTP_500_INTERNAL_SERVER_ERROR, error_response)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Handle all other unhandled exceptions."""
    logger.exception(
        "Unhandled exception for request %s to %s: %s",
        get_request_id(),
        request.url.path,
        type(exc).__name__,
    )

    error_response = build_error_response(
        error_type=ErrorType.INTERNAL_ERROR,
        message="Internal server error",
        detail=f"An unexpected error occurred: {type(exc).__name__}",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        path=str(request.url.path),
        retry_after=5,
    )
    return _error_json(status.HTTP_500_INTERNAL_SERVER_ERROR, error_response)


@app.get("/health", tags=["system"])
async def healthcheck() -> dict[str, str]:
    """Simple health endpoint for readiness checks."""
    return {"status": "ok"}


app.include_router(catalog.router, prefix="/catalog", tags=["catalog"])
app.include_router(wishlist.router, prefix="/wishlist", tags=["wishlist"])

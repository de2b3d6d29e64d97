"""Helper functions for constructing structured API error responses.

Every payload carries the request id and a timezone-aware timestamp so clients
can correlate a failed heart action with server logs.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime

from swipeshop.schemas.error import (
    ErrorResponse,
    ErrorType,
    ValidationErrorDetail,
    ValidationErrorResponse,
)
from swipeshop.services.wishlist.errors import (
    RemoteFailureError,
    StaleMutationError,
    UnauthenticatedError,
    WishlistError,
)
from swipeshop.utils.request_context import get_request_id

__all__ = [
    "build_error_response",
    "build_validation_error_response",
    "build_wishlist_error_response",
]

_REMOTE_FAILURE_RETRY_AFTER = 5


def _current_timestamp() -> datetime:
    """Return a timezone-aware timestamp for error payloads.

    Kept separate so tests can monkeypatch the clock.
    """

    return datetime.now(UTC)


def build_validation_error_response(
    *,
    errors: Sequence[ValidationErrorDetail],
    message: str,
    detail: str,
    status_code: int,
    path: str,
    request_id: str | None = None,
) -> ValidationErrorResponse:
    """Construct a ``ValidationErrorResponse`` enriched with metadata."""

    return ValidationErrorResponse(
        error_type=ErrorType.VALIDATION_ERROR,
        message=message,
        detail=detail,
        status_code=status_code,
        timestamp=_current_timestamp(),
        request_id=request_id or get_request_id(),
        path=path,
        errors=list(errors),
    )


def build_error_response(
    *,
    error_type: ErrorType,
    message: str,
    detail: str,
    status_code: int,
    path: str,
    retry_after: int | None = None,
    request_id: str | None = None,
) -> ErrorResponse:
    """Construct a generic ``ErrorResponse`` enriched with metadata."""

    return ErrorResponse(
        error_type=error_type,
        message=message,
        detail=detail,
        status_code=status_code,
        timestamp=_current_timestamp(),
        request_id=request_id or get_request_id(),
        path=path,
        retry_after=retry_after,
    )


def build_wishlist_error_response(exc: WishlistError, *, path: str) -> ErrorResponse:
    """Translate a wishlist store failure into its HTTP error payload.

    Unauthenticated callers get 401, backend failures 503 with a retry hint,
    and mutations invalidated by a session change 409.
    """

    if isinstance(exc, UnauthenticatedError):
        return build_error_response(
            error_type=ErrorType.AUTHENTICATION_ERROR,
            message="Please login to add to wishlist",
            detail=str(exc),
            status_code=401,
            path=path,
        )
    if isinstance(exc, StaleMutationError):
        return build_error_response(
            error_type=ErrorType.CONFLICT_ERROR,
            message="Wishlist changed before the update was applied",
            detail=str(exc),
            status_code=409,
            path=path,
        )
    if isinstance(exc, RemoteFailureError):
        return build_error_response(
            error_type=ErrorType.NETWORK_ERROR,
            message="Failed to update wishlist",
            detail=str(exc),
            status_code=503,
            path=path,
            retry_after=_REMOTE_FAILURE_RETRY_AFTER,
        )
    return build_error_response(
        error_type=ErrorType.INTERNAL_ERROR,
        message="Wishlist operation failed",
        detail=str(exc),
        status_code=500,
        path=path,
    )

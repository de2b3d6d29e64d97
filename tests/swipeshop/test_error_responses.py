"""Tests covering the helper utilities that construct error responses."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from swipeshop.schemas.error import ErrorType, ValidationErrorDetail
from swipeshop.services.wishlist.errors import (
    RemoteFailureError,
    StaleMutationError,
    UnauthenticatedError,
    WishlistError,
)
from swipeshop.utils import error_responses
from swipeshop.utils.error_responses import (
    build_error_response,
    build_validation_error_response,
    build_wishlist_error_response,
)
from swipeshop.utils.request_context import clear_request_id, set_request_id


def _freeze_timestamp(monkeypatch: pytest.MonkeyPatch, fixed: datetime) -> None:
    """Override ``_current_timestamp`` to yield the provided ``datetime``."""

    monkeypatch.setattr(error_responses, "_current_timestamp", lambda: fixed)


def test_build_validation_error_response_includes_context_metadata(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """The helper should embed the request ID and a timezone-aware timestamp."""

    fixed_timestamp = datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)
    _freeze_timestamp(monkeypatch, fixed_timestamp)

    token = set_request_id("req-123")
    try:
        errors = [ValidationErrorDetail(field="query.color", message="Invalid", value="teal")]

        response = build_validation_error_response(
            message="Request validation failed",
            detail="1 validation error(s)",
            status_code=422,
            path="/catalog",
            errors=errors,
        )

        assert response.request_id == "req-123"
        assert response.timestamp == fixed_timestamp
        assert response.errors == errors
    finally:
        clear_request_id(token)


def test_build_error_response_allows_request_id_override() -> None:
    token = set_request_id("from-context")
    try:
        response = build_error_response(
            error_type=ErrorType.NOT_FOUND,
            message="Outfit not found",
            detail="missing",
            status_code=404,
            path="/catalog/missing",
            request_id="explicit",
        )
    finally:
        clear_request_id(token)

    assert response.request_id == "explicit"
    assert response.timestamp.tzinfo is not None


@pytest.mark.parametrize(
    ("exc", "status_code", "error_type", "retry_after"),
    [
        (UnauthenticatedError("no user"), 401, ErrorType.AUTHENTICATION_ERROR, None),
        (StaleMutationError("signed out"), 409, ErrorType.CONFLICT_ERROR, None),
        (RemoteFailureError("db down"), 503, ErrorType.NETWORK_ERROR, 5),
        (WishlistError("unexpected"), 500, ErrorType.INTERNAL_ERROR, None),
    ],
)
def test_wishlist_errors_map_to_http_payloads(
    exc: WishlistError,
    status_code: int,
    error_type: ErrorType,
    retry_after: int | None,
) -> None:
    response = build_wishlist_error_response(exc, path="/wishlist/tee")

    assert response.status_code == status_code
    assert response.error_type is error_type
    assert response.retry_after == retry_after
    assert response.detail == str(exc)
    assert response.path == "/wishlist/tee"


def test_unauthenticated_message_matches_card_toast() -> None:
    response = build_wishlist_error_response(UnauthenticatedError("x"), path="/wishlist/a")

    assert response.message == "Please login to add to wishlist"

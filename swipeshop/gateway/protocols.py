"""Contracts the wishlist store expects from the backend and the auth provider."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Protocol, runtime_checkable

SessionListener = Callable[[str | None], None]
"""Callback invoked with the new user id (``None`` after sign-out)."""


@runtime_checkable
class WishlistGatewayProtocol(Protocol):
    """Minimal remote store surface required by the wishlist store.

    Implementations signal failure by raising; any exception is treated as a
    remote failure by the caller.
    """

    async def get_wishlist_item_ids(self, user_id: str) -> Sequence[str]:
        """Return every outfit id saved by ``user_id``."""

    async def insert_wishlist_entry(self, user_id: str, item_id: str) -> None:
        """Persist the (user, item) pair; inserting an existing pair is not an error."""

    async def delete_wishlist_entry(self, user_id: str, item_id: str) -> None:
        """Remove the (user, item) pair; deleting a missing pair is not an error."""


@runtime_checkable
class SessionProviderProtocol(Protocol):
    """Opaque "who is signed in" provider."""

    def get_current_user(self) -> str | None:
        """Return the signed-in user id or ``None``."""

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register ``listener`` for session transitions and return an unsubscriber."""


__all__ = ["SessionListener", "SessionProviderProtocol", "WishlistGatewayProtocol"]

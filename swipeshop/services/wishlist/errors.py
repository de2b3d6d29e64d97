"""Exceptions raised by :class:`~swipeshop.services.wishlist.store.WishlistStore`."""

from __future__ import annotations


class WishlistError(Exception):
    """Base class for every recoverable wishlist failure."""

    def __init__(self, message: str, *, item_id: str | None = None) -> None:
        super().__init__(message)
        self.item_id = item_id


class UnauthenticatedError(WishlistError):
    """A mutation was attempted without a signed-in user.

    Raised before any optimistic change, so there is nothing to roll back.
    """


class RemoteFailureError(WishlistError):
    """The gateway rejected, failed or timed out on a read or write."""

    def __init__(
        self,
        message: str,
        *,
        item_id: str | None = None,
        rolled_back: bool = False,
    ) -> None:
        super().__init__(message, item_id=item_id)
        self.rolled_back = rolled_back


class StaleMutationError(WishlistError):
    """The session that issued the mutation ended before it reached the gateway."""


__all__ = [
    "RemoteFailureError",
    "StaleMutationError",
    "UnauthenticatedError",
    "WishlistError",
]

"""Wishlist store, its per-user registry and the error taxonomy."""

from .errors import (
    RemoteFailureError,
    StaleMutationError,
    UnauthenticatedError,
    WishlistError,
)
from .registry import WishlistStoreRegistry
from .store import (
    DEFAULT_MUTATION_TIMEOUT_SECONDS,
    WishlistEvent,
    WishlistEventKind,
    WishlistListener,
    WishlistStore,
)

__all__ = [
    "DEFAULT_MUTATION_TIMEOUT_SECONDS",
    "RemoteFailureError",
    "StaleMutationError",
    "UnauthenticatedError",
    "WishlistError",
    "WishlistEvent",
    "WishlistEventKind",
    "WishlistListener",
    "WishlistStore",
    "WishlistStoreRegistry",
]

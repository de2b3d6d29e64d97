"""Collaborators sitting at the edge of the wishlist store.

``protocols`` defines the contracts, ``session`` the in-process auth session
and ``persistence`` the SQLAlchemy implementation of the remote store.
"""

from .persistence import SqlWishlistGateway
from .protocols import SessionListener, SessionProviderProtocol, WishlistGatewayProtocol
from .session import AuthSession

__all__ = [
    "AuthSession",
    "SessionListener",
    "SessionProviderProtocol",
    "SqlWishlistGateway",
    "WishlistGatewayProtocol",
]

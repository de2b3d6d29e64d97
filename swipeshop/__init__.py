"""Swipe Shop backend: catalog browsing and optimistic wishlist synchronisation."""

__version__ = "0.1.0"

"""View models behind the swipe deck, the heart button and the wishlist screen.

They hold no wishlist state of their own: hearts are read back from the
:class:`~swipeshop.services.wishlist.store.WishlistStore` and refreshed through
its event subscription.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from swipeshop.schemas.catalog import CatalogItem
from swipeshop.services.catalog.filters import filter_catalog
from swipeshop.services.catalog.types import CatalogLoader, FacetSelection
from swipeshop.services.wishlist.errors import UnauthenticatedError, WishlistError
from swipeshop.services.wishlist.store import WishlistEvent, WishlistStore

logger = logging.getLogger(__name__)

ADDED_MESSAGE = "Added to wishlist"
REMOVED_MESSAGE = "Removed from wishlist"
LOGIN_REQUIRED_MESSAGE = "Please login to add to wishlist"
UPDATE_FAILED_MESSAGE = "Failed to update wishlist"

DEFAULT_STACK_SIZE = 3


class ClothingCardModel:
    """Heart toggle for a single catalog card."""

    def __init__(
        self,
        item: CatalogItem,
        store: WishlistStore,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self.item = item
        self._store = store
        self._on_change = on_change
        self._processing = False
        self._unsubscribe: Callable[[], None] | None = store.subscribe(self._handle_event)

    @property
    def is_liked(self) -> bool:
        return self._store.is_member(self.item.id)

    @property
    def is_processing(self) -> bool:
        return self._processing

    async def toggle_like(self) -> str | None:
        """Flip the heart and return the toast text, or ``None`` while busy."""

        if self._processing:
            return None

        self._processing = True
        try:
            if self.is_liked:
                await self._store.remove(self.item.id)
                return REMOVED_MESSAGE
            await self._store.add(self.item.id)
            return ADDED_MESSAGE
        except UnauthenticatedError:
            return LOGIN_REQUIRED_MESSAGE
        except WishlistError as exc:
            logger.error("Error toggling wishlist for %s: %s", self.item.id, exc)
            return UPDATE_FAILED_MESSAGE
        finally:
            self._processing = False

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _handle_event(self, event: WishlistEvent) -> None:
        if event.item_id is not None and event.item_id != self.item.id:
            return
        if self._on_change is not None:
            self._on_change()


class CardDeck:
    """Swipe deck over the filtered catalog; swiping the last card reloads it."""

    def __init__(
        self,
        load_catalog: CatalogLoader,
        selection: FacetSelection | None = None,
    ) -> None:
        self._load_catalog = load_catalog
        self._selection = selection or FacetSelection()
        self._cards: list[CatalogItem] = []
        self._index = 0
        self.loading = False

    @property
    def selection(self) -> FacetSelection:
        return self._selection

    @property
    def cards(self) -> list[CatalogItem]:
        return list(self._cards)

    @property
    def current(self) -> CatalogItem | None:
        if self._index < len(self._cards):
            return self._cards[self._index]
        return None

    @property
    def is_empty(self) -> bool:
        return not self._cards

    def upcoming(self, stack_size: int = DEFAULT_STACK_SIZE) -> list[CatalogItem]:
        """Return the visible stack starting with the current card."""

        if stack_size <= 0:
            return []
        return self._cards[self._index : self._index + stack_size]

    async def load(self) -> None:
        """Fetch the catalog and rebuild the deck; failures keep the current cards."""

        self.loading = True
        try:
            catalog = await self._load_catalog()
        except Exception:
            logger.exception("Error loading outfits")
            return
        finally:
            self.loading = False

        self._cards = filter_catalog(catalog, self._selection)
        self._index = 0
        if not self._cards:
            logger.info("No outfits match the current filters")

    async def apply_selection(self, selection: FacetSelection) -> None:
        self._selection = selection
        await self.load()

    async def swipe_left(self) -> CatalogItem | None:
        return await self._advance("left")

    async def swipe_right(self) -> CatalogItem | None:
        return await self._advance("right")

    async def _advance(self, direction: str) -> CatalogItem | None:
        swiped = self.current
        if swiped is None:
            return None
        logger.debug("Swiped %s: %s", direction, swiped.id)
        self._index += 1
        if self._index >= len(self._cards):
            logger.debug("All outfits swiped; reloading")
            await self.load()
        return swiped


class WishlistScreenModel:
    """Saved outfits with their catalog details, recomputed on demand."""

    def __init__(self, store: WishlistStore, load_catalog: CatalogLoader) -> None:
        self._store = store
        self._load_catalog = load_catalog

    @property
    def requires_login(self) -> bool:
        return self._store.user_id is None

    async def items(self) -> list[CatalogItem]:
        if self.requires_login:
            return []
        catalog = await self._load_catalog()
        return [item for item in catalog if self._store.is_member(item.id)]

    async def refresh(self) -> list[CatalogItem]:
        await self._store.hydrate()
        return await self.items()


__all__ = [
    "ADDED_MESSAGE",
    "LOGIN_REQUIRED_MESSAGE",
    "REMOVED_MESSAGE",
    "UPDATE_FAILED_MESSAGE",
    "CardDeck",
    "ClothingCardModel",
    "WishlistScreenModel",
]

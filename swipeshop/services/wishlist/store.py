"""Process-wide wishlist cache with optimistic, per-item serialized mutations.

Every heart/unheart goes through the same three steps:

1. ``add``/``remove`` change the visible membership synchronously and stamp
   the item with a fresh version before the first suspension point.
2. The remote call waits for earlier mutations of the same item (a FIFO
   ``asyncio.Lock`` per item id) and is skipped only when this store's own
   last write for the item already produced the desired state.
3. Success records the confirmed backend state.  Failure restores the visible
   membership to the confirmed state, but only while the item's latest stamp
   is still the one captured in step 1; once a newer mutation exists it owns
   the item and the stale rollback is dropped.

Observers never copy the set: they subscribe for :class:`WishlistEvent`
notifications and read back through :meth:`WishlistStore.is_member`.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections import Counter
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import TypeVar

from swipeshop.gateway.protocols import SessionProviderProtocol, WishlistGatewayProtocol
from swipeshop.services.wishlist.errors import (
    RemoteFailureError,
    StaleMutationError,
    UnauthenticatedError,
)

logger = logging.getLogger(__name__)

DEFAULT_MUTATION_TIMEOUT_SECONDS = 10.0

T = TypeVar("T")


class WishlistEventKind(str, Enum):
    HYDRATED = "hydrated"
    CLEARED = "cleared"
    OPTIMISTIC = "optimistic"
    CONFIRMED = "confirmed"
    ROLLED_BACK = "rolled_back"


@dataclass(frozen=True, slots=True)
class WishlistEvent:
    """Change notification; ``item_id`` is ``None`` for whole-set events."""

    kind: WishlistEventKind
    item_id: str | None = None
    is_member: bool | None = None


WishlistListener = Callable[[WishlistEvent], None]


@dataclass(frozen=True, slots=True)
class _Mutation:
    item_id: str
    present: bool
    previous: bool
    version: int
    epoch: int
    user_id: str

    @property
    def verb(self) -> str:
        return "add" if self.present else "remove"


class WishlistStore:
    """Single source of truth for "is item X in the current user's wishlist"."""

    def __init__(
        self,
        gateway: WishlistGatewayProtocol,
        session: SessionProviderProtocol,
        *,
        mutation_timeout: float | None = DEFAULT_MUTATION_TIMEOUT_SECONDS,
    ) -> None:
        self._gateway = gateway
        self._session = session
        self._mutation_timeout = mutation_timeout

        self._members: set[str] = set()
        # Backend state as last observed (hydrate or successful mutation).
        self._confirmed: set[str] = set()
        # Items whose backend state was last written by this store.
        self._observed: set[str] = set()
        # Confirmations recorded while a hydrate request is in flight.
        self._recent_confirmations: dict[str, bool] = {}
        # Latest unresolved mutation per item id.
        self._pending: dict[str, _Mutation] = {}

        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: Counter[str] = Counter()
        self._versions = itertools.count(1)
        # Bumped on every clear(); resolutions from an older epoch are ignored.
        self._epoch = 0
        self._hydrate_generation = 0
        self._hydrated = False

        self._listeners: list[WishlistListener] = []
        self._unsubscribe_session: Callable[[], None] | None = None
        self._hydration_task: asyncio.Task[None] | None = None

    # -- read side ---------------------------------------------------------------

    def is_member(self, item_id: str) -> bool:
        return item_id in self._members

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._members

    def __len__(self) -> int:
        return len(self._members)

    @property
    def items(self) -> frozenset[str]:
        """Immutable snapshot of the visible membership set."""
        return frozenset(self._members)

    @property
    def is_hydrated(self) -> bool:
        return self._hydrated

    @property
    def user_id(self) -> str | None:
        return self._session.get_current_user()

    def is_pending(self, item_id: str) -> bool:
        """Return ``True`` while a mutation for ``item_id`` awaits the backend."""
        return item_id in self._pending

    @property
    def has_pending(self) -> bool:
        return bool(self._pending)

    # -- observers ---------------------------------------------------------------

    def subscribe(self, listener: WishlistListener) -> Callable[[], None]:
        """Register ``listener`` for every state change and return an unsubscriber."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _emit(self, event: WishlistEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Wishlist listener %r failed on %s", listener, event.kind.value)

    # -- session lifecycle -------------------------------------------------------

    def bind_session(self) -> None:
        """Follow the auth session: sign-in hydrates, sign-out clears."""

        if self._unsubscribe_session is not None:
            return
        self._unsubscribe_session = self._session.subscribe(self._on_session_change)
        if self._session.get_current_user() is not None and not self._hydrated:
            self._schedule_hydrate()

    def close(self) -> None:
        """Detach from the session and drop all observers."""

        if self._unsubscribe_session is not None:
            self._unsubscribe_session()
            self._unsubscribe_session = None
        self._listeners.clear()

    async def wait_for_hydration(self) -> None:
        """Await the hydrate scheduled by the latest session transition, if any."""

        task = self._hydration_task
        if task is not None:
            await task

    def _on_session_change(self, user_id: str | None) -> None:
        self.clear()
        if user_id is not None:
            self._schedule_hydrate()

    def _schedule_hydrate(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; hydrate() must be awaited explicitly")
            return
        self._hydration_task = loop.create_task(self.hydrate())

    def clear(self) -> None:
        """Forget every cached membership, e.g. after sign-out."""

        self._epoch += 1
        self._members = set()
        self._confirmed = set()
        self._observed = set()
        self._recent_confirmations = {}
        self._pending = {}
        self._hydrated = False
        self._emit(WishlistEvent(WishlistEventKind.CLEARED))

    # -- hydrate -----------------------------------------------------------------

    async def hydrate(self) -> None:
        """Replace the cached set with the backend's list for the current user.

        Failures are logged and leave the cached set untouched; callers may
        simply retry.  In-flight optimistic mutations stay visible on top of the
        fetched set.
        """

        user_id = self._session.get_current_user()
        if user_id is None:
            logger.debug("Skipping wishlist hydrate; no signed-in user")
            return

        epoch = self._epoch
        self._hydrate_generation += 1
        generation = self._hydrate_generation
        self._recent_confirmations = {}

        try:
            item_ids = await self._bounded(self._gateway.get_wishlist_item_ids(user_id))
        except Exception as exc:
            logger.warning("Failed to hydrate wishlist for user %s: %r", user_id, exc)
            return

        if epoch != self._epoch or generation != self._hydrate_generation:
            logger.debug("Discarding superseded wishlist hydrate for user %s", user_id)
            return

        confirmed = set(item_ids)
        for item_id, present in self._recent_confirmations.items():
            if present:
                confirmed.add(item_id)
            else:
                confirmed.discard(item_id)

        members = set(confirmed)
        for item_id, mutation in self._pending.items():
            if mutation.present:
                members.add(item_id)
            else:
                members.discard(item_id)

        self._confirmed = confirmed
        self._observed = set(self._recent_confirmations)
        self._recent_confirmations = {}
        self._members = members
        self._hydrated = True
        logger.info("Hydrated wishlist for user %s with %d items", user_id, len(confirmed))
        self._emit(WishlistEvent(WishlistEventKind.HYDRATED))

    # -- mutations ---------------------------------------------------------------

    async def add(self, item_id: str) -> None:
        """Heart ``item_id``; raises a :class:`WishlistError` subclass on failure."""

        await self._mutate(item_id, present=True)

    async def remove(self, item_id: str) -> None:
        """Unheart ``item_id``; raises a :class:`WishlistError` subclass on failure."""

        await self._mutate(item_id, present=False)

    async def _mutate(self, item_id: str, *, present: bool) -> None:
        user_id = self._session.get_current_user()
        if user_id is None:
            raise UnauthenticatedError(
                "Wishlist changes require a signed-in user", item_id=item_id
            )

        mutation = self._apply_optimistic(item_id, present=present, user_id=user_id)
        lock = self._acquire_lock(item_id)
        try:
            async with lock:
                await self._commit(mutation)
        except asyncio.CancelledError:
            self._roll_back(mutation)
            raise
        finally:
            self._release_lock(item_id)

    def _apply_optimistic(self, item_id: str, *, present: bool, user_id: str) -> _Mutation:
        # A queued chain keeps the membership seen before its first mutation.
        earlier = self._pending.get(item_id)
        previous = earlier.previous if earlier is not None else item_id in self._members
        mutation = _Mutation(
            item_id=item_id,
            present=present,
            previous=previous,
            version=next(self._versions),
            epoch=self._epoch,
            user_id=user_id,
        )
        self._pending[item_id] = mutation
        self._set_member(item_id, present)
        self._emit(WishlistEvent(WishlistEventKind.OPTIMISTIC, item_id, present))
        return mutation

    async def _commit(self, mutation: _Mutation) -> None:
        if mutation.epoch != self._epoch:
            raise StaleMutationError(
                f"Session changed before {mutation.verb} of {mutation.item_id} was sent",
                item_id=mutation.item_id,
            )

        if self._self_confirmed_state(mutation.item_id) is mutation.present:
            logger.debug(
                "Backend already matches %s of %s; skipping remote call",
                mutation.verb,
                mutation.item_id,
            )
            self._confirm(mutation)
            return

        if mutation.present:
            call = self._gateway.insert_wishlist_entry(mutation.user_id, mutation.item_id)
        else:
            call = self._gateway.delete_wishlist_entry(mutation.user_id, mutation.item_id)

        try:
            await self._bounded(call)
        except Exception as exc:
            rolled_back = self._roll_back(mutation)
            raise RemoteFailureError(
                f"Failed to {mutation.verb} {mutation.item_id}: {exc!r}",
                item_id=mutation.item_id,
                rolled_back=rolled_back,
            ) from exc

        self._confirm(mutation)

    def _confirm(self, mutation: _Mutation) -> None:
        if mutation.epoch != self._epoch:
            logger.debug("Ignoring confirmation of %s from a previous session", mutation.item_id)
            return

        if mutation.present:
            self._confirmed.add(mutation.item_id)
        else:
            self._confirmed.discard(mutation.item_id)
        self._observed.add(mutation.item_id)
        self._recent_confirmations[mutation.item_id] = mutation.present

        if self._owns(mutation):
            del self._pending[mutation.item_id]
            self._emit(
                WishlistEvent(
                    WishlistEventKind.CONFIRMED,
                    mutation.item_id,
                    self.is_member(mutation.item_id),
                )
            )

    def _roll_back(self, mutation: _Mutation) -> bool:
        """Revert ``mutation`` if it is still the newest one for its item."""

        if mutation.epoch != self._epoch:
            return False
        if not self._owns(mutation):
            logger.debug(
                "Dropping stale rollback of %s for %s; a newer mutation is pending",
                mutation.verb,
                mutation.item_id,
            )
            return False

        del self._pending[mutation.item_id]
        confirmed = self._confirmed_state(mutation.item_id)
        restored = mutation.previous if confirmed is None else confirmed
        self._set_member(mutation.item_id, restored)
        logger.info(
            "Rolled back %s of %s for user %s", mutation.verb, mutation.item_id, mutation.user_id
        )
        self._emit(WishlistEvent(WishlistEventKind.ROLLED_BACK, mutation.item_id, restored))
        return True

    # -- helpers -----------------------------------------------------------------

    def _owns(self, mutation: _Mutation) -> bool:
        latest = self._pending.get(mutation.item_id)
        return latest is not None and latest.version == mutation.version

    def _confirmed_state(self, item_id: str) -> bool | None:
        if self._hydrated or item_id in self._observed:
            return item_id in self._confirmed
        return None

    def _self_confirmed_state(self, item_id: str) -> bool | None:
        """Backend state as last written by this store; hydrate snapshots do not count."""
        if item_id in self._observed:
            return item_id in self._confirmed
        return None

    def _set_member(self, item_id: str, present: bool) -> None:
        if present:
            self._members.add(item_id)
        else:
            self._members.discard(item_id)

    def _acquire_lock(self, item_id: str) -> asyncio.Lock:
        lock = self._locks.get(item_id)
        if lock is None:
            lock = self._locks[item_id] = asyncio.Lock()
        self._lock_users[item_id] += 1
        return lock

    def _release_lock(self, item_id: str) -> None:
        self._lock_users[item_id] -= 1
        if self._lock_users[item_id] <= 0:
            del self._lock_users[item_id]
            self._locks.pop(item_id, None)

    async def _bounded(self, awaitable: Awaitable[T]) -> T:
        if self._mutation_timeout is None:
            return await awaitable
        return await asyncio.wait_for(awaitable, timeout=self._mutation_timeout)


__all__ = [
    "DEFAULT_MUTATION_TIMEOUT_SECONDS",
    "WishlistEvent",
    "WishlistEventKind",
    "WishlistListener",
    "WishlistStore",
]

"""Test doubles standing in for the remote wishlist store."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from collections.abc import Iterable, Mapping

GET = "get"
INSERT = "insert"
DELETE = "delete"


class GatewayFailure(RuntimeError):
    """Error raised by :class:`InMemoryWishlistGateway` when a failure is queued."""


class InMemoryWishlistGateway:
    """Dictionary-backed gateway with controllable latency and failures.

    * ``block(op, item_id)`` returns an :class:`asyncio.Event`; matching calls
      wait until it is set.  Omitting ``item_id`` blocks every call of ``op``.
    * ``block_user(op, user_id)`` blocks only calls made for ``user_id``.
    * ``fail_next(op)`` queues an exception raised by the next ``op`` call
      once its gate opens.
    * ``calls`` records ``(op, user_id, item_id)`` in the order calls started.
    """

    def __init__(self, entries: Mapping[str, Iterable[str]] | None = None) -> None:
        self.entries: dict[str, list[str]] = {
            user_id: list(item_ids) for user_id, item_ids in (entries or {}).items()
        }
        self.calls: list[tuple[str, str, str | None]] = []
        self._failures: dict[str, list[BaseException]] = defaultdict(list)
        self._gates: dict[tuple[str, str | None], asyncio.Event] = {}
        self._user_gates: dict[tuple[str, str], asyncio.Event] = {}

    def block(self, op: str, item_id: str | None = None) -> asyncio.Event:
        gate = asyncio.Event()
        self._gates[(op, item_id)] = gate
        return gate

    def block_user(self, op: str, user_id: str) -> asyncio.Event:
        gate = asyncio.Event()
        self._user_gates[(op, user_id)] = gate
        return gate

    def fail_next(self, op: str, exc: BaseException | None = None) -> None:
        self._failures[op].append(exc or GatewayFailure(f"{op} failed"))

    def ops(self) -> list[str]:
        return [op for op, _, _ in self.calls]

    async def _enter(self, op: str, user_id: str, item_id: str | None) -> None:
        self.calls.append((op, user_id, item_id))
        await asyncio.sleep(0)
        gates = [
            self._gates.get((op, item_id)) or self._gates.get((op, None)),
            self._user_gates.get((op, user_id)),
        ]
        for gate in gates:
            if gate is not None:
                await gate.wait()
        if self._failures[op]:
            raise self._failures[op].pop(0)

    async def get_wishlist_item_ids(self, user_id: str) -> list[str]:
        await self._enter(GET, user_id, None)
        return list(self.entries.get(user_id, []))

    async def insert_wishlist_entry(self, user_id: str, item_id: str) -> None:
        await self._enter(INSERT, user_id, item_id)
        items = self.entries.setdefault(user_id, [])
        if item_id not in items:
            items.append(item_id)

    async def delete_wishlist_entry(self, user_id: str, item_id: str) -> None:
        await self._enter(DELETE, user_id, item_id)
        items = self.entries.get(user_id, [])
        if item_id in items:
            items.remove(item_id)


class MemoryCache:
    """In-memory cache double that mimics :class:`swipeshop.cache.CacheClient`."""

    def __init__(self) -> None:
        self.store: dict[str, object] = {}
        self.deleted: list[str] = []
        self.ttls: dict[str, int | None] = {}

    async def get_json(self, key: str) -> object | None:
        return self.store.get(key)

    async def set_json(self, key: str, value: object, ttl: int | None = None) -> None:
        self.store[key] = value
        self.ttls[key] = ttl

    async def delete(self, *keys: str) -> None:
        for key in keys:
            self.store.pop(key, None)
            self.deleted.append(key)

    async def delete_pattern(self, pattern: str) -> None:
        prefix = pattern.rstrip("*")
        for key in [key for key in self.store if key.startswith(prefix)]:
            await self.delete(key)


__all__ = [
    "DELETE",
    "GET",
    "INSERT",
    "GatewayFailure",
    "InMemoryWishlistGateway",
    "MemoryCache",
]

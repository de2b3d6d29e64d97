"""In-process auth session holding the current user id."""

from __future__ import annotations

import logging
from collections.abc import Callable

from swipeshop.gateway.protocols import SessionListener

logger = logging.getLogger(__name__)


class AuthSession:
    """Tracks the signed-in user and notifies listeners on every transition.

    Sign-in/out flows live elsewhere; this object only records their outcome
    so the wishlist store can hydrate or clear itself.
    """

    def __init__(self, user_id: str | None = None) -> None:
        self._user_id = user_id
        self._listeners: list[SessionListener] = []

    def get_current_user(self) -> str | None:
        return self._user_id

    @property
    def is_authenticated(self) -> bool:
        return self._user_id is not None

    def sign_in(self, user_id: str) -> None:
        cleaned = user_id.strip()
        if not cleaned:
            raise ValueError("user_id must not be blank")
        if cleaned == self._user_id:
            return
        self._user_id = cleaned
        logger.info("Session started for user %s", cleaned)
        self._notify()

    def sign_out(self) -> None:
        if self._user_id is None:
            return
        logger.info("Session ended for user %s", self._user_id)
        self._user_id = None
        self._notify()

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._user_id)
            except Exception:
                logger.exception("Session listener %r failed", listener)


__all__ = ["AuthSession"]

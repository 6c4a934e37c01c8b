"""
Durable session handling.

SessionStore persists exactly one User record under a fixed storage key.
SessionManager is the single owned service through which login/logout mutate
that record; everything else only reads `user`.
"""
from __future__ import annotations

import logging

from homeassistant.exceptions import HomeAssistantError

from .api.auth import AuthResolver
from .models import MalformedStoredSession, User

_LOGGER = logging.getLogger(__name__)

__all__ = ["MalformedStoredSession", "SessionManager", "SessionStore"]


class SessionStore:
    """
    load/save/clear over a Home Assistant Store (or anything with the same
    async_load/async_save/async_remove interface).
    """

    def __init__(self, store) -> None:
        self._store = store

    async def async_load(self) -> User | None:
        """Return the stored user, or None when absent or unreadable."""
        try:
            raw = await self._store.async_load()
        except HomeAssistantError as e:
            _LOGGER.warning("Stored session could not be read, treating as logged out: %s", e)
            return None
        if raw is None:
            return None
        try:
            return User.from_dict(raw)
        except MalformedStoredSession as e:
            _LOGGER.warning("Stored session is malformed, treating as logged out: %s", e)
            return None

    async def async_save(self, user: User) -> None:
        await self._store.async_save(user.as_dict())

    async def async_clear(self) -> None:
        await self._store.async_remove()


class SessionManager:
    """Owns the process-wide session: init on startup, mutate via login/logout."""

    def __init__(self, store: SessionStore) -> None:
        self._store = store
        self._user: User | None = None
        self._initialized = False

    @property
    def user(self) -> User | None:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    async def async_init(self) -> User | None:
        """Load the stored session once; later calls return the cached user."""
        if not self._initialized:
            self._user = await self._store.async_load()
            self._initialized = True
            if self._user is not None:
                _LOGGER.debug("Restored session for %s (%s)", self._user.name, self._user.role)
        return self._user

    async def async_login(self, resolver: AuthResolver, identifier: str, secret: str) -> User:
        """Resolve credentials and replace any existing session with the result."""
        user = await resolver.login(identifier, secret)
        await self._store.async_save(user)
        self._user = user
        self._initialized = True
        return user

    async def async_logout(self) -> None:
        await self._store.async_clear()
        self._user = None
        self._initialized = True

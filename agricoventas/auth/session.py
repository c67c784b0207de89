"""
Authentication session signal.

The cart only needs to know whether a session is active and to be told
when that changes (logout in this client, or in another client sharing
the same storage). TokenSession derives both from an auth token kept in
Storage, the way the web client kept it in localStorage.
"""
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from agricoventas import config
from agricoventas.errors import StorageError
from agricoventas.logging import get_logger
from agricoventas.storage import Storage, StorageEvent

logger = get_logger(__name__)

SessionListener = Callable[[bool], None]


class AuthSession(ABC):
    """Source of the "is a session active" signal."""

    @abstractmethod
    def is_active(self) -> bool:
        """Return True while a user session is active."""

    @abstractmethod
    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """
        Register a listener called with the new state on every transition.

        Returns:
            A callable that removes the listener again
        """


class TokenSession(AuthSession):
    """Session that is active while a non-blank token is stored under token_key."""

    def __init__(self, storage: Storage, token_key: str = config.AUTH_TOKEN_KEY):
        self.storage = storage
        self.token_key = token_key
        self._listeners: List[SessionListener] = []
        self._active = self.is_active()
        self._unsubscribe_storage = storage.subscribe(self._on_storage_change)

    @property
    def token(self) -> Optional[str]:
        """Stored token, stripped, or None when absent or blank."""
        try:
            raw = self.storage.get(self.token_key)
        except StorageError as e:
            logger.error(f"Failed to read auth token, treating session as inactive: {e}")
            return None
        if raw is None:
            return None
        token = raw.strip()
        return token or None

    def is_active(self) -> bool:
        return self.token is not None

    def login(self, token: str) -> None:
        """Store a session token."""
        if not token or not token.strip():
            raise ValueError("token must be a non-empty string")
        self.storage.set(self.token_key, token.strip())

    def logout(self) -> None:
        """Remove the session token."""
        self.storage.remove(self.token_key)

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        """Stop watching storage."""
        self._unsubscribe_storage()
        self._listeners.clear()

    def _on_storage_change(self, event: StorageEvent) -> None:
        if event.key != self.token_key:
            return
        active = self.is_active()
        if active == self._active:
            return
        self._active = active
        logger.info(f"Auth session {'started' if active else 'ended'}")
        for listener in list(self._listeners):
            listener(active)

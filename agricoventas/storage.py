"""
Key-value storage backends.

The cart and the auth session persist through a small synchronous
key-value interface modelled on browser localStorage:

- MemoryStorage: in-process dict; every change is broadcast to subscribers,
  so several stores sharing one instance behave like tabs sharing a profile
- JsonFileStorage: a JSON object on disk for desktop/CLI clients
- RedisStorage: Upstash Redis under a namespace prefix (no change events)
"""
import json
import os
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from agricoventas.errors import ERROR_STORAGE_UNAVAILABLE, StorageError
from agricoventas.logging import get_logger, sanitize_string_for_logging

logger = get_logger(__name__)


@dataclass(frozen=True)
class StorageEvent:
    """A change to one key. new_value is None when the key was removed."""
    key: str
    old_value: Optional[str]
    new_value: Optional[str]


StorageListener = Callable[[StorageEvent], None]


class Storage(ABC):
    """Synchronous string key-value store with change notifications."""

    def __init__(self):
        self._listeners: List[StorageListener] = []

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value or None."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store value under key."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete key if present."""

    def subscribe(self, listener: StorageListener) -> Callable[[], None]:
        """
        Register a change listener.

        Returns:
            A callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, key: str, old_value: Optional[str], new_value: Optional[str]) -> None:
        if old_value == new_value:
            return
        event = StorageEvent(key=key, old_value=old_value, new_value=new_value)
        # Copy: listeners may unsubscribe while being notified
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(f"Storage listener failed for key {sanitize_string_for_logging(key)}")


class MemoryStorage(Storage):
    """Dict-backed storage."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        super().__init__()
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        old_value = self._data.get(key)
        self._data[key] = value
        self._notify(key, old_value, value)

    def remove(self, key: str) -> None:
        old_value = self._data.pop(key, None)
        self._notify(key, old_value, None)

    def __len__(self) -> int:
        return len(self._data)


class JsonFileStorage(Storage):
    """
    Storage kept as a single JSON object in a file.

    The file is re-read on every access so that separate processes sharing
    the file see each other's writes (last writer wins). Writes go through a
    temporary file and an atomic rename.
    """

    def __init__(self, path: Union[str, Path]):
        super().__init__()
        self.path = Path(path)

    def _read_all(self) -> Dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            raise StorageError(f"{ERROR_STORAGE_UNAVAILABLE}: {e}") from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Storage file {self.path} is not valid JSON, treating it as empty")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Storage file {self.path} does not hold an object, treating it as empty")
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write_all(self, data: Dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(data, fh, ensure_ascii=False)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise StorageError(f"{ERROR_STORAGE_UNAVAILABLE}: {e}") from e

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        old_value = data.get(key)
        data[key] = value
        self._write_all(data)
        self._notify(key, old_value, value)

    def remove(self, key: str) -> None:
        data = self._read_all()
        if key not in data:
            return
        old_value = data.pop(key)
        self._write_all(data)
        self._notify(key, old_value, None)


class RedisStorage(Storage):
    """
    Storage in Upstash Redis.

    Keys are prefixed with a namespace (e.g. per user or per device) so
    several clients can share one database. Redis does not push change
    events, so subscribers only see writes made through this instance.
    """

    def __init__(self, redis=None, namespace: str = "agricoventas:"):
        super().__init__()
        self._redis = redis  # Lazy initialization
        self.namespace = namespace

    @property
    def redis(self):
        """Get Redis client (lazy initialization)."""
        if self._redis is None:
            from agricoventas.db import get_redis_sync

            try:
                self._redis = get_redis_sync()
            except ValueError as e:
                raise StorageError(f"Redis not available: {e}") from e
        return self._redis

    def _key(self, key: str) -> str:
        return f"{self.namespace}{key}"

    def get(self, key: str) -> Optional[str]:
        try:
            value = self.redis.get(self._key(key))
        except StorageError:
            raise
        except Exception as e:
            logger.error(f"Failed to read {sanitize_string_for_logging(key)} from Redis: {e}")
            raise StorageError(f"{ERROR_STORAGE_UNAVAILABLE}: {e}") from e
        if value is None:
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return str(value)

    def set(self, key: str, value: str) -> None:
        old_value = self.get(key)
        try:
            self.redis.set(self._key(key), value)
        except Exception as e:
            logger.error(f"Failed to write {sanitize_string_for_logging(key)} to Redis: {e}")
            raise StorageError(f"{ERROR_STORAGE_UNAVAILABLE}: {e}") from e
        self._notify(key, old_value, value)

    def remove(self, key: str) -> None:
        old_value = self.get(key)
        try:
            self.redis.delete(self._key(key))
        except Exception as e:
            logger.error(f"Failed to delete {sanitize_string_for_logging(key)} from Redis: {e}")
            raise StorageError(f"{ERROR_STORAGE_UNAVAILABLE}: {e}") from e
        self._notify(key, old_value, None)


__all__ = [
    "JsonFileStorage",
    "MemoryStorage",
    "RedisStorage",
    "Storage",
    "StorageEvent",
    "StorageListener",
]

"""Short-lived key-value storage for link tokens and inbound dedup markers."""

import json
import threading
import time
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Any, Callable, Optional

import redis

from frontdesk.config import settings
from frontdesk.logging_config import get_logger

logger = get_logger("kv_store")


class KeyValueStore(ABC):
    @abstractmethod
    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Store a JSON-serialisable value that expires after ttl_seconds."""

    @abstractmethod
    def add(self, key: str, value: Any, ttl_seconds: int) -> bool:
        """Store only if the key is absent. Returns True when stored."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the value, or None when missing or expired."""

    @abstractmethod
    def delete(self, key: str) -> None:
        pass


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local store with lazy expiry on read and an explicit sweep."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._items: dict[str, tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        with self._lock:
            self._items[key] = (self._clock() + ttl_seconds, value)

    def add(self, key: str, value: Any, ttl_seconds: int) -> bool:
        with self._lock:
            if self._get_live(key) is not None:
                return False
            self._items[key] = (self._clock() + ttl_seconds, value)
            return True

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            item = self._get_live(key)
            return item[1] if item else None

    def delete(self, key: str) -> None:
        with self._lock:
            self._items.pop(key, None)

    def sweep(self) -> int:
        """Drop every expired entry. Returns how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [key for key, (expires_at, _) in self._items.items() if expires_at <= now]
            for key in expired:
                del self._items[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._items)

    def _get_live(self, key: str) -> Optional[tuple[float, Any]]:
        item = self._items.get(key)
        if item is None:
            return None
        if item[0] <= self._clock():
            del self._items[key]
            return None
        return item


class RedisKeyValueStore(KeyValueStore):
    def __init__(self, client: redis.Redis, prefix: str = "frontdesk:"):
        self.client = client
        self.prefix = prefix

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        self.client.set(self.prefix + key, json.dumps(value), ex=ttl_seconds)

    def add(self, key: str, value: Any, ttl_seconds: int) -> bool:
        return bool(self.client.set(self.prefix + key, json.dumps(value), ex=ttl_seconds, nx=True))

    def get(self, key: str) -> Optional[Any]:
        raw = self.client.get(self.prefix + key)
        return json.loads(raw) if raw is not None else None

    def delete(self, key: str) -> None:
        self.client.delete(self.prefix + key)


@lru_cache(maxsize=1)
def get_kv_store() -> KeyValueStore:
    if settings.redis_url:
        logger.info("Using Redis key-value store")
        client = redis.Redis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=1.0,
            socket_timeout=1.0,
        )
        return RedisKeyValueStore(client)
    return InMemoryKeyValueStore()

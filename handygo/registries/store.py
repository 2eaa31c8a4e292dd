"""
Expiring key/value store
========================

Storage abstraction shared by the session and verification-code registries.
Each entry is a value plus an absolute `expires_at`; the registries decide what
expiry means for them, the store only keeps entries consistent under
concurrent access.

The backend is chosen once at startup (`create_store(settings.REGISTRY_BACKEND)`);
call sites only see the `ExpiringStore` interface.
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class Entry:
    value: Any
    expires_at: datetime

    def expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class ExpiringStore(ABC):
    """Interface of the transient registries' backing store."""

    @abstractmethod
    def get(self, key: str) -> Optional[Entry]:
        """Return the entry stored under `key` (expired or not), or None."""

    @abstractmethod
    def set(self, key: str, value: Any, expires_at: datetime) -> None:
        """Store `value` under `key`, replacing any previous entry."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove `key`; returns False when it was absent."""

    @abstractmethod
    def pop(self, key: str) -> Optional[Entry]:
        """Atomically remove and return the entry under `key`."""

    @abstractmethod
    def touch(self, key: str, expires_at: datetime, now: datetime) -> Optional[Entry]:
        """
        Atomically extend a live entry to `expires_at` and return it.

        An entry already expired at `now` is removed and None is returned.
        """

    @abstractmethod
    def sweep(self, now: datetime) -> int:
        """Remove every entry expired at `now`; returns how many were removed."""

    @abstractmethod
    def clear(self) -> None:
        """Drop all entries."""


class InMemoryExpiringStore(ExpiringStore):
    """
    Process-local store: a dict guarded by one `threading.Lock`.

    Request handlers run in FastAPI's threadpool while the session sweeper runs
    on the event loop, so every read-modify-write happens under the lock.
    """

    def __init__(self):
        self._entries: Dict[str, Entry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Entry]:
        with self._lock:
            return self._entries.get(key)

    def set(self, key: str, value: Any, expires_at: datetime) -> None:
        with self._lock:
            self._entries[key] = Entry(value=value, expires_at=expires_at)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def pop(self, key: str) -> Optional[Entry]:
        with self._lock:
            return self._entries.pop(key, None)

    def touch(self, key: str, expires_at: datetime, now: datetime) -> Optional[Entry]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expired(now):
                del self._entries[key]
                return None
            entry.expires_at = expires_at
            return entry

    def sweep(self, now: datetime) -> int:
        with self._lock:
            expired = [key for key, entry in self._entries.items() if entry.expired(now)]
            for key in expired:
                del self._entries[key]
            return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


_BACKENDS = {
    "memory": InMemoryExpiringStore,
}


def create_store(backend: str = "memory") -> ExpiringStore:
    """Build the store configured for this process."""
    try:
        store_cls = _BACKENDS[backend]
    except KeyError:
        raise ValueError(f"Unknown registry backend: {backend!r}") from None
    logger.info("Using %s registry store", backend)
    return store_cls()

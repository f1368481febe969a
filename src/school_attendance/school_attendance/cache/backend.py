from __future__ import annotations

import copy
import fnmatch
import threading
import time
from datetime import timedelta
from typing import Any, Callable, Optional, Protocol


class CacheBackend(Protocol):
    """Key/value store with per-entry TTL.

    Implementations raise ``TransientStoreError`` when the store is
    unavailable; they never decide what a failure means for the caller.
    """

    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def set(self, key: str, value: Any, ttl: timedelta) -> None:
        raise NotImplementedError

    def delete_matching(self, pattern: str) -> int:
        """Delete every key matching the glob ``pattern``; return the count."""

        raise NotImplementedError


class InMemoryCacheBackend(CacheBackend):
    """Process-local backend for single-node deployments and tests.

    Values are deep-copied on the way in and out so callers never share
    mutable state with the cache.
    """

    def __init__(self, *, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return None
            return copy.deepcopy(value)

    def set(self, key: str, value: Any, ttl: timedelta) -> None:
        expires_at = self._clock() + ttl.total_seconds()
        with self._lock:
            self._entries[key] = (expires_at, copy.deepcopy(value))

    def delete_matching(self, pattern: str) -> int:
        with self._lock:
            doomed = [k for k in self._entries if fnmatch.fnmatchcase(k, pattern)]
            for k in doomed:
                del self._entries[k]
            return len(doomed)

    def __len__(self) -> int:
        with self._lock:
            now = self._clock()
            return sum(1 for expires_at, _ in self._entries.values() if expires_at > now)

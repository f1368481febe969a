from __future__ import annotations

import pickle
from datetime import timedelta
from typing import Any, Optional

import redis
from redis.exceptions import RedisError

from ..core.constants import DEFAULT_STORE_TIMEOUT_SECONDS
from ..core.exceptions import TransientStoreError
from .backend import CacheBackend

DEFAULT_KEY_PREFIX = "school-attendance:"
_DELETE_BATCH = 500


class RedisCacheBackend(CacheBackend):
    """Redis-backed cache; values are pickled, eviction uses ``SCAN MATCH``.

    Only this process writes the values it later unpickles.
    """

    def __init__(self, client: "redis.Redis", *, prefix: str = DEFAULT_KEY_PREFIX):
        self._client = client
        self._prefix = prefix

    @classmethod
    def from_url(
        cls,
        url: str,
        *,
        timeout_seconds: float = DEFAULT_STORE_TIMEOUT_SECONDS,
        prefix: str = DEFAULT_KEY_PREFIX,
    ) -> "RedisCacheBackend":
        client = redis.Redis.from_url(
            url,
            socket_timeout=timeout_seconds,
            socket_connect_timeout=timeout_seconds,
        )
        return cls(client, prefix=prefix)

    def get(self, key: str) -> Optional[Any]:
        try:
            raw = self._client.get(self._prefix + key)
        except RedisError as exc:
            raise TransientStoreError(f"Redis GET failed for {key}: {exc}") from exc
        if raw is None:
            return None
        try:
            return pickle.loads(raw)
        except (pickle.UnpicklingError, AttributeError, EOFError, ImportError) as exc:
            raise TransientStoreError(f"Unreadable cache entry {key}: {exc}") from exc

    def set(self, key: str, value: Any, ttl: timedelta) -> None:
        try:
            payload = pickle.dumps(value, protocol=pickle.HIGHEST_PROTOCOL)
        except (pickle.PicklingError, TypeError, AttributeError) as exc:
            raise TransientStoreError(f"Cannot serialize cache entry {key}: {exc}") from exc
        try:
            self._client.set(self._prefix + key, payload, px=max(1, int(ttl.total_seconds() * 1000)))
        except RedisError as exc:
            raise TransientStoreError(f"Redis SET failed for {key}: {exc}") from exc

    def delete_matching(self, pattern: str) -> int:
        deleted = 0
        batch: list[Any] = []
        try:
            for name in self._client.scan_iter(match=self._prefix + pattern, count=_DELETE_BATCH):
                batch.append(name)
                if len(batch) >= _DELETE_BATCH:
                    deleted += int(self._client.delete(*batch))
                    batch.clear()
            if batch:
                deleted += int(self._client.delete(*batch))
        except RedisError as exc:
            raise TransientStoreError(f"Redis eviction failed for {pattern}: {exc}") from exc
        return deleted

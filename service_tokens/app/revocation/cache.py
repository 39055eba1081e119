"""
Cache backends for the revocation store.

A backend only needs ``set``/``has``/``delete``. Backends that can delete
every key under a prefix in one native operation also implement
``delete_prefix``; the store refuses bulk clears on anything else.
"""

import heapq
from typing import Dict, List, Optional, Protocol, Tuple, runtime_checkable

import redis.asyncio as redis

from shared.errors import AccessLayerException
from shared.logging import get_logger
from ..clock import Clock, SystemClock


@runtime_checkable
class CacheBackend(Protocol):
    """TTL key/value cache consumed by :class:`RevocationStore`."""

    async def set(self, key: str, value: str, ttl: int) -> None:
        ...

    async def has(self, key: str) -> bool:
        ...

    async def delete(self, key: str) -> bool:
        ...


@runtime_checkable
class PrefixDeletingCache(CacheBackend, Protocol):
    """Backend with native prefix deletion."""

    async def delete_prefix(self, prefix: str) -> int:
        ...


class MemoryCache:
    """In-process TTL cache driven by a :class:`Clock`.

    Suitable for tests and single-process deployments. A deadline heap is
    drained on every write, so expired entries are dropped whether or not
    they are read again.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or SystemClock()
        self._entries: Dict[str, Tuple[str, float]] = {}
        self._deadlines: List[Tuple[float, str]] = []

    def _now(self) -> float:
        return self.clock.now().timestamp()

    def _purge(self, now: float) -> None:
        while self._deadlines and self._deadlines[0][0] <= now:
            deadline, key = heapq.heappop(self._deadlines)
            entry = self._entries.get(key)
            # A key set again later has a newer deadline further down the heap.
            if entry is not None and entry[1] == deadline:
                del self._entries[key]

    async def set(self, key: str, value: str, ttl: int) -> None:
        now = self._now()
        self._purge(now)
        if ttl <= 0:
            self._entries.pop(key, None)
            return
        deadline = now + ttl
        self._entries[key] = (value, deadline)
        heapq.heappush(self._deadlines, (deadline, key))

    async def get(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, deadline = entry
        if self._now() >= deadline:
            del self._entries[key]
            return None
        return value

    async def has(self, key: str) -> bool:
        return await self.get(key) is not None

    async def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    async def delete_prefix(self, prefix: str) -> int:
        keys = [key for key in self._entries if key.startswith(prefix)]
        for key in keys:
            del self._entries[key]
        return len(keys)

    def __len__(self) -> int:
        self._purge(self._now())
        return len(self._entries)


class RedisCache:
    """Redis backend using ``SETEX``/``EXISTS``/``DEL``.

    Redis has no prefix deletion short of scanning the keyspace, so
    ``delete_prefix`` is not provided here.
    """

    def __init__(self, redis_url: str, socket_timeout: float = 5.0):
        self.redis_url = redis_url
        self.socket_timeout = socket_timeout
        self.logger = get_logger("tokens.cache.redis")
        self.redis: Optional[redis.Redis] = None

    async def start(self):
        """Start the Redis cache."""
        try:
            self.redis = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=self.socket_timeout,
                socket_timeout=self.socket_timeout,
                retry_on_timeout=True,
                health_check_interval=30
            )

            # Test connection
            await self.redis.ping()

            self.logger.info("Redis cache started")

        except Exception as e:
            self.logger.error("Failed to start Redis cache", error=str(e))
            raise AccessLayerException("REDIS_START_FAILED", str(e))

    async def stop(self):
        """Stop the Redis cache."""
        if self.redis:
            await self.redis.close()
            self.redis = None
            self.logger.info("Redis cache stopped")

    def _client(self) -> redis.Redis:
        if self.redis is None:
            raise AccessLayerException("REDIS_NOT_STARTED", "Redis cache has not been started")
        return self.redis

    async def set(self, key: str, value: str, ttl: int) -> None:
        client = self._client()
        if ttl <= 0:
            await client.delete(key)
            return
        await client.setex(key, ttl, value)

    async def has(self, key: str) -> bool:
        return bool(await self._client().exists(key))

    async def delete(self, key: str) -> bool:
        return bool(await self._client().delete(key))

    async def health_check(self) -> bool:
        """Check Redis health."""
        try:
            await self._client().ping()
            return True
        except Exception:
            return False

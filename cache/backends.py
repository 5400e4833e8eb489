"""Key/value backends for the top-track response cache.

Backends store opaque strings with a per-entry TTL and raise
``CacheUnavailableError`` on any failure. Redis is used when configured;
otherwise an in-process TTL cache keeps the service working single-node.
"""

import logging
import time
from typing import Protocol

import redis.asyncio as redis
from cachetools import TLRUCache  # type: ignore[import-untyped]

from core.exceptions import CacheUnavailableError

logger = logging.getLogger(__name__)


class CacheBackend(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str, ttl_seconds: int) -> None: ...

    async def ping(self) -> bool: ...

    async def close(self) -> None: ...


class RedisCacheBackend:
    """Redis backend: ``GET key`` / ``SET key value EX ttl``."""

    def __init__(self, client: redis.Redis):
        self.client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisCacheBackend":
        return cls(redis.Redis.from_url(url, decode_responses=True, socket_connect_timeout=2))

    async def get(self, key: str) -> str | None:
        try:
            return await self.client.get(key)
        except redis.RedisError as e:
            raise CacheUnavailableError(f"Redis GET failed: {e}") from e

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await self.client.set(key, value, ex=ttl_seconds)
        except redis.RedisError as e:
            raise CacheUnavailableError(f"Redis SET failed: {e}") from e

    async def ping(self) -> bool:
        try:
            return bool(await self.client.ping())
        except redis.RedisError as e:
            logger.warning(f"Redis health check failed: {e}")
            return False

    async def close(self) -> None:
        await self.client.aclose()


def _time_to_use(_key: str, entry: tuple[str, int], now: float) -> float:
    return now + entry[1]


class MemoryCacheBackend:
    """In-process backend on a cachetools TLRU cache with per-entry TTL."""

    def __init__(self, maxsize: int = 500, timer=time.monotonic):
        self._cache: TLRUCache = TLRUCache(maxsize=maxsize, ttu=_time_to_use, timer=timer)

    async def get(self, key: str) -> str | None:
        entry = self._cache.get(key)
        return entry[0] if entry is not None else None

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._cache[key] = (value, ttl_seconds)

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)

"""Best-effort cache of assembled top-track responses, keyed by region.

Cache failures never fail a request: a read failure is a miss and a write
failure is logged and dropped.
"""

import logging

from cache.backends import CacheBackend
from cache.codec import decode_response, encode_response
from core.exceptions import CacheUnavailableError
from core.sentry import add_vendor_breadcrumb
from core.telemetry import record_cache_error, record_cache_hit, record_cache_miss
from toptrack.models import AggregatedResponse

logger = logging.getLogger(__name__)


class RegionCache:
    """Reads and writes ``AggregatedResponse`` values through a backend."""

    def __init__(self, backend: CacheBackend, key_prefix: str = ""):
        """Initialize the cache.

        Args:
            backend: Key/value backend (Redis or in-memory)
            key_prefix: Prefix prepended to every region key
        """
        self.backend = backend
        self.key_prefix = key_prefix

    def make_key(self, region: str) -> str:
        return f"{self.key_prefix}{region}"

    async def is_available(self) -> bool:
        """Check if the cache backend is reachable."""
        return await self.backend.ping()

    async def try_get(self, region: str) -> AggregatedResponse | None:
        """Look up a cached response for ``region``.

        Returns:
            The cached response, or None on miss or any read/decode failure
        """
        key = self.make_key(region)
        try:
            value = await self.backend.get(key)
        except CacheUnavailableError as e:
            logger.warning(f"Cache read failed, fetching fresh data: {e}")
            record_cache_error()
            add_vendor_breadcrumb("cache", "cache_error", {"error": str(e)}, level="warning")
            return None

        if value is None:
            logger.info(f"Data not found in cache for '{region}'")
            record_cache_miss()
            return None

        try:
            response = decode_response(value)
        except ValueError as e:
            logger.warning(f"Error decoding cached data for '{region}': {e}")
            record_cache_error()
            return None

        logger.info(f"Data found in cache for '{region}'")
        record_cache_hit()
        return response

    async def store(self, region: str, value: AggregatedResponse, ttl_seconds: int) -> None:
        """Store a response for ``region``. Failures are logged, never raised."""
        key = self.make_key(region)
        try:
            await self.backend.set(key, encode_response(value), ttl_seconds)
        except CacheUnavailableError as e:
            logger.warning(f"Error setting data in cache: {e}")
            record_cache_error()
            add_vendor_breadcrumb("cache", "cache_write_error", {"error": str(e)}, level="warning")
            return

        logger.info(f"Data successfully stored in cache for '{region}' (ttl {ttl_seconds}s)")

    async def close(self) -> None:
        await self.backend.close()

"""FastAPI dependency injection providers."""

import logging

from fastapi import Depends
from posthog import Posthog

from cache.backends import MemoryCacheBackend, RedisCacheBackend
from cache.region_cache import RegionCache
from config.settings import Settings, get_settings
from core.exceptions import ConfigurationError, ServiceInitializationError
from regions.countries import CountryResolver, CountryTable
from toptrack.lyrics import LyricsResolver
from toptrack.orchestrator import TopTrackPipeline
from vendors.client import VendorClient
from vendors.lastfm import LastFmService
from vendors.musixmatch import MusixmatchService

logger = logging.getLogger(__name__)

# Module-level instances for lifecycle management
_country_resolver: CountryResolver | None = None
_vendor_client: VendorClient | None = None
_region_cache: RegionCache | None = None
_posthog_client: Posthog | None = None


def get_country_resolver(settings: Settings = Depends(get_settings)) -> CountryResolver:
    """Get the country resolver, loading the country table on first use.

    Raises:
        ServiceInitializationError: If the country table cannot be loaded
    """
    global _country_resolver

    if _country_resolver is None:
        path = settings.resolved_countries_json_path
        try:
            _country_resolver = CountryResolver(CountryTable.from_file(path))
        except ConfigurationError as e:
            logger.error(f"Failed to load country table: {e}")
            raise ServiceInitializationError(f"Country table initialization failed: {e}") from e

    return _country_resolver


def get_vendor_client(settings: Settings = Depends(get_settings)) -> VendorClient:
    """Get the shared vendor HTTP client."""
    global _vendor_client

    if _vendor_client is None:
        _vendor_client = VendorClient(timeout=settings.vendor_timeout_seconds)
        logger.info(f"Vendor client initialized (timeout: {settings.vendor_timeout_seconds}s)")

    return _vendor_client


async def close_vendor_client() -> None:
    """Close the shared vendor HTTP client."""
    global _vendor_client
    if _vendor_client:
        await _vendor_client.close()
        _vendor_client = None


def get_region_cache(settings: Settings = Depends(get_settings)) -> RegionCache:
    """Get the response cache: Redis when REDIS_URL is set, in-memory otherwise."""
    global _region_cache

    if _region_cache is None:
        if settings.redis_url:
            backend = RedisCacheBackend.from_url(settings.redis_url)
            logger.info("Response cache: redis")
        else:
            backend = MemoryCacheBackend(maxsize=settings.cache_maxsize)  # type: ignore[assignment]
            logger.info(f"Response cache: in-memory (maxsize {settings.cache_maxsize})")
        _region_cache = RegionCache(backend, key_prefix=settings.cache_key_prefix)

    return _region_cache


async def close_region_cache() -> None:
    """Close the response cache backend."""
    global _region_cache
    if _region_cache:
        await _region_cache.close()
        _region_cache = None


def get_pipeline(
    settings: Settings = Depends(get_settings),
    resolver: CountryResolver = Depends(get_country_resolver),
    client: VendorClient = Depends(get_vendor_client),
    cache: RegionCache = Depends(get_region_cache),
) -> TopTrackPipeline | None:
    """Build the top-track pipeline for a request.

    Returns:
        Optional[TopTrackPipeline]: Pipeline if vendor API keys are configured, None otherwise
    """
    if not settings.lastfm_api_key or not settings.musixmatch_api_key:
        logger.debug("LASTFM_API_KEY or MUSIXMATCH_API_KEY not set - top track disabled")
        return None

    lastfm = LastFmService(client, settings.lastfm_api_url, settings.lastfm_api_key)
    musixmatch = MusixmatchService(client, settings.musixmatch_api_url, settings.musixmatch_api_key)

    return TopTrackPipeline(
        resolver=resolver,
        lastfm=lastfm,
        lyrics=LyricsResolver(musixmatch, language=settings.target_language),
        cache=cache,
        cache_ttl_seconds=settings.cache_ttl_seconds,
        suggestion_limit=settings.suggestion_limit,
        timeout_seconds=settings.pipeline_timeout_seconds,
    )


def get_posthog_client(settings: Settings = Depends(get_settings)) -> Posthog | None:
    """Get PostHog client instance.

    Returns:
        Optional[Posthog]: PostHog client if configured and enabled, None otherwise
    """
    global _posthog_client

    if not settings.enable_telemetry:
        logger.debug("Telemetry disabled")
        return None

    if not settings.posthog_api_key:
        logger.debug("POSTHOG_API_KEY not set - telemetry disabled")
        return None

    if _posthog_client is None:
        _posthog_client = Posthog(
            project_api_key=settings.posthog_api_key,
            host=settings.posthog_host,
        )
        logger.info(f"PostHog client initialized (host: {settings.posthog_host})")

    return _posthog_client


def flush_posthog() -> None:
    """Flush any buffered PostHog events."""
    if _posthog_client:
        _posthog_client.flush()


def shutdown_posthog() -> None:
    """Shutdown PostHog client gracefully."""
    global _posthog_client
    if _posthog_client:
        _posthog_client.shutdown()
        _posthog_client = None
        logger.info("PostHog client shutdown")

"""Unit tests for core/dependencies.py."""

import json
from unittest.mock import AsyncMock, Mock, patch

import pytest

import core.dependencies as deps_module
from cache.backends import MemoryCacheBackend, RedisCacheBackend
from core.dependencies import (
    close_region_cache,
    close_vendor_client,
    flush_posthog,
    get_country_resolver,
    get_pipeline,
    get_posthog_client,
    get_region_cache,
    get_vendor_client,
    shutdown_posthog,
)
from core.exceptions import ServiceInitializationError
from toptrack.orchestrator import TopTrackPipeline


@pytest.fixture(autouse=True)
def reset_globals():
    """Reset module-level singleton state between tests."""
    deps_module._country_resolver = None
    deps_module._vendor_client = None
    deps_module._region_cache = None
    deps_module._posthog_client = None
    yield
    deps_module._country_resolver = None
    deps_module._vendor_client = None
    deps_module._region_cache = None
    deps_module._posthog_client = None


# ---------------------------------------------------------------------------
# get_country_resolver
# ---------------------------------------------------------------------------


class TestGetCountryResolver:
    def test_loads_bundled_table(self, mock_settings):
        resolver = get_country_resolver(mock_settings)
        assert resolver.normalize("in") == "India"

    def test_cached_instance(self, mock_settings):
        assert get_country_resolver(mock_settings) is get_country_resolver(mock_settings)

    def test_custom_path(self, mock_settings, tmp_path):
        path = tmp_path / "countries.json"
        path.write_text(json.dumps({"xk": "Kosovo"}))
        mock_settings.countries_json_path = path

        assert get_country_resolver(mock_settings).normalize("XK") == "Kosovo"

    def test_load_error_raises(self, mock_settings, tmp_path):
        mock_settings.countries_json_path = tmp_path / "missing.json"
        with pytest.raises(ServiceInitializationError):
            get_country_resolver(mock_settings)


# ---------------------------------------------------------------------------
# get_vendor_client / close_vendor_client
# ---------------------------------------------------------------------------


class TestVendorClient:
    def test_uses_configured_timeout(self, mock_settings):
        mock_settings.vendor_timeout_seconds = 4.5
        client = get_vendor_client(mock_settings)
        assert client.timeout == 4.5
        assert get_vendor_client(mock_settings) is client

    @pytest.mark.asyncio
    async def test_close(self):
        client = Mock()
        client.close = AsyncMock()
        deps_module._vendor_client = client

        await close_vendor_client()

        client.close.assert_awaited_once()
        assert deps_module._vendor_client is None

    @pytest.mark.asyncio
    async def test_close_noop_when_none(self):
        await close_vendor_client()


# ---------------------------------------------------------------------------
# get_region_cache / close_region_cache
# ---------------------------------------------------------------------------


class TestRegionCache:
    def test_memory_backend_without_redis_url(self, mock_settings):
        cache = get_region_cache(mock_settings)
        assert isinstance(cache.backend, MemoryCacheBackend)
        assert cache.key_prefix == mock_settings.cache_key_prefix

    def test_redis_backend_with_url(self, mock_settings):
        mock_settings.redis_url = "redis://localhost:6379/0"
        with patch("cache.backends.redis.Redis.from_url") as mock_from_url:
            cache = get_region_cache(mock_settings)
        assert isinstance(cache.backend, RedisCacheBackend)
        mock_from_url.assert_called_once()

    def test_cached_instance(self, mock_settings):
        assert get_region_cache(mock_settings) is get_region_cache(mock_settings)

    @pytest.mark.asyncio
    async def test_close(self):
        cache = Mock()
        cache.close = AsyncMock()
        deps_module._region_cache = cache

        await close_region_cache()

        cache.close.assert_awaited_once()
        assert deps_module._region_cache is None


# ---------------------------------------------------------------------------
# get_pipeline
# ---------------------------------------------------------------------------


class TestGetPipeline:
    def test_builds_pipeline(self, mock_settings, country_resolver, mock_region_cache):
        mock_settings.cache_ttl_seconds = 60
        mock_settings.suggestion_limit = 3

        pipeline = get_pipeline(
            mock_settings, country_resolver, get_vendor_client(mock_settings), mock_region_cache
        )

        assert isinstance(pipeline, TopTrackPipeline)
        assert pipeline.cache is mock_region_cache
        assert pipeline.cache_ttl_seconds == 60
        assert pipeline.suggestion_limit == 3
        assert pipeline.lastfm.api_key == "test-lastfm-key"
        assert pipeline.lyrics.musixmatch.api_key == "test-musixmatch-key"

    @pytest.mark.parametrize("key", ["lastfm_api_key", "musixmatch_api_key"])
    def test_missing_key_returns_none(self, mock_settings, country_resolver, key):
        setattr(mock_settings, key, None)
        assert get_pipeline(mock_settings, country_resolver, Mock(), Mock()) is None


# ---------------------------------------------------------------------------
# get_posthog_client
# ---------------------------------------------------------------------------


class TestGetPosthogClient:
    def test_disabled_returns_none(self, mock_settings):
        mock_settings.enable_telemetry = False
        assert get_posthog_client(mock_settings) is None

    def test_no_key_returns_none(self, mock_settings):
        mock_settings.enable_telemetry = True
        mock_settings.posthog_api_key = None
        assert get_posthog_client(mock_settings) is None

    def test_creates_client(self, mock_settings):
        mock_settings.enable_telemetry = True
        mock_settings.posthog_api_key = "phc_test"
        mock_settings.posthog_host = "https://app.posthog.com"

        with patch("core.dependencies.Posthog") as mock_ph_cls:
            mock_client = Mock()
            mock_ph_cls.return_value = mock_client

            result = get_posthog_client(mock_settings)

            mock_ph_cls.assert_called_once_with(
                project_api_key="phc_test",
                host="https://app.posthog.com",
            )
            assert result is mock_client

    def test_cached_client(self, mock_settings):
        mock_client = Mock()
        deps_module._posthog_client = mock_client
        mock_settings.enable_telemetry = True
        mock_settings.posthog_api_key = "phc_test"

        result = get_posthog_client(mock_settings)
        assert result is mock_client


# ---------------------------------------------------------------------------
# flush_posthog / shutdown_posthog
# ---------------------------------------------------------------------------


class TestFlushPosthog:
    def test_flushes(self):
        mock_client = Mock()
        deps_module._posthog_client = mock_client
        flush_posthog()
        mock_client.flush.assert_called_once()

    def test_noop_when_none(self):
        deps_module._posthog_client = None
        flush_posthog()  # should not raise


class TestShutdownPosthog:
    def test_shuts_down(self):
        mock_client = Mock()
        deps_module._posthog_client = mock_client
        shutdown_posthog()
        mock_client.shutdown.assert_called_once()
        assert deps_module._posthog_client is None

    def test_noop_when_none(self):
        deps_module._posthog_client = None
        shutdown_posthog()  # should not raise

"""Unit tests for main.py."""

from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from cache.backends import MemoryCacheBackend
from cache.region_cache import RegionCache


class TestLifespan:
    @pytest.mark.asyncio
    async def test_shutdown_calls_cleanup(self, mock_settings):
        """Lifespan context manager calls shutdown functions on exit."""
        from main import app, lifespan

        with (
            patch("main.shutdown_posthog") as mock_ph_shutdown,
            patch("main.close_vendor_client", new_callable=AsyncMock) as mock_client_close,
            patch("main.close_region_cache", new_callable=AsyncMock) as mock_cache_close,
        ):
            async with lifespan(app):
                pass  # startup

            mock_ph_shutdown.assert_called_once()
            mock_client_close.assert_called_once()
            mock_cache_close.assert_called_once()


class TestMiddleware:
    @pytest.mark.asyncio
    async def test_posthog_flush_middleware(self, mock_settings):
        """PostHog flush middleware flushes after each request."""
        from config.settings import get_settings
        from core.dependencies import get_region_cache
        from main import app

        app.dependency_overrides[get_region_cache] = lambda: RegionCache(MemoryCacheBackend())
        app.dependency_overrides[get_settings] = lambda: mock_settings

        try:
            with patch("main.flush_posthog") as mock_flush:
                async with AsyncClient(
                    transport=ASGITransport(app=app), base_url="http://test"
                ) as client:
                    await client.get("/health")

                mock_flush.assert_called()
        finally:
            app.dependency_overrides.clear()


class TestErrorHandlers:
    @pytest.mark.asyncio
    async def test_dependency_initialization_error_uses_envelope(self, mock_settings, tmp_path):
        """A broken country table surfaces through the envelope, not a bare 500."""
        import core.dependencies as deps_module
        from config.settings import get_settings
        from core.dependencies import get_posthog_client
        from main import app

        mock_settings.countries_json_path = tmp_path / "missing.json"
        deps_module._country_resolver = None
        app.dependency_overrides[get_settings] = lambda: mock_settings
        app.dependency_overrides[get_posthog_client] = lambda: None

        try:
            async with AsyncClient(
                transport=ASGITransport(app=app), base_url="http://test"
            ) as client:
                resp = await client.post(
                    "/api/v1/geomelody/track/top-track", json={"country": "in"}
                )
        finally:
            app.dependency_overrides.clear()
            deps_module._country_resolver = None
            deps_module._vendor_client = None
            deps_module._region_cache = None

        assert resp.status_code == 500
        body = resp.json()
        assert body["code"] == 500
        assert "Country table initialization failed" in body["error"]
        assert resp.headers["cache-control"] == "no-store, max-age=0"


class TestAppRouterRegistration:
    def test_routes_registered(self):
        from main import app

        routes = [r.path for r in app.routes]
        assert "/health" in routes
        assert "/api/v1/geomelody/track/top-track" in routes
        assert "/api/v1/geomelody/healthcheck" in routes
        assert "/admin/reload-countries" in routes

    def test_app_metadata(self):
        from main import app

        assert app.title == "GeoMelody"
        assert app.version is not None

"""Integration test fixtures.

Runs the real app, dependency providers, pipeline, normalizers, vendor
client and in-memory response cache. Only the network is replaced: an
``httpx.MockTransport`` serves canned Last.fm and Musixmatch documents.
"""

import httpx
import pytest
import pytest_asyncio

import core.dependencies as deps_module
from cache.backends import MemoryCacheBackend
from cache.region_cache import RegionCache
from config.settings import Settings
from tests.factories import (
    artist_info_doc,
    similar_tracks_doc,
    top_tracks_doc,
    track_search_doc,
)
from vendors.client import VendorClient
from vendors.ratelimit import reset_rate_limiting

# ---------------------------------------------------------------------------
# Fake vendors
# ---------------------------------------------------------------------------


class FakeVendors:
    """Serves canned documents keyed by Last.fm method / Musixmatch endpoint.

    A value may be a dict (served as JSON 200) or an ``httpx.Response``.
    """

    def __init__(self):
        self.lastfm = {
            "geo.gettoptracks": top_tracks_doc(),
            "artist.getinfo": artist_info_doc(),
            "track.getsimilar": similar_tracks_doc(),
        }
        # Zero candidates: Musixmatch found nothing unambiguous
        self.musixmatch = {
            "track.search": track_search_doc(),
        }
        self.requests: list[httpx.Request] = []

    def calls(self, name: str) -> list[httpx.Request]:
        return [r for r in self.requests if self._operation(r) == name]

    @staticmethod
    def _operation(request: httpx.Request) -> str:
        if request.url.host == "ws.audioscrobbler.com":
            return request.url.params["method"]
        return request.url.path.rsplit("/", 1)[-1]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        operation = self._operation(request)
        docs = self.lastfm if request.url.host == "ws.audioscrobbler.com" else self.musixmatch
        if operation not in docs:
            return httpx.Response(404, json={"message": f"no fixture for {operation}"})

        doc = docs[operation]
        if isinstance(doc, httpx.Response):
            return doc
        return httpx.Response(200, json=doc)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_vendors():
    return FakeVendors()


@pytest.fixture
def memory_cache():
    """Real response cache on the in-memory backend."""
    return RegionCache(MemoryCacheBackend(), key_prefix="geomelody:top-track:")


@pytest.fixture
def test_settings():
    """Settings with fake vendor keys, no Redis, telemetry disabled."""
    return Settings(
        lastfm_api_key="test-lastfm-key",
        musixmatch_api_key="test-musixmatch-key",
        redis_url=None,
        sentry_dsn=None,
        posthog_api_key=None,
        enable_telemetry=False,
    )


@pytest_asyncio.fixture
async def app_client(fake_vendors, memory_cache, test_settings):
    """httpx AsyncClient against the real app with mocked vendor network."""
    from httpx import ASGITransport, AsyncClient

    from config.settings import get_settings
    from core.dependencies import get_posthog_client, get_region_cache, get_vendor_client
    from main import app

    vendor_client = VendorClient(transport=httpx.MockTransport(fake_vendors.handler))
    deps_module._country_resolver = None

    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_vendor_client] = lambda: vendor_client
    app.dependency_overrides[get_region_cache] = lambda: memory_cache
    app.dependency_overrides[get_posthog_client] = lambda: None

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()
    await vendor_client.close()
    deps_module._country_resolver = None
    reset_rate_limiting()

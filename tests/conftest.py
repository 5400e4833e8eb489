"""Shared test fixtures for pytest."""

from unittest.mock import AsyncMock

import pytest

from regions.countries import CountryResolver, CountryTable
from tests.factories import make_response, make_track

TEST_COUNTRIES = {"in": "India", "us": "United States", "gb": "United Kingdom", "jp": "Japan"}


@pytest.fixture
def country_table():
    """A small in-memory country table."""
    return CountryTable(TEST_COUNTRIES)


@pytest.fixture
def country_resolver(country_table):
    """A resolver over the small test table."""
    return CountryResolver(country_table)


@pytest.fixture
def mock_lastfm():
    """Create a mock Last.fm service."""
    service = AsyncMock()
    service.fetch_top_track = AsyncMock()
    service.fetch_artist_info = AsyncMock()
    service.fetch_similar_tracks = AsyncMock()
    return service


@pytest.fixture
def mock_musixmatch():
    """Create a mock Musixmatch service."""
    service = AsyncMock()
    service.search_track = AsyncMock()
    service.fetch_lyrics = AsyncMock()
    return service


@pytest.fixture
def mock_region_cache():
    """Create a mock response cache that always misses."""
    cache = AsyncMock()
    cache.try_get = AsyncMock(return_value=None)
    cache.store = AsyncMock()
    cache.is_available = AsyncMock(return_value=True)
    cache.close = AsyncMock()
    return cache


@pytest.fixture
def sample_track():
    """Create the sample top track (Yellow by Coldplay)."""
    return make_track()


@pytest.fixture
def sample_response():
    """Create a sample assembled response for India."""
    return make_response()

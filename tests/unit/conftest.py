"""Unit test fixtures."""

from contextlib import contextmanager
from unittest.mock import Mock

import pytest

from config.settings import Settings
from vendors.ratelimit import reset_rate_limiting


@contextmanager
def override_deps(app, overrides):
    """Set FastAPI dependency overrides and clear them on exit.

    Args:
        app: The FastAPI application.
        overrides: A dict mapping dependency functions to their replacement values.
    """

    def _make_override(val):
        return lambda: val

    for dep_fn, provider in overrides.items():
        app.dependency_overrides[dep_fn] = _make_override(provider)
    try:
        yield app
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def mock_settings(monkeypatch):
    """Settings with safe test defaults (fake vendor keys, no Redis/DSNs)."""
    monkeypatch.setenv("LASTFM_API_KEY", "test-lastfm-key")
    monkeypatch.setenv("MUSIXMATCH_API_KEY", "test-musixmatch-key")
    monkeypatch.setenv("REDIS_URL", "")
    monkeypatch.setenv("SENTRY_DSN", "")
    monkeypatch.setenv("POSTHOG_API_KEY", "")
    monkeypatch.setenv("ENABLE_TELEMETRY", "false")
    return Settings(
        lastfm_api_key="test-lastfm-key",
        musixmatch_api_key="test-musixmatch-key",
        redis_url=None,
        sentry_dsn=None,
        posthog_api_key=None,
        enable_telemetry=False,
    )


@pytest.fixture
def mock_posthog_client():
    """Mock PostHog client."""
    client = Mock()
    client.capture = Mock()
    client.flush = Mock()
    client.shutdown = Mock()
    return client


@pytest.fixture(autouse=True)
def reset_caches():
    """Clear rate limiting state and ContextVars between tests."""
    from core.telemetry import _cache_stats_var

    # Capture tokens so we can reset after test
    cache_stats_token = _cache_stats_var.set(None)
    yield
    reset_rate_limiting()
    # Restore the ContextVar to its state before the test
    _cache_stats_var.reset(cache_stats_token)

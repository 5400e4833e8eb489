"""Health check router with real dependency connectivity checks."""

import asyncio
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from cache.region_cache import RegionCache
from config.settings import Settings, get_settings
from core.dependencies import get_country_resolver, get_region_cache
from core.exceptions import ServiceInitializationError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

CHECK_TIMEOUT = 3.0
CORE_SERVICES = {"country_table"}


async def _check_country_table(settings: Settings) -> str:
    """Make sure the country table is loaded and non-empty."""
    try:
        resolver = get_country_resolver(settings)
    except ServiceInitializationError:
        return "error"
    return "ok" if len(resolver.table) > 0 else "error"


async def _check_cache(cache: RegionCache | None) -> str:
    """Ping the response cache backend."""
    if cache is None:
        return "unavailable"
    return "ok" if await cache.is_available() else "error"


def _check_vendor_key(api_key: str | None) -> str:
    """Vendors are not pinged to save API quota; report whether they are configured."""
    return "ok" if api_key else "unavailable"


async def _run_check(coro) -> str:
    """Run a single health check with a timeout."""
    try:
        return await asyncio.wait_for(coro, timeout=CHECK_TIMEOUT)
    except TimeoutError:
        return "timeout"


@router.get(
    "/health",
    summary="Health check",
    responses={
        200: {"description": "Service is healthy or degraded"},
        503: {"description": "Service is unhealthy (core dependency down)"},
    },
)
async def health_check(
    settings: Settings = Depends(get_settings),
    cache: RegionCache = Depends(get_region_cache),
):
    """Health check with connectivity probes for the country table and cache."""
    results = await asyncio.gather(
        _run_check(_check_country_table(settings)),
        _run_check(_check_cache(cache)),
    )

    services = {
        "country_table": results[0],
        "cache": results[1],
        "lastfm": _check_vendor_key(settings.lastfm_api_key),
        "musixmatch": _check_vendor_key(settings.musixmatch_api_key),
    }

    core_ok = all(services[s] == "ok" for s in CORE_SERVICES)
    all_configured_ok = all(v in ("ok", "unavailable") for v in services.values())

    if core_ok and all_configured_ok:
        status = "healthy"
    elif core_ok:
        status = "degraded"
    else:
        status = "unhealthy"

    body = {
        "status": status,
        "version": settings.app_version,
        "services": services,
    }

    status_code = 200 if status in ("healthy", "degraded") else 503
    return JSONResponse(content=body, status_code=status_code)

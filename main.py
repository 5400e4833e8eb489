"""Main application entry point for the GeoMelody top-track service."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from config.settings import get_settings
from core.dependencies import close_region_cache, close_vendor_client, flush_posthog, shutdown_posthog
from core.exceptions import GeoMelodyError
from core.logging import setup_logging
from core.sentry import init_sentry
from routers.admin import router as admin_router
from routers.health import router as health_router
from toptrack.router import envelope_response
from toptrack.router import router as top_track_router

load_dotenv()

settings = get_settings()

init_sentry(
    dsn=settings.sentry_dsn,
    environment="production" if settings.log_level != "DEBUG" else "development",
    release=settings.app_version,
)

log_file = None
if settings.log_level != "DEBUG":
    log_dir = Path("/app/logs") if Path("/app/logs").exists() else Path("logs")
    log_file = log_dir / "geomelody.log"
setup_logging(level=settings.log_level, log_file=log_file)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan with proper startup and shutdown."""
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Log level: {settings.log_level}")
    logger.info(f"Response cache: {'redis' if settings.redis_url else 'in-memory'}")
    logger.info(f"Country table: {settings.resolved_countries_json_path}")

    yield

    logger.info("Shutting down application")
    shutdown_posthog()
    await close_vendor_client()
    await close_region_cache()
    logger.info("All services shut down")


app = FastAPI(
    title=settings.app_name,
    description="Top track of a country with artist info, lyrics and similar tracks",
    version=settings.app_version,
    lifespan=lifespan,
)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Report malformed request bodies (e.g. non-boolean use_cache) as 400."""
    errors = "; ".join(
        f"`{'.'.join(str(p) for p in err['loc'] if p != 'body')}` {err['msg']}"
        for err in exc.errors()
    )
    return envelope_response(400, error=errors or "invalid request")


@app.exception_handler(GeoMelodyError)
async def geomelody_error_handler(request: Request, exc: GeoMelodyError):
    """Errors raised while resolving dependencies."""
    logger.error(f"Request failed: {type(exc).__name__}: {exc.message}")
    return envelope_response(exc.status_code, error=exc.message)


@app.middleware("http")
async def posthog_flush_middleware(request: Request, call_next):
    """Flush PostHog events after each request to prevent data loss."""
    response = await call_next(request)
    flush_posthog()
    return response


app.include_router(health_router, prefix="", tags=["health"])
app.include_router(top_track_router, prefix="/api/v1", tags=["top-track"])
app.include_router(admin_router, prefix="/admin", tags=["admin"])

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )

"""Top-track API router."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, PlainTextResponse
from posthog import Posthog

from core.dependencies import get_pipeline, get_posthog_client
from core.exceptions import GeoMelodyError
from core.sentry import capture_exception
from core.telemetry import RequestTelemetry, init_cache_stats
from toptrack.models import AggregatedResponse, RegionQuery, TopTrackEnvelope
from toptrack.orchestrator import TopTrackPipeline

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/geomelody", tags=["top-track"])

NO_STORE_HEADERS = {"Cache-Control": "no-store, max-age=0"}


def envelope_response(
    status_code: int,
    data: AggregatedResponse | None = None,
    error: str | None = None,
) -> JSONResponse:
    """Wrap a result or error in the response envelope."""
    body = TopTrackEnvelope(code=status_code, data=data, error=error)
    return JSONResponse(
        content=body.model_dump(mode="json"),
        status_code=status_code,
        headers=NO_STORE_HEADERS,
    )


@router.get("/healthcheck", response_class=PlainTextResponse, summary="Liveness probe")
async def liveness() -> str:
    return "i am alive"


@router.post(
    "/track/top-track",
    response_model=TopTrackEnvelope,
    summary="Get the top track of a country with artist, lyrics and suggestions",
    description="""
    Retrieves the current top track for a country and enriches it.

    This endpoint:
    1. Resolves the ISO 3166-1 alpha-2 `country` code to a country name
    2. Returns a cached result when `use_cache` is true and one exists
    3. Fetches the top track and artist info from Last.fm
    4. Resolves lyrics and an English track-name translation from Musixmatch
    5. Fetches similar-track suggestions from Last.fm
    6. Caches the assembled result when `use_cache` is true
    """,
    responses={
        200: {"description": "Top track assembled"},
        400: {"description": "Invalid country or use_cache parameter"},
        500: {"description": "Vendor fetch or processing failure"},
        503: {"description": "Vendor API keys not configured"},
    },
)
async def get_regional_top_track(
    query: RegionQuery,
    pipeline: TopTrackPipeline | None = Depends(get_pipeline),
    posthog_client: Posthog | None = Depends(get_posthog_client),
):
    """Process a top-track request."""
    if pipeline is None:
        return envelope_response(
            503, error="Top track service is not configured. Set LASTFM_API_KEY and MUSIXMATCH_API_KEY."
        )

    init_cache_stats()
    telemetry = RequestTelemetry()
    properties = {"country": query.country, "use_cache": query.use_cache}

    try:
        response = await pipeline.execute(query, telemetry)
    except GeoMelodyError as e:
        logger.info(f"Top track request failed ({e.status_code}): {e.message}")
        if posthog_client:
            telemetry.send_to_posthog(
                posthog_client,
                {**properties, "success": False, "error_type": type(e).__name__},
            )
        return envelope_response(e.status_code, error=e.message)
    except Exception as e:
        logger.error(f"Top track request failed: {e}")
        capture_exception(e, properties)
        return envelope_response(500, error="Internal server error")

    if posthog_client:
        telemetry.send_to_posthog(
            posthog_client,
            {
                **properties,
                "success": True,
                "has_lyrics": bool(response.track.lyrics),
                "suggestions_count": len(response.track_suggestions),
            },
        )

    return envelope_response(200, data=response)

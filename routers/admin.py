"""Admin endpoints for service management."""

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi.responses import JSONResponse

from config.settings import Settings, get_settings
from core.dependencies import get_country_resolver
from core.exceptions import ConfigurationError
from regions.countries import CountryResolver

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin"])


def _validate_auth(
    settings: Settings,
    authorization: str | None,
) -> None:
    """Validate bearer token against ADMIN_TOKEN setting."""
    if not settings.admin_token:
        raise HTTPException(status_code=403, detail="Admin endpoint disabled (no ADMIN_TOKEN set)")

    if not authorization:
        raise HTTPException(status_code=401, detail="Missing authorization")

    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or parts[1] != settings.admin_token:
        raise HTTPException(status_code=403, detail="Invalid token")


@router.post(
    "/reload-countries",
    summary="Reload the country table from COUNTRIES_JSON_PATH",
    responses={
        200: {"description": "Reload successful"},
        400: {"description": "Country file missing or malformed; previous table kept"},
        401: {"description": "Missing authorization"},
        403: {"description": "Invalid or missing token"},
    },
)
async def reload_countries(
    settings: Settings = Depends(get_settings),
    authorization: str | None = Header(None),
):
    """Load a fresh country table and swap it in.

    Requests already running keep the table they started with. If the new
    file cannot be loaded the current table stays in place.
    """
    _validate_auth(settings, authorization)

    resolver: CountryResolver = get_country_resolver(settings)
    path = settings.resolved_countries_json_path

    try:
        table = resolver.reload(path)
    except ConfigurationError as e:
        logger.error(f"Country table reload failed: {e}")
        raise HTTPException(status_code=400, detail=e.message) from e

    return JSONResponse(
        content={
            "status": "ok",
            "entries": len(table),
            "source": table.source,
            "timestamp": datetime.now(UTC).isoformat(),
        }
    )

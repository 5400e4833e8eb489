"""Top-track orchestrator: the aggregation pipeline behind the top-track endpoint.

Stages run strictly in order, each feeding the next:
validate -> cache check -> top track -> artist info -> lyrics -> suggestions -> cache store.

The first failing stage aborts the run with a ``GeoMelodyError`` subclass
whose ``status_code`` the router responds with. A cache hit returns the
cached response unchanged; cache failures are absorbed by ``RegionCache``.
"""

import asyncio
import logging

from cache.region_cache import RegionCache
from core.exceptions import GeoMelodyError, TransientFetchError
from core.telemetry import RequestTelemetry
from regions.countries import CountryResolver
from toptrack.lyrics import LyricsResolver
from toptrack.models import AggregatedResponse, RegionQuery
from toptrack.normalizers import normalize_artist_info, normalize_suggestions, normalize_top_track
from vendors.lastfm import LastFmService

logger = logging.getLogger(__name__)


class TopTrackPipeline:
    """Assembles the top track, artist, lyrics and suggestions for a region."""

    def __init__(
        self,
        resolver: CountryResolver,
        lastfm: LastFmService,
        lyrics: LyricsResolver,
        cache: RegionCache | None = None,
        cache_ttl_seconds: int = 3600,
        suggestion_limit: int = 5,
        timeout_seconds: float | None = None,
    ):
        self.resolver = resolver
        self.lastfm = lastfm
        self.lyrics = lyrics
        self.cache = cache
        self.cache_ttl_seconds = cache_ttl_seconds
        self.suggestion_limit = suggestion_limit
        self.timeout_seconds = timeout_seconds

    async def execute(self, query: RegionQuery, telemetry: RequestTelemetry) -> AggregatedResponse:
        """Run the pipeline for one request.

        Steps:
        1. Validate and normalize the country code
        2. Return the cached response if caching was requested and one exists
        3. Fetch the top track, artist info, lyrics and suggestions
        4. Cache the assembled response if caching was requested

        Raises:
            ValidationError: If the country code is empty or unknown (400)
            GeoMelodyError: Any other stage failure (500)
        """
        with telemetry.track_step("validate"):
            country = self.resolver.normalize(query.country)
        query = query.model_copy(update={"country": country})

        use_cache = query.use_cache and self.cache is not None

        if use_cache:
            with telemetry.track_step("cache_check"):
                cached = await self.cache.try_get(country)  # type: ignore[union-attr]
            if cached is not None:
                return cached

        try:
            async with asyncio.timeout(self.timeout_seconds):
                response = await self._assemble(country, telemetry)
        except TimeoutError as e:
            logger.error(f"Top track pipeline for '{country}' exceeded {self.timeout_seconds}s")
            raise TransientFetchError(
                "top track request timed out", details={"country": country}
            ) from e
        except asyncio.CancelledError:
            logger.warning(f"Top track pipeline for '{country}' cancelled")
            raise
        except GeoMelodyError as e:
            logger.error(f"Top track pipeline for '{country}' failed: {type(e).__name__}: {e}")
            raise

        if use_cache:
            with telemetry.track_step("cache_store"):
                await self.cache.store(country, response, self.cache_ttl_seconds)  # type: ignore[union-attr]

        return response

    async def _assemble(self, country: str, telemetry: RequestTelemetry) -> AggregatedResponse:
        """Fetch and normalize every vendor stage. No cache involvement."""
        with telemetry.track_step("top_track"):
            telemetry.record_api_call("lastfm")
            doc = await self.lastfm.fetch_top_track(country)
            track, meta = normalize_top_track(doc)

        with telemetry.track_step("artist_info"):
            telemetry.record_api_call("lastfm")
            doc = await self.lastfm.fetch_artist_info(track.artist_info.name)
            normalize_artist_info(doc, track)

        with telemetry.track_step("lyrics"):
            await self.lyrics.resolve(track, telemetry)

        with telemetry.track_step("suggestions"):
            telemetry.record_api_call("lastfm")
            doc = await self.lastfm.fetch_similar_tracks(
                track.name, track.artist_info.name, limit=self.suggestion_limit
            )
            suggestions = normalize_suggestions(doc)

        return AggregatedResponse(meta=meta, track=track, track_suggestions=suggestions)

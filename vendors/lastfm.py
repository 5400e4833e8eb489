"""Last.fm API service: regional top tracks, artist info and similar tracks."""

from __future__ import annotations

import logging
from typing import Any

from core.exceptions import TransientFetchError
from vendors.client import VendorClient

logger = logging.getLogger(__name__)

VENDOR = "lastfm"


class LastFmService:
    """Fetches raw Last.fm documents. Normalization happens in ``toptrack.normalizers``."""

    def __init__(self, client: VendorClient, api_url: str, api_key: str):
        """Initialize the service.

        Args:
            client: Shared vendor HTTP client
            api_url: Last.fm API root (e.g., "https://ws.audioscrobbler.com/2.0/")
            api_key: Last.fm API key
        """
        self.client = client
        self.api_url = api_url
        self.api_key = api_key

    async def _call(self, name: str, method: str, **params: str) -> dict[str, Any]:
        data = await self.client.get_json(
            VENDOR,
            name,
            self.api_url,
            params={"method": method, "api_key": self.api_key, "format": "json", **params},
        )

        # Last.fm reports some failures as {"error": <code>, "message": ...} with HTTP 200
        if "error" in data and "message" in data:
            logger.error(f"{name} returned Last.fm error {data['error']}: {data['message']}")
            raise TransientFetchError(
                str(data["message"]),
                details={"vendor": VENDOR, "error_code": data["error"]},
            )

        logger.info(f"Fetched {name} data")
        return data

    async def fetch_top_track(self, country: str) -> dict[str, Any]:
        """Fetch the single top track for a country (``geo.gettoptracks``)."""
        return await self._call("GetTopTrackByCountry", "geo.gettoptracks", country=country, limit="1")

    async def fetch_artist_info(self, artist: str) -> dict[str, Any]:
        """Fetch artist metadata (``artist.getinfo``)."""
        return await self._call("GetArtistInfo", "artist.getinfo", artist=artist, limit="1")

    async def fetch_similar_tracks(self, track: str, artist: str, limit: int = 5) -> dict[str, Any]:
        """Fetch tracks similar to ``track`` by ``artist`` (``track.getsimilar``)."""
        return await self._call(
            "GetTrackSuggestions",
            "track.getsimilar",
            artist=artist,
            track=track,
            limit=str(limit),
        )

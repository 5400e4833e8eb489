"""Musixmatch API service: track search and lyrics."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urljoin

from core.coercion import dig
from core.exceptions import TransientFetchError
from vendors.client import VendorClient

logger = logging.getLogger(__name__)

VENDOR = "musixmatch"


class MusixmatchService:
    """Fetches raw Musixmatch documents. Normalization happens in ``toptrack.lyrics``."""

    def __init__(self, client: VendorClient, api_url: str, api_key: str):
        """Initialize the service.

        Args:
            client: Shared vendor HTTP client
            api_url: Musixmatch API root (e.g., "https://api.musixmatch.com/ws/1.1/")
            api_key: Musixmatch API key
        """
        self.client = client
        self.api_url = api_url if api_url.endswith("/") else f"{api_url}/"
        self.api_key = api_key

    async def _call(self, name: str, endpoint: str, **params: str) -> dict[str, Any]:
        data = await self.client.get_json(
            VENDOR,
            name,
            urljoin(self.api_url, endpoint),
            params={"apikey": self.api_key, "page_size": "1", **params},
        )

        # Musixmatch answers HTTP 200 and puts the real status in message.header
        status = dig(data, "message", "header", "status_code")
        if isinstance(status, int) and not 200 <= status < 300:
            logger.error(f"{name} returned Musixmatch status {status}")
            raise TransientFetchError(
                f"{name} failed with vendor status {status}",
                details={"vendor": VENDOR, "status_code": status},
            )

        logger.info(f"Fetched {name} data")
        return data

    async def search_track(self, artist: str, track: str) -> dict[str, Any]:
        """Search for one track by artist and title (``track.search``)."""
        return await self._call("GetTrackID", "track.search", q_track=track, q_artist=artist)

    async def fetch_lyrics(self, track_id: int, commontrack_id: int) -> dict[str, Any]:
        """Fetch lyrics for a resolved track (``track.lyrics.get``)."""
        return await self._call(
            "GetTrackLyrics",
            "track.lyrics.get",
            track_id=str(track_id),
            commontrack_id=str(commontrack_id),
        )

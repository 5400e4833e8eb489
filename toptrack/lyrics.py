"""Lyrics and translated-name resolution via Musixmatch.

Two stages:
1. ``track.search`` resolves Musixmatch ids for the top track and looks for a
   translated track name in the target language.
2. ``track.lyrics.get`` fetches the lyrics, only when stage 1 found a single
   candidate that has lyrics.

Missing lyrics and missing translations are normal outcomes, not errors.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from core.coercion import as_dict, as_list, dig, single_line, to_int, to_str
from core.exceptions import MalformedVendorResponseError
from toptrack.models import LyricsLookupResult, TrackRecord

if TYPE_CHECKING:
    from core.telemetry import RequestTelemetry
    from vendors.musixmatch import MusixmatchService

logger = logging.getLogger(__name__)

TARGET_LANGUAGE = "EN"
NON_COMMERCIAL_NOTICE = "******* This Lyrics is NOT for Commercial use *******"

TRACK_ID_ERROR = "error while processing track ID vendor API data"
LYRICS_ERROR = "error while processing lyrics vendor API data"


def _message_body(doc: dict[str, Any], error: str) -> Any:
    message = as_dict(doc.get("message"))
    if message is None:
        raise MalformedVendorResponseError(error, details={"field": "message"})
    return message.get("body")


def find_translation(
    candidate: dict[str, Any], result: LyricsLookupResult, language: str = TARGET_LANGUAGE
) -> None:
    """Record the first track-name translation in ``language``, if any."""
    for entry in as_list(candidate.get("track_name_translation_list")) or []:
        translation = as_dict(dig(entry, "track_name_translation"))
        if translation is None:
            continue

        if to_str(translation.get("language")) == language:
            result.has_translation = True
            result.track_name = to_str(translation.get("translation"))
            result.artist_name = to_str(candidate.get("artist_name"))
            logger.info(f"Found {language} translation: '{result.track_name}'")
            break


def parse_track_search(
    doc: dict[str, Any], language: str = TARGET_LANGUAGE
) -> LyricsLookupResult:
    """Interpret a ``track.search`` document.

    Only an unambiguous single candidate is used; zero or several candidates
    yield a result with ``has_lyrics=False``.

    Raises:
        MalformedVendorResponseError: If the track list cannot be located
    """
    result = LyricsLookupResult()
    body = _message_body(doc, TRACK_ID_ERROR)

    # Musixmatch sends an empty array instead of an object when nothing matched
    if isinstance(body, list) and not body:
        track_list: list | None = []
    else:
        track_list = as_list(dig(body, "track_list"))
    if track_list is None:
        raise MalformedVendorResponseError(TRACK_ID_ERROR, details={"field": "message.body.track_list"})

    if len(track_list) != 1:
        logger.info(f"Received {len(track_list)} track ID candidates, hence not processed")
        return result

    candidate = as_dict(dig(track_list[0], "track"))
    if candidate is None:
        raise MalformedVendorResponseError(TRACK_ID_ERROR, details={"field": "track_list[0].track"})

    result.has_lyrics = to_int(candidate.get("has_lyrics")) != 0
    if result.has_lyrics:
        result.track_id = to_int(candidate.get("track_id"))
        result.commontrack_id = to_int(candidate.get("commontrack_id"))
        result.artist_id = to_int(candidate.get("artist_id"))
        result.album_id = to_int(candidate.get("album_id"))
        result.album_name = to_str(candidate.get("album_name"))
    else:
        logger.info("Lyrics not present for the track")

    find_translation(candidate, result, language)
    return result


def normalize_lyrics(doc: dict[str, Any], track: TrackRecord) -> None:
    """Fill ``track.lyrics`` from a ``track.lyrics.get`` document.

    Raises:
        MalformedVendorResponseError: If ``message.body.lyrics`` is missing
    """
    body = _message_body(doc, LYRICS_ERROR)
    lyrics = as_dict(dig(body, "lyrics"))
    if lyrics is None:
        raise MalformedVendorResponseError(LYRICS_ERROR, details={"field": "message.body.lyrics"})

    text = to_str(lyrics.get("lyrics_body")).replace(NON_COMMERCIAL_NOTICE, "")
    track.lyrics = single_line(text)
    logger.info("Processed lyrics data")


def apply_translation(lookup: LyricsLookupResult, track: TrackRecord) -> None:
    """Overwrite track and artist names with the translated ones, if found."""
    if lookup.has_translation:
        track.name = lookup.track_name
        track.artist_info.name = lookup.artist_name


class LyricsResolver:
    """Runs both Musixmatch stages for a track and folds the results into it."""

    def __init__(self, musixmatch: MusixmatchService, language: str = TARGET_LANGUAGE):
        self.musixmatch = musixmatch
        self.language = language

    async def resolve(
        self, track: TrackRecord, telemetry: RequestTelemetry | None = None
    ) -> LyricsLookupResult:
        """Resolve lyrics and translation for ``track`` in place.

        Returns:
            The stage 1 lookup result, for logging and tests
        """
        doc = await self.musixmatch.search_track(track.artist_info.name, track.name)
        if telemetry:
            telemetry.record_api_call("musixmatch")
        lookup = parse_track_search(doc, self.language)

        if lookup.has_lyrics:
            doc = await self.musixmatch.fetch_lyrics(lookup.track_id, lookup.commontrack_id)
            if telemetry:
                telemetry.record_api_call("musixmatch")
            normalize_lyrics(doc, track)

        apply_translation(lookup, track)
        return lookup

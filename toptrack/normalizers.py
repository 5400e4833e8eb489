"""Normalizers for Last.fm documents.

Each function takes a decoded vendor document and either fills the domain
model or raises a classified error. Fields the pipeline can live without are
read with zero fallback; only structure needed to continue is enforced.
"""

import logging
from typing import Any

from core.coercion import as_dict, as_list, dig, single_line, to_float, to_int, to_str
from core.exceptions import EmptyVendorResultError, MalformedVendorResponseError
from toptrack.models import (
    ArtistInfo,
    RegionMeta,
    Suggestion,
    SuggestionArtist,
    TrackRecord,
)

logger = logging.getLogger(__name__)

TRACK_ERROR = "error while processing track vendor API data"
EMPTY_TRACK_ERROR = "received empty track data from vendor API. Please check input params"
ARTIST_ERROR = "error while processing artist vendor API data"
SUGGESTIONS_ERROR = "error while processing track suggestions vendor API data"


def _entries(value: Any) -> list | None:
    """Read a Last.fm collection, which collapses to a bare object when it has one item."""
    if isinstance(value, dict):
        return [value]
    return as_list(value)


def normalize_top_track(doc: dict[str, Any]) -> tuple[TrackRecord, RegionMeta]:
    """Extract the top track and confirmed region from a ``geo.gettoptracks`` document.

    The returned track carries the artist name/url needed by the next stages.

    Raises:
        MalformedVendorResponseError: If ``tracks`` is missing or not shaped as a track list
        EmptyVendorResultError: If the track list is empty
    """
    if "tracks" not in doc:
        raise MalformedVendorResponseError(TRACK_ERROR, details={"missing": "tracks"})

    tracks = as_dict(doc["tracks"])
    if tracks is None:
        raise MalformedVendorResponseError(TRACK_ERROR, details={"field": "tracks"})

    meta = RegionMeta(country=to_str(dig(tracks, "@attr", "country")))

    entries = _entries(tracks.get("track"))
    if entries is None:
        raise MalformedVendorResponseError(TRACK_ERROR, details={"field": "tracks.track"})
    if not entries:
        raise EmptyVendorResultError(EMPTY_TRACK_ERROR)

    entry = as_dict(entries[0])
    if entry is None:
        raise MalformedVendorResponseError(TRACK_ERROR, details={"field": "tracks.track[0]"})

    track = TrackRecord(
        rank=to_int(dig(entry, "@attr", "rank")) + 1,
        name=to_str(entry.get("name")),
        duration=to_str(entry.get("duration")),
        listeners=to_int(entry.get("listeners")),
        url=to_str(entry.get("url")),
    )

    artist = as_dict(entry.get("artist"))
    if artist is not None:
        track.artist_info = ArtistInfo(
            name=to_str(artist.get("name")),
            url=to_str(artist.get("url")),
        )
    else:
        logger.info("Top track has no artist data")

    logger.info(f"Processed regional track data: '{track.name}' ({meta.country})")
    return track, meta


def normalize_artist_info(doc: dict[str, Any], track: TrackRecord) -> None:
    """Fill ``track.artist_info`` from an ``artist.getinfo`` document.

    A document with no ``artist`` at all is an empty result and leaves the
    track untouched.

    Raises:
        MalformedVendorResponseError: If ``artist``, ``stats`` or ``bio`` has the wrong shape
    """
    if "artist" not in doc:
        logger.info("Received empty artist data")
        return

    artist = as_dict(doc["artist"])
    if artist is None:
        raise MalformedVendorResponseError(ARTIST_ERROR, details={"field": "artist"})

    stats = as_dict(artist.get("stats"))
    if stats is None:
        raise MalformedVendorResponseError(ARTIST_ERROR, details={"field": "artist.stats"})

    bio = as_dict(artist.get("bio"))
    if bio is None:
        raise MalformedVendorResponseError(ARTIST_ERROR, details={"field": "artist.bio"})

    info = track.artist_info
    info.images = as_list(artist.get("image")) or []
    info.stats.play_count = to_int(stats.get("playcount"))
    info.stats.listeners = to_int(stats.get("listeners"))
    info.summary = single_line(to_str(bio.get("summary")))

    logger.info(f"Processed artist data for '{info.name}'")


def normalize_suggestions(doc: dict[str, Any]) -> list[Suggestion]:
    """Extract similar tracks from a ``track.getsimilar`` document, in vendor order.

    Raises:
        MalformedVendorResponseError: If ``similartracks`` or any entry is not an object
    """
    if "similartracks" not in doc:
        logger.info("Received empty track suggestions data")
        return []

    similar = as_dict(doc["similartracks"])
    if similar is None:
        raise MalformedVendorResponseError(SUGGESTIONS_ERROR, details={"field": "similartracks"})

    entries = _entries(similar.get("track")) or []
    if not entries:
        logger.info("Received empty track suggestions data")
        return []

    suggestions = []
    for index, raw in enumerate(entries):
        entry = as_dict(raw)
        if entry is None:
            raise MalformedVendorResponseError(
                SUGGESTIONS_ERROR, details={"field": f"similartracks.track[{index}]"}
            )

        suggestion = Suggestion(
            name=to_str(entry.get("name")),
            url=to_str(entry.get("url")),
            match=to_float(entry.get("match")),
            duration=int(to_float(entry.get("duration"))),
            play_count=to_int(entry.get("playcount")),
        )

        artist = as_dict(entry.get("artist"))
        if artist is not None:
            suggestion.artist_info = SuggestionArtist(
                name=to_str(artist.get("name")),
                url=to_str(artist.get("url")),
            )

        suggestions.append(suggestion)

    logger.info(f"Processed {len(suggestions)} track suggestions")
    return suggestions

"""Models for the top-track API contract and pipeline."""

from typing import Any

from pydantic import BaseModel, Field, StrictBool


class RegionQuery(BaseModel):
    """Request body for the POST /geomelody/track/top-track endpoint."""

    country: str = ""
    use_cache: StrictBool = False


class RegionMeta(BaseModel):
    """Region as confirmed by the top-track vendor."""

    country: str = ""


class ArtistStats(BaseModel):
    listeners: int = 0
    play_count: int = 0


class ArtistInfo(BaseModel):
    """Artist metadata attached to the top track."""

    name: str = ""
    url: str = ""
    images: list[Any] = []  # Vendor image objects, passed through as-is
    summary: str = ""
    stats: ArtistStats = Field(default_factory=ArtistStats)


class TrackRecord(BaseModel):
    """The region's top track, filled in stage by stage."""

    rank: int = 0
    name: str = ""
    duration: str = ""  # Vendor-native string, unit unspecified
    listeners: int = 0
    url: str = ""
    artist_info: ArtistInfo = Field(default_factory=ArtistInfo)
    lyrics: str = ""


class SuggestionArtist(BaseModel):
    name: str = ""
    url: str = ""


class Suggestion(BaseModel):
    """A similar-track suggestion."""

    name: str = ""
    match: float = 0.0
    duration: int = 0
    play_count: int = 0
    url: str = ""
    artist_info: SuggestionArtist = Field(default_factory=SuggestionArtist)


class LyricsLookupResult(BaseModel):
    """Outcome of the lyrics search stage. Not part of the response."""

    has_lyrics: bool = False
    has_translation: bool = False
    track_id: int = 0
    commontrack_id: int = 0
    artist_id: int = 0
    album_id: int = 0
    album_name: str = ""
    track_name: str = ""
    artist_name: str = ""


class AggregatedResponse(BaseModel):
    """Assembled top-track result. This is what gets cached."""

    meta: RegionMeta = Field(default_factory=RegionMeta)
    track: TrackRecord = Field(default_factory=TrackRecord)
    track_suggestions: list[Suggestion] = []


class TopTrackEnvelope(BaseModel):
    """Response envelope for every top-track endpoint outcome."""

    code: int
    data: AggregatedResponse | None = None
    error: str | None = None

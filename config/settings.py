"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_COUNTRIES_PATH = Path(__file__).parent.parent / "data" / "countries.json"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Vendor API Configuration
    lastfm_api_url: str = Field(
        default="https://ws.audioscrobbler.com/2.0/", description="Last.fm API base URL"
    )
    lastfm_api_key: str | None = Field(None, description="Last.fm API key")
    musixmatch_api_url: str = Field(
        default="https://api.musixmatch.com/ws/1.1/", description="Musixmatch API base URL"
    )
    musixmatch_api_key: str | None = Field(None, description="Musixmatch API key")

    # Region Configuration
    countries_json_path: Path = Field(
        default=DEFAULT_COUNTRIES_PATH,
        description="Path to JSON file mapping ISO 3166-1 alpha-2 codes to country names",
    )

    @property
    def resolved_countries_json_path(self) -> Path:
        """Get the countries file path, handling empty env var case."""
        if not str(self.countries_json_path) or str(self.countries_json_path) == ".":
            return DEFAULT_COUNTRIES_PATH
        return self.countries_json_path

    # Cache Configuration
    redis_url: str | None = Field(
        None, description="Redis connection URL. In-memory cache is used when unset"
    )
    cache_ttl_seconds: int = Field(
        default=3600, description="TTL in seconds for cached top-track responses (default: 1 hour)"
    )
    cache_key_prefix: str = Field(
        default="geomelody:top-track:", description="Key prefix for cached responses"
    )
    cache_maxsize: int = Field(
        default=500, description="Maximum entries in the in-memory response cache"
    )

    # Vendor Request Configuration
    vendor_timeout_seconds: float = Field(
        default=10.0, description="Timeout for a single vendor API request"
    )
    pipeline_timeout_seconds: float = Field(
        default=30.0, description="Deadline for the whole top-track pipeline"
    )
    vendor_rate_limit: int = Field(
        default=300, description="Max vendor API requests per minute across all vendors"
    )
    vendor_max_concurrent: int = Field(
        default=10, description="Max concurrent vendor API requests"
    )
    suggestion_limit: int = Field(default=5, description="Number of similar tracks to request")
    target_language: str = Field(
        default="EN", description="Language tag of the track name translation to display"
    )

    # Admin Configuration
    admin_token: str | None = Field(None, description="Bearer token for admin endpoints")

    # Application Configuration
    host: str = Field(default="0.0.0.0", description="Host to bind the server to")
    port: int = Field(default=8000, description="Port to run the server on")
    log_level: str = Field(default="INFO", description="Logging level")

    # Feature Flags
    enable_telemetry: bool = Field(default=True, description="Enable PostHog telemetry")

    # PostHog Configuration
    posthog_api_key: str | None = Field(None, description="PostHog API key for telemetry")
    posthog_host: str = Field(default="https://us.i.posthog.com", description="PostHog host URL")

    # Sentry Configuration
    sentry_dsn: str | None = Field(None, description="Sentry DSN for error tracking")

    # Application Metadata
    app_name: str = Field(default="GeoMelody", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

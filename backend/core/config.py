from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


class ConfigurationError(RuntimeError):
    """Raised when a required setting (e.g. the Places API key) is missing."""


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Places
    places_provider: str = "google"
    google_places_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("google_places_api_key", "google_api_key"),
    )

    # Search area
    search_latitude: float = 42.3601
    search_longitude: float = -71.0589
    search_radius_m: int = 8000
    search_city: str = "Boston, MA"

    # Serving
    restaurant_source: str = "live"
    cache_path: str = "/tmp/restaurants-cache.json"
    snapshot_path: str = "data/restaurants.json"

    # Pipeline
    detail_batch_size: int = 10
    batch_delay_seconds: float = 0.1
    fetch_deadline_seconds: float | None = None
    embed_photo_key: bool = True

    # HTTP
    http_timeout_seconds: float = 10.0
    http_max_retries: int = 2
    http_retry_backoff_seconds: float = 0.5

    # Scheduler
    scheduled_refresh: bool = False
    refresh_interval_hours: float = 12.0

    # Sentry
    sentry_dsn: str = ""

    # App
    environment: str = "development"
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "populate_by_name": True}

    def require_places_api_key(self) -> str:
        if not self.google_places_api_key:
            raise ConfigurationError("Google Places API key not configured on the server")
        return self.google_places_api_key


settings = Settings()

from core.config import settings
from providers.places.interface import PlacesProvider


def get_places_provider() -> PlacesProvider:
    match settings.places_provider:
        case "google":
            from providers.places.google_adapter import GooglePlacesAdapter

            return GooglePlacesAdapter(
                api_key=settings.require_places_api_key(),
                timeout=settings.http_timeout_seconds,
                max_retries=settings.http_max_retries,
                retry_backoff=settings.http_retry_backoff_seconds,
            )
        case _:
            raise ValueError(f"Unknown places provider: {settings.places_provider}")

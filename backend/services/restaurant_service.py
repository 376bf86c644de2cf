import structlog

from core.config import settings
from models.types import RestaurantSnapshot, SearchLocation
from providers.places.interface import PlacesProvider
from services.restaurant_cache import RestaurantCache
from services.restaurant_fetcher import RestaurantFetcher

logger = structlog.get_logger()


class RefreshFailedError(RuntimeError):
    """Every keyword search failed; the result must not replace cached data."""


def search_location_from_settings() -> SearchLocation:
    return SearchLocation(
        latitude=settings.search_latitude,
        longitude=settings.search_longitude,
        radius=settings.search_radius_m,
        city=settings.search_city,
    )


def build_fetcher(provider: PlacesProvider) -> RestaurantFetcher:
    return RestaurantFetcher(
        provider=provider,
        location=search_location_from_settings(),
        batch_size=settings.detail_batch_size,
        batch_delay=settings.batch_delay_seconds,
        sign_photos=settings.embed_photo_key,
    )


async def refresh_cache(provider: PlacesProvider, cache: RestaurantCache) -> RestaurantSnapshot:
    """Run the fetch pipeline and write the result through the cache.

    Raises RefreshFailedError, leaving the cache untouched, when no keyword
    search succeeded.
    """
    logger.info("Fetching fresh data from Google Places API")
    result = await build_fetcher(provider).fetch(settings.fetch_deadline_seconds)
    if result.keywords_searched > 0 and result.failed_searches == result.keywords_searched:
        logger.error("All keyword searches failed", keywords=result.keywords_searched)
        raise RefreshFailedError(
            f"All {result.keywords_searched} keyword searches failed; keeping cached data"
        )

    snapshot = RestaurantSnapshot(restaurants=result.restaurants)
    cache.put(snapshot)
    return snapshot

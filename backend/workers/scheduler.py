from datetime import UTC, datetime

import sentry_sdk
import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from core.config import ConfigurationError, settings
from providers.places import get_places_provider
from services.restaurant_cache import RestaurantCache
from services.restaurant_service import refresh_cache

logger = structlog.get_logger()


async def refresh_restaurant_cache() -> None:
    """Re-run the fetch pipeline and rewrite the cache so requests stay warm."""
    try:
        provider = get_places_provider()
    except ConfigurationError as e:
        logger.warning("Skipping scheduled refresh", error=str(e))
        return

    try:
        snapshot = await refresh_cache(provider, RestaurantCache(settings.cache_path))
        logger.info("Scheduled refresh complete", count=len(snapshot.restaurants))
    except Exception as e:
        logger.error("Scheduled refresh failed", error=str(e))
        sentry_sdk.capture_exception(e)
    finally:
        await provider.close()


def create_scheduler() -> AsyncIOScheduler:
    """Create and configure the APScheduler instance."""
    scheduler = AsyncIOScheduler(timezone="America/New_York")

    # First run right away so a cold cache is filled at startup
    scheduler.add_job(
        refresh_restaurant_cache,
        "interval",
        hours=settings.refresh_interval_hours,
        id="refresh_restaurant_cache",
        next_run_time=datetime.now(UTC),
        max_instances=1,
        coalesce=True,
    )

    return scheduler

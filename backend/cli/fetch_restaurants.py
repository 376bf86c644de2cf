"""
Offline snapshot builder.
Runs the keyword search / dedup / detail pipeline once against Google Places
and writes the result, with fetch and cost metadata, to the snapshot file
served when RESTAURANT_SOURCE=snapshot.

Usage:
    python -m cli.fetch_restaurants
"""

import asyncio
import sys

import structlog

from core.config import ConfigurationError, settings
from models.types import RestaurantSnapshot
from providers.places import get_places_provider
from services.restaurant_service import build_fetcher, search_location_from_settings
from services.snapshot_store import SnapshotStore, build_snapshot

logger = structlog.get_logger()


async def fetch_and_save() -> RestaurantSnapshot:
    provider = get_places_provider()
    location = search_location_from_settings()
    logger.info(
        "Fetching Latino restaurants",
        city=location.city,
        latitude=location.latitude,
        longitude=location.longitude,
        radius_m=location.radius,
    )
    try:
        result = await build_fetcher(provider).fetch(settings.fetch_deadline_seconds)
    finally:
        await provider.close()

    snapshot = build_snapshot(result, location)
    SnapshotStore(settings.snapshot_path).write(snapshot)

    if snapshot.metadata and snapshot.metadata.estimated_cost:
        cost = snapshot.metadata.estimated_cost
        logger.info(
            "Cost breakdown",
            nearby_searches=result.keywords_searched,
            search_cost=cost.search_cost,
            place_details=result.successful_fetches,
            details_cost=cost.details_cost,
            total_cost=cost.total_cost,
        )
    logger.info("Snapshot ready", count=snapshot.count, path=settings.snapshot_path)
    return snapshot


def main() -> int:
    try:
        asyncio.run(fetch_and_save())
    except ConfigurationError as e:
        logger.error("Cannot fetch restaurants", error=str(e), hint="Set GOOGLE_PLACES_API_KEY in .env")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

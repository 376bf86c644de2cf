"""
Appends the API key to photo URLs in the snapshot so clients can load the
images directly. Idempotent; safe to run after every fetch.

Usage:
    python -m cli.update_photos
"""

import sys

import structlog

from core.config import ConfigurationError, settings
from services.snapshot_store import SnapshotStore

logger = structlog.get_logger()


def main() -> int:
    try:
        api_key = settings.require_places_api_key()
    except ConfigurationError as e:
        logger.error("Cannot update photo URLs", error=str(e))
        return 1

    summary = SnapshotStore(settings.snapshot_path).finalize_photo_urls(api_key)
    if summary is None:
        logger.error(
            "No snapshot to update",
            path=settings.snapshot_path,
            hint="Run `python -m cli.fetch_restaurants` first",
        )
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

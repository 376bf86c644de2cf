import json
from datetime import UTC, datetime
from pathlib import Path
from urllib.parse import parse_qs, urlsplit

import structlog

from models.types import (
    FetchCost,
    FetchMetadata,
    FetchResult,
    PhotoUpdateSummary,
    RestaurantSnapshot,
    SearchLocation,
)
from services.restaurant_cache import write_json_atomic

logger = structlog.get_logger()

# Published per-request prices (USD)
NEARBY_SEARCH_COST = 0.032
PLACE_DETAILS_COST = 0.017


def estimate_cost(searches: int, details: int) -> FetchCost:
    search_cost = round(searches * NEARBY_SEARCH_COST, 4)
    details_cost = round(details * PLACE_DETAILS_COST, 4)
    return FetchCost(
        search_cost=search_cost,
        details_cost=details_cost,
        total_cost=round(search_cost + details_cost, 4),
    )


def build_snapshot(
    result: FetchResult,
    location: SearchLocation,
    now: datetime | None = None,
) -> RestaurantSnapshot:
    """Wrap a fetch result with the offline-build metadata."""
    stamp = (now or datetime.now(UTC)).isoformat()
    return RestaurantSnapshot(
        restaurants=result.restaurants,
        last_updated=stamp,
        count=len(result.restaurants),
        location=location,
        metadata=FetchMetadata(
            fetch_date=stamp,
            keywords_searched=result.keywords_searched,
            total_search_results=result.total_search_results,
            unique_restaurants=result.unique_restaurants,
            successful_fetches=result.successful_fetches,
            failed_fetches=result.failed_fetches,
            failed_searches=result.failed_searches,
            deadline_exceeded=result.deadline_exceeded,
            estimated_cost=estimate_cost(result.keywords_searched, result.successful_fetches),
        ),
    )


def _has_key(url: str) -> bool:
    return "key" in parse_qs(urlsplit(url).query, keep_blank_values=True)


class SnapshotStore:
    """Durable JSON file holding the latest offline-built snapshot."""

    def __init__(self, path: str | Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def write(self, snapshot: RestaurantSnapshot) -> None:
        write_json_atomic(self._path, snapshot.to_json_dict(), indent=2)
        logger.info(
            "Saved snapshot",
            path=str(self._path),
            count=len(snapshot.restaurants),
            size_kb=round(self._path.stat().st_size / 1024, 2),
        )

    def read(self) -> RestaurantSnapshot | None:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.warning("Snapshot file not found", path=str(self._path))
            return None
        except OSError as e:
            logger.error("Failed to read snapshot", path=str(self._path), error=str(e))
            return None

        try:
            return RestaurantSnapshot.model_validate(json.loads(raw))
        except ValueError as e:
            logger.error("Snapshot file is not valid", path=str(self._path), error=str(e))
            return None

    def finalize_photo_urls(self, api_key: str) -> PhotoUpdateSummary | None:
        """Append the API key to every photo URL that lacks one.

        Safe to re-run: URLs that already carry a key are left as they are, and
        the file is only rewritten when something changed. Returns None when
        there is no snapshot to update.
        """
        snapshot = self.read()
        if snapshot is None:
            return None

        updated = 0
        already_signed = 0
        for restaurant in snapshot.restaurants:
            if not restaurant.photo:
                continue
            if _has_key(restaurant.photo):
                already_signed += 1
                continue
            separator = "&" if "?" in restaurant.photo else "?"
            restaurant.photo = f"{restaurant.photo}{separator}key={api_key}"
            updated += 1

        summary = PhotoUpdateSummary(
            updated=updated,
            already_signed=already_signed,
            without_photo=len(snapshot.restaurants) - updated - already_signed,
        )
        if updated:
            self.write(snapshot)
        logger.info("Photo URLs finalized", **summary.model_dump())
        return summary


class SnapshotRepository:
    """Snapshot loaded once at startup and shared by the request handlers."""

    def __init__(self, snapshot: RestaurantSnapshot | None):
        self._snapshot = snapshot

    @classmethod
    def load(cls, store: SnapshotStore) -> "SnapshotRepository":
        snapshot = store.read()
        if snapshot is not None:
            logger.info(
                "Loaded restaurant snapshot",
                count=len(snapshot.restaurants),
                last_updated=snapshot.last_updated,
            )
        return cls(snapshot)

    @property
    def snapshot(self) -> RestaurantSnapshot | None:
        return self._snapshot

    @property
    def restaurant_count(self) -> int:
        return len(self._snapshot.restaurants) if self._snapshot else 0

    @property
    def last_updated(self) -> str | None:
        return self._snapshot.last_updated if self._snapshot else None

    def has_data(self) -> bool:
        return self.restaurant_count > 0

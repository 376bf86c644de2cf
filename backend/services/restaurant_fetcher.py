import asyncio
from collections.abc import Awaitable, Sequence
from typing import Any

import structlog

from models.types import (
    FetchResult,
    OpeningHours,
    PlaceSummary,
    RestaurantRecord,
    SearchLocation,
)
from providers.places.interface import PlacesProvider

logger = structlog.get_logger()

DEFAULT_KEYWORDS: tuple[str, ...] = (
    "mexican restaurant",
    "colombian restaurant",
    "puerto rican restaurant",
    "dominican restaurant",
    "peruvian restaurant",
    "cuban restaurant",
    "venezuelan restaurant",
    "salvadoran restaurant",
    "brazilian restaurant",
    "argentinian restaurant",
    "latin american restaurant",
    "latino restaurant",
    "spanish restaurant",
)


async def _gather_until(
    aws: Sequence[Awaitable[Any]], timeout: float | None
) -> tuple[list[Any], bool]:
    """Run awaitables concurrently, giving up on whatever is unfinished at `timeout`.

    Returns one outcome per awaitable, in input order: its result, the exception
    it raised, or a TimeoutError for work cancelled at the deadline. The flag is
    True when anything was cancelled.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    if not tasks:
        return [], False

    done, pending = await asyncio.wait(tasks, timeout=timeout)
    for task in pending:
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)

    outcomes: list[Any] = []
    for task in tasks:
        if task in pending:
            outcomes.append(TimeoutError("deadline reached"))
        elif task.exception() is not None:
            outcomes.append(task.exception())
        else:
            outcomes.append(task.result())
    return outcomes, bool(pending)


class RestaurantFetcher:
    """Keyword fan-out search, place_id dedup and batched detail enrichment.

    Phase 1 searches every keyword concurrently; a failed search counts as zero
    results. Each place_id is tagged with the first keyword (in configured
    order) that found it. Phase 2 fetches details `batch_size` at a time with a
    fixed pause between batches; a failed detail fetch drops that place.
    """

    def __init__(
        self,
        provider: PlacesProvider,
        location: SearchLocation,
        keywords: Sequence[str] = DEFAULT_KEYWORDS,
        batch_size: int = 10,
        batch_delay: float = 0.1,
        sign_photos: bool = True,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._provider = provider
        self._location = location
        self._keywords = list(keywords)
        self._batch_size = batch_size
        self._batch_delay = batch_delay
        self._sign_photos = sign_photos

    async def fetch(self, deadline_seconds: float | None = None) -> FetchResult:
        """Run both phases. With a deadline, stop starting new work once it passes
        and return what has been collected so far."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + deadline_seconds if deadline_seconds is not None else None

        logger.info(
            "Searching restaurants",
            keywords=len(self._keywords),
            latitude=self._location.latitude,
            longitude=self._location.longitude,
            radius=self._location.radius,
        )
        discovered, total_found, failed_searches, timed_out = await self._search_all(deadline)
        place_ids = list(discovered)
        logger.info(
            "Filtered unique restaurants",
            total=total_found,
            unique=len(place_ids),
            duplicates=total_found - len(place_ids),
        )

        records: dict[str, RestaurantRecord] = {}
        failed = 0
        batches = [
            place_ids[i : i + self._batch_size]
            for i in range(0, len(place_ids), self._batch_size)
        ]
        for index, batch in enumerate(batches):
            remaining = self._remaining(deadline)
            if remaining is not None and remaining <= 0:
                timed_out = True
                logger.warning(
                    "Fetch deadline reached",
                    completed_batches=index,
                    total_batches=len(batches),
                )
                break

            outcomes, cut_short = await _gather_until(
                [self._fetch_record(pid, discovered[pid]) for pid in batch], remaining
            )
            timed_out = timed_out or cut_short
            for place_id, outcome in zip(batch, outcomes, strict=True):
                if isinstance(outcome, RestaurantRecord):
                    records[place_id] = outcome
                    continue
                failed += 1
                if isinstance(outcome, BaseException):
                    logger.warning(
                        "Error fetching details",
                        place_id=place_id,
                        error=str(outcome) or type(outcome).__name__,
                    )

            logger.info(
                "Detail batch complete",
                batch=index + 1,
                total_batches=len(batches),
                ok=len(records),
                errors=failed,
            )

            if index + 1 < len(batches) and self._batch_delay > 0:
                remaining = self._remaining(deadline)
                delay = self._batch_delay if remaining is None else min(self._batch_delay, remaining)
                if delay > 0:
                    await asyncio.sleep(delay)

        restaurants = list(records.values())
        logger.info("Fetched restaurants", count=len(restaurants), deadline_exceeded=timed_out)
        return FetchResult(
            restaurants=restaurants,
            keywords_searched=len(self._keywords),
            failed_searches=failed_searches,
            total_search_results=total_found,
            unique_restaurants=len(place_ids),
            successful_fetches=len(restaurants),
            failed_fetches=failed,
            deadline_exceeded=timed_out,
        )

    async def _search_all(
        self, deadline: float | None
    ) -> tuple[dict[str, str], int, int, bool]:
        outcomes, timed_out = await _gather_until(
            [self._provider.search(keyword, self._location) for keyword in self._keywords],
            self._remaining(deadline),
        )

        discovered: dict[str, str] = {}
        total_found = 0
        failed = 0
        for keyword, outcome in zip(self._keywords, outcomes, strict=True):
            if isinstance(outcome, BaseException):
                failed += 1
                logger.warning(
                    "Keyword search failed",
                    keyword=keyword,
                    error=str(outcome) or type(outcome).__name__,
                )
                continue

            places: list[PlaceSummary] = outcome
            logger.info("Keyword searched", keyword=keyword, results=len(places))
            for place in places:
                total_found += 1
                discovered.setdefault(place.place_id, keyword)

        return discovered, total_found, failed, timed_out

    async def _fetch_record(self, place_id: str, keyword: str) -> RestaurantRecord | None:
        details = await self._provider.details(place_id)
        if details is None:
            return None

        photo = None
        if details.photo_reference:
            photo = self._provider.photo_url(details.photo_reference, signed=self._sign_photos)

        return RestaurantRecord(
            place_id=place_id,
            name=details.name,
            address=details.formatted_address,
            rating=details.rating,
            user_ratings_total=details.user_ratings_total,
            price_level=details.price_level,
            types=details.types,
            geometry=details.geometry,
            opening_hours=OpeningHours(open_now=details.open_now)
            if details.has_opening_hours
            else None,
            weekday_text=details.weekday_text,
            photo=photo,
            website=details.website,
            search_keyword=keyword,
        )

    def _remaining(self, deadline: float | None) -> float | None:
        if deadline is None:
            return None
        return max(deadline - asyncio.get_running_loop().time(), 0.0)

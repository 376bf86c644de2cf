from unittest.mock import AsyncMock, patch

from core.config import ConfigurationError
from models.types import RestaurantSnapshot
from providers.places.interface import PlacesRequestError
from services.restaurant_cache import RestaurantCache
from services.restaurant_service import RefreshFailedError
from tests.factories import make_restaurant, make_snapshot
from workers.scheduler import create_scheduler, refresh_restaurant_cache


class TestScheduler:
    def test_scheduler_creates_refresh_job(self):
        scheduler = create_scheduler()
        job_ids = [job.id for job in scheduler.get_jobs()]
        assert job_ids == ["refresh_restaurant_cache"]


class TestRefreshRestaurantCache:
    async def test_refreshes_through_cache(self, mock_places):
        with (
            patch("workers.scheduler.get_places_provider", return_value=mock_places),
            patch(
                "workers.scheduler.refresh_cache",
                new=AsyncMock(return_value=RestaurantSnapshot()),
            ) as mock_refresh,
        ):
            await refresh_restaurant_cache()

        mock_refresh.assert_awaited_once()
        assert mock_refresh.await_args.args[0] is mock_places
        mock_places.close.assert_awaited_once()

    async def test_skips_without_api_key(self):
        with (
            patch(
                "workers.scheduler.get_places_provider",
                side_effect=ConfigurationError("missing"),
            ),
            patch("workers.scheduler.refresh_cache", new=AsyncMock()) as mock_refresh,
        ):
            await refresh_restaurant_cache()

        mock_refresh.assert_not_awaited()

    async def test_failure_is_captured_not_raised(self, mock_places):
        error = RuntimeError("upstream down")
        with (
            patch("workers.scheduler.get_places_provider", return_value=mock_places),
            patch("workers.scheduler.refresh_cache", new=AsyncMock(side_effect=error)),
            patch("workers.scheduler.sentry_sdk") as mock_sentry,
        ):
            await refresh_restaurant_cache()

        mock_sentry.capture_exception.assert_called_once_with(error)
        mock_places.close.assert_awaited_once()

    async def test_all_searches_failing_keeps_warm_cache(self, mock_places, tmp_path):
        cache_path = tmp_path / "restaurants-cache.json"
        RestaurantCache(cache_path).put(make_snapshot(make_restaurant(place_id="good")))
        mock_places.search.side_effect = PlacesRequestError("ConnectError")

        with (
            patch("workers.scheduler.get_places_provider", return_value=mock_places),
            patch("workers.scheduler.settings.cache_path", str(cache_path)),
            patch("workers.scheduler.sentry_sdk") as mock_sentry,
        ):
            await refresh_restaurant_cache()

        cached = RestaurantCache(cache_path).get()
        assert [r.place_id for r in cached.restaurants] == ["good"]
        error = mock_sentry.capture_exception.call_args.args[0]
        assert isinstance(error, RefreshFailedError)
        mock_places.close.assert_awaited_once()

from unittest.mock import patch

import pytest

from providers.places.interface import PlacesRequestError
from services.restaurant_cache import RestaurantCache
from services.restaurant_service import (
    RefreshFailedError,
    build_fetcher,
    refresh_cache,
    search_location_from_settings,
)
from tests.factories import (
    make_place_details,
    make_place_summary,
    make_restaurant,
    make_snapshot,
)


class TestRestaurantService:
    def test_search_location_defaults_to_boston(self):
        location = search_location_from_settings()

        assert location.latitude == 42.3601
        assert location.longitude == -71.0589
        assert location.radius == 8000

    def test_build_fetcher_uses_settings(self, mock_places):
        with patch("services.restaurant_service.settings") as mock_settings:
            mock_settings.search_latitude = 1.0
            mock_settings.search_longitude = 2.0
            mock_settings.search_radius_m = 500
            mock_settings.search_city = "Somewhere"
            mock_settings.detail_batch_size = 3
            mock_settings.batch_delay_seconds = 0
            mock_settings.embed_photo_key = False

            fetcher = build_fetcher(mock_places)

        assert fetcher._batch_size == 3
        assert fetcher._sign_photos is False
        assert fetcher._location.radius == 500

    async def test_refresh_cache_writes_through(self, mock_places, tmp_path):
        mock_places.search.return_value = [make_place_summary("abc123")]
        mock_places.details.return_value = make_place_details()
        cache = RestaurantCache(tmp_path / "cache.json")

        with patch("services.restaurant_service.settings.batch_delay_seconds", 0):
            snapshot = await refresh_cache(mock_places, cache)

        assert [r.place_id for r in snapshot.restaurants] == ["abc123"]
        assert snapshot.last_updated is None
        cached = cache.get()
        assert cached == snapshot

    async def test_all_searches_failing_keeps_previous_cache(self, mock_places, tmp_path):
        mock_places.search.side_effect = PlacesRequestError("ConnectError")
        cache = RestaurantCache(tmp_path / "cache.json")
        cache.put(make_snapshot(make_restaurant(place_id="good")))

        with pytest.raises(RefreshFailedError):
            await refresh_cache(mock_places, cache)

        assert [r.place_id for r in cache.get().restaurants] == ["good"]
        mock_places.details.assert_not_called()

    async def test_some_searches_failing_still_caches(self, mock_places, tmp_path):
        async def search(keyword, location):
            if keyword == "mexican restaurant":
                raise PlacesRequestError("ReadTimeout calling nearbysearch/json")
            return []

        mock_places.search.side_effect = search
        cache = RestaurantCache(tmp_path / "cache.json")

        snapshot = await refresh_cache(mock_places, cache)

        assert snapshot.restaurants == []
        assert cache.get() == snapshot

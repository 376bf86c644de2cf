import asyncio
from typing import Any
from urllib.parse import quote

import httpx
import structlog

from models.types import PlaceDetails, PlaceSummary, SearchLocation
from providers.places.interface import PlacesRequestError

logger = structlog.get_logger()

DETAIL_FIELDS = (
    "name",
    "formatted_address",
    "photos",
    "website",
    "opening_hours",
    "rating",
    "user_ratings_total",
    "geometry",
    "price_level",
    "types",
)
PHOTO_MAX_WIDTH = 400


class GooglePlacesAdapter:
    """Google Places (legacy web service) client: nearby search, details, photos."""

    BASE_URL = "https://maps.googleapis.com/maps/api/place"

    def __init__(
        self,
        api_key: str,
        timeout: float = 10.0,
        max_retries: int = 2,
        retry_backoff: float = 0.5,
    ):
        self._api_key = api_key
        self._max_retries = max_retries
        self._retry_backoff = retry_backoff
        self._client = httpx.AsyncClient(timeout=timeout)

    async def search(self, keyword: str, location: SearchLocation) -> list[PlaceSummary]:
        data = await self._get_json(
            "nearbysearch/json",
            {
                "location": f"{location.latitude},{location.longitude}",
                "radius": location.radius,
                "keyword": keyword,
            },
        )
        status = data.get("status")
        if status != "OK":
            # ZERO_RESULTS is routine; anything else is treated the same way
            logger.info("Nearby search returned nothing", keyword=keyword, status=status)
            return []

        places: list[PlaceSummary] = []
        for raw in data.get("results") or []:
            if not isinstance(raw, dict) or not raw.get("place_id"):
                continue
            places.append(PlaceSummary.model_validate(raw))
        return places

    async def details(self, place_id: str) -> PlaceDetails | None:
        try:
            data = await self._get_json(
                "details/json",
                {"place_id": place_id, "fields": ",".join(DETAIL_FIELDS)},
            )
        except PlacesRequestError as e:
            logger.warning("Place details request failed", place_id=place_id, error=str(e))
            return None

        status = data.get("status")
        result = data.get("result")
        if status != "OK" or not isinstance(result, dict):
            logger.warning("Place details unavailable", place_id=place_id, status=status)
            return None

        try:
            return _parse_details(result)
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning("Malformed place details", place_id=place_id, error=str(e))
            return None

    def photo_url(self, photo_reference: str, *, signed: bool = True) -> str:
        url = (
            f"{self.BASE_URL}/photo?maxwidth={PHOTO_MAX_WIDTH}"
            f"&photo_reference={quote(photo_reference, safe='')}"
        )
        if signed:
            url += f"&key={self._api_key}"
        return url

    async def _get_json(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        """GET an endpoint, retrying timeouts, connection errors and 5xx responses."""
        url = f"{self.BASE_URL}/{path}"
        query = {**params, "key": self._api_key}
        attempt = 0
        while True:
            try:
                response = await self._client.get(url, params=query)
                response.raise_for_status()
                data = response.json()
                if not isinstance(data, dict):
                    raise PlacesRequestError(f"Unexpected payload from {path}")
                return data
            except httpx.HTTPStatusError as e:
                # Never format the exception itself: its message carries the keyed URL
                status_code = e.response.status_code
                if status_code < 500 or attempt >= self._max_retries:
                    raise PlacesRequestError(f"HTTP {status_code} from {path}") from e
            except httpx.TransportError as e:
                if attempt >= self._max_retries:
                    raise PlacesRequestError(f"{type(e).__name__} calling {path}") from e
            except ValueError as e:
                raise PlacesRequestError(f"Malformed JSON from {path}") from e

            attempt += 1
            delay = self._retry_backoff * (2 ** (attempt - 1))
            logger.info("Retrying places request", path=path, attempt=attempt, delay=delay)
            await asyncio.sleep(delay)

    async def close(self) -> None:
        await self._client.aclose()


def _parse_details(result: dict[str, Any]) -> PlaceDetails:
    hours = result.get("opening_hours")
    photos = result.get("photos") or []
    photo_reference = photos[0].get("photo_reference") if photos else None

    return PlaceDetails(
        name=result.get("name"),
        formatted_address=result.get("formatted_address"),
        rating=result.get("rating"),
        user_ratings_total=result.get("user_ratings_total"),
        price_level=result.get("price_level"),
        types=result.get("types"),
        geometry=result.get("geometry"),
        has_opening_hours=isinstance(hours, dict),
        open_now=hours.get("open_now") if isinstance(hours, dict) else None,
        weekday_text=hours.get("weekday_text") if isinstance(hours, dict) else None,
        photo_reference=photo_reference or None,
        website=result.get("website") or None,
    )

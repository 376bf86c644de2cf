from typing import Protocol, runtime_checkable

from models.types import PlaceDetails, PlaceSummary, SearchLocation


class PlacesRequestError(Exception):
    """Transport or decoding failure talking to the places API."""


@runtime_checkable
class PlacesProvider(Protocol):
    async def search(self, keyword: str, location: SearchLocation) -> list[PlaceSummary]:
        """Nearby search. A non-OK API status yields an empty list.

        Raises PlacesRequestError when the request itself fails.
        """
        ...

    async def details(self, place_id: str) -> PlaceDetails | None:
        """Fetch the allow-listed detail fields. Returns None on any failure."""
        ...

    def photo_url(self, photo_reference: str, *, signed: bool = True) -> str:
        """Build a photo URL for a photo reference, optionally carrying the key."""
        ...

    async def close(self) -> None:
        """Clean up resources."""
        ...

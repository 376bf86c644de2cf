from unittest.mock import AsyncMock, MagicMock

import pytest

from models.types import SearchLocation
from providers.places.interface import PlacesProvider

API_KEY = "test-key"


def _photo_url(photo_reference: str, *, signed: bool = True) -> str:
    url = (
        "https://maps.googleapis.com/maps/api/place/photo"
        f"?maxwidth=400&photo_reference={photo_reference}"
    )
    return f"{url}&key={API_KEY}" if signed else url


@pytest.fixture
def mock_places():
    """Mock places provider: empty searches, no details, real-looking photo URLs."""
    provider = MagicMock(spec=PlacesProvider)
    provider.search = AsyncMock(return_value=[])
    provider.details = AsyncMock(return_value=None)
    provider.photo_url = MagicMock(side_effect=_photo_url)
    provider.close = AsyncMock()
    return provider


@pytest.fixture
def boston():
    return SearchLocation(latitude=42.3601, longitude=-71.0589, radius=8000, city="Boston, MA")

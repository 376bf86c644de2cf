from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _WireModel(BaseModel):
    """Base for documents persisted or served as JSON (camelCase wire names).

    Unknown keys are kept so rewriting a stored document never drops fields.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class LatLng(BaseModel):
    lat: float
    lng: float


class Geometry(BaseModel):
    model_config = ConfigDict(extra="allow")

    location: LatLng | None = None


class OpeningHours(BaseModel):
    model_config = ConfigDict(extra="allow")

    open_now: bool | None = None


class RestaurantRecord(_WireModel):
    place_id: str
    name: str | None = None
    address: str | None = None
    rating: float | None = Field(default=None, ge=0, le=5)
    user_ratings_total: int | None = Field(default=None, ge=0)
    price_level: int | None = Field(default=None, ge=0, le=4)
    types: list[str] | None = None
    geometry: Geometry | None = None
    opening_hours: OpeningHours | None = None
    weekday_text: list[str] | None = None
    photo: str | None = None
    website: str | None = None
    search_keyword: str | None = Field(default=None, alias="searchKeyword")


class SearchLocation(BaseModel):
    model_config = ConfigDict(extra="allow")

    latitude: float
    longitude: float
    radius: int
    city: str | None = None


class FetchCost(_WireModel):
    search_cost: float = Field(alias="searchCost")
    details_cost: float = Field(alias="detailsCost")
    total_cost: float = Field(alias="totalCost")


class FetchMetadata(_WireModel):
    fetch_date: str = Field(alias="fetchDate")
    keywords_searched: int = Field(alias="keywordsSearched")
    total_search_results: int = Field(alias="totalSearchResults")
    unique_restaurants: int = Field(alias="uniqueRestaurants")
    successful_fetches: int = Field(alias="successfulFetches")
    failed_fetches: int = Field(alias="failedFetches")
    failed_searches: int = Field(default=0, alias="failedSearches")
    deadline_exceeded: bool = Field(default=False, alias="deadlineExceeded")
    estimated_cost: FetchCost | None = Field(default=None, alias="estimatedCost")


class RestaurantSnapshot(_WireModel):
    """The persisted unit: restaurant list plus optional offline-build metadata."""

    restaurants: list[RestaurantRecord] = []
    last_updated: str | None = Field(default=None, alias="lastUpdated")
    count: int | None = None
    location: SearchLocation | None = None
    metadata: FetchMetadata | None = None


class CacheEntry(BaseModel):
    timestamp: int
    data: RestaurantSnapshot

    @field_validator("timestamp")
    @classmethod
    def non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Cache timestamp must be non-negative")
        return v


# --- Provider result types ---


class PlaceSummary(BaseModel):
    """One nearby-search hit. Only place_id is relied upon downstream."""

    model_config = ConfigDict(extra="allow")

    place_id: str
    name: str | None = None


class PlaceDetails(BaseModel):
    name: str | None = None
    formatted_address: str | None = None
    rating: float | None = None
    user_ratings_total: int | None = None
    price_level: int | None = None
    types: list[str] | None = None
    geometry: Geometry | None = None
    open_now: bool | None = None
    has_opening_hours: bool = False
    weekday_text: list[str] | None = None
    photo_reference: str | None = None
    website: str | None = None


# --- Pipeline result types ---


class FetchResult(BaseModel):
    restaurants: list[RestaurantRecord]
    keywords_searched: int
    failed_searches: int
    total_search_results: int
    unique_restaurants: int
    successful_fetches: int
    failed_fetches: int
    deadline_exceeded: bool = False


class PhotoUpdateSummary(BaseModel):
    updated: int
    already_signed: int
    without_photo: int

from typing import Any

import sentry_sdk
import structlog
from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from api.deps import get_restaurant_cache, get_snapshot_repository
from core.config import ConfigurationError, settings
from providers.places import get_places_provider
from services.restaurant_cache import RestaurantCache
from services.restaurant_service import refresh_cache

logger = structlog.get_logger()

router = APIRouter(prefix="/api", tags=["restaurants"])

SNAPSHOT_HINT = "Run `python -m cli.fetch_restaurants` to build the restaurant snapshot"


@router.get("/restaurants", response_model=None)
async def list_restaurants(
    request: Request,
    refresh: str | None = None,
    cache: RestaurantCache = Depends(get_restaurant_cache),  # noqa: B008
) -> dict[str, Any] | JSONResponse:
    """Restaurant list. Public. `?refresh=true` invalidates the cache first."""
    if settings.restaurant_source == "snapshot":
        repository = get_snapshot_repository(request)
        if repository.snapshot is None or not repository.has_data():
            return JSONResponse(
                status_code=503,
                content={"error": "No restaurant data available", "hint": SNAPSHOT_HINT},
            )
        request.state.data_source = "snapshot"
        return repository.snapshot.to_json_dict()

    should_refresh = refresh == "true"
    request.state.data_source = "refresh" if should_refresh else "miss"
    if should_refresh:
        logger.info("Manual cache refresh requested")
        cache.clear()
    else:
        cached = cache.get()
        if cached is not None:
            request.state.data_source = "hit"
            return cached.to_json_dict()

    try:
        provider = get_places_provider()
    except ConfigurationError as e:
        logger.error("Cannot fetch restaurants", error=str(e))
        return JSONResponse(status_code=500, content={"error": str(e)})

    try:
        snapshot = await refresh_cache(provider, cache)
    except Exception as e:
        logger.error("Failed to fetch restaurants", error=str(e))
        sentry_sdk.capture_exception(e)
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to fetch restaurants", "details": str(e)},
        )
    finally:
        await provider.close()

    return snapshot.to_json_dict()


@router.options("/restaurants")
async def restaurants_preflight() -> Response:
    return Response(status_code=200)


@router.api_route("/restaurants", methods=["POST", "PUT", "PATCH", "DELETE"])
async def restaurants_method_not_allowed() -> JSONResponse:
    return JSONResponse(
        status_code=405,
        content={"error": "Method not allowed"},
        headers={"Allow": "GET, OPTIONS"},
    )


@router.get("/health")
async def api_health(
    request: Request,
    cache: RestaurantCache = Depends(get_restaurant_cache),  # noqa: B008
) -> dict[str, Any]:
    """Data health: how many restaurants are being served and how fresh they are."""
    if settings.restaurant_source == "snapshot":
        repository = get_snapshot_repository(request)
        return {
            "status": "ok" if repository.has_data() else "no_data",
            "restaurantCount": repository.restaurant_count,
            "lastUpdated": repository.last_updated,
        }

    cached = cache.get()
    return {
        "status": "ok",
        "restaurantCount": len(cached.restaurants) if cached else 0,
        "lastUpdated": cached.last_updated if cached else None,
    }

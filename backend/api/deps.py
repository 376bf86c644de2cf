from fastapi import Request

from core.config import settings
from services.restaurant_cache import RestaurantCache
from services.snapshot_store import SnapshotRepository, SnapshotStore


def get_restaurant_cache() -> RestaurantCache:
    return RestaurantCache(settings.cache_path)


def get_snapshot_repository(request: Request) -> SnapshotRepository:
    """Return the snapshot loaded at startup, loading it on first use otherwise."""
    repository: SnapshotRepository | None = getattr(
        request.app.state, "snapshot_repository", None
    )
    if repository is None:
        repository = SnapshotRepository.load(SnapshotStore(settings.snapshot_path))
        request.app.state.snapshot_repository = repository
    return repository

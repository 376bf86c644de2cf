import json
import os
import tempfile
import time
from collections.abc import Callable
from pathlib import Path

import structlog

from models.types import CacheEntry, RestaurantSnapshot

logger = structlog.get_logger()

CACHE_TTL_MS = 12 * 60 * 60 * 1000


def _epoch_ms() -> int:
    return int(time.time() * 1000)


def write_json_atomic(path: Path, payload: object, indent: int | None = None) -> None:
    """Replace `path` with `payload` serialised as JSON, via a same-directory rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(payload, fh, indent=indent, ensure_ascii=False)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class RestaurantCache:
    """Single-entry, time-expiring file cache for the whole restaurant snapshot.

    Reads never raise: a missing, unreadable, unparsable or expired entry is a
    miss. Writes are best-effort and failures are only logged. Expired entries
    stay on disk until overwritten or cleared.
    """

    def __init__(
        self,
        path: str | Path,
        ttl_ms: int = CACHE_TTL_MS,
        clock: Callable[[], int] = _epoch_ms,
    ):
        self._path = Path(path)
        self._ttl_ms = ttl_ms
        self._clock = clock

    @property
    def path(self) -> Path:
        return self._path

    def get(self) -> RestaurantSnapshot | None:
        if not self._path.exists():
            logger.info("Cache miss", reason="missing", path=str(self._path))
            return None

        try:
            raw = self._path.read_text(encoding="utf-8")
            entry = CacheEntry.model_validate(json.loads(raw))
        except (OSError, ValueError) as e:
            logger.warning("Cache miss", reason="unreadable", path=str(self._path), error=str(e))
            return None

        age_ms = self._clock() - entry.timestamp
        if age_ms >= self._ttl_ms:
            logger.info("Cache miss", reason="expired", age_hours=round(age_ms / 3_600_000, 1))
            return None

        logger.info(
            "Cache hit",
            age_hours=round(age_ms / 3_600_000, 1),
            restaurants=len(entry.data.restaurants),
        )
        return entry.data

    def put(self, snapshot: RestaurantSnapshot) -> None:
        entry = {"timestamp": self._clock(), "data": snapshot.to_json_dict()}
        try:
            write_json_atomic(self._path, entry)
        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to write cache", path=str(self._path), error=str(e))
            return
        logger.info("Cached restaurants", count=len(snapshot.restaurants))

    def clear(self) -> bool:
        try:
            self._path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error("Failed to clear cache", path=str(self._path), error=str(e))
            return False
        logger.info("Cache cleared", path=str(self._path))
        return True

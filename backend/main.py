from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import sentry_sdk
import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.restaurants import router as restaurants_router
from core.config import settings
from middleware.request_id import RequestIDMiddleware
from services.snapshot_store import SnapshotRepository, SnapshotStore
from workers.scheduler import create_scheduler

logger = structlog.get_logger()

scheduler = create_scheduler()

CORS_ALLOW_HEADERS = [
    "X-CSRF-Token",
    "X-Requested-With",
    "Accept",
    "Accept-Version",
    "Content-Length",
    "Content-MD5",
    "Content-Type",
    "Date",
    "X-Api-Version",
]


def _init_sentry() -> None:
    """Initialize Sentry error tracking if DSN is configured."""
    if not settings.sentry_dsn:
        return
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        traces_sample_rate=0.1,
        send_default_pii=False,
    )
    logger.info("Sentry initialized", environment=settings.environment)


def _scheduler_enabled() -> bool:
    return (
        settings.environment != "test"
        and settings.scheduled_refresh
        and settings.restaurant_source == "live"
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup and shutdown events."""
    _init_sentry()
    logger.info(
        "Starting Latino Eats API",
        environment=settings.environment,
        source=settings.restaurant_source,
    )
    if settings.restaurant_source == "snapshot":
        app.state.snapshot_repository = SnapshotRepository.load(
            SnapshotStore(settings.snapshot_path)
        )
    if _scheduler_enabled():
        scheduler.start()
        logger.info("Scheduler started", interval_hours=settings.refresh_interval_hours)
    yield
    if _scheduler_enabled():
        scheduler.shutdown()
    logger.info("Shutting down Latino Eats API")


app = FastAPI(
    title="Latino Eats API",
    description="Latino restaurants around Boston, sourced from Google Places",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(RequestIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=CORS_ALLOW_HEADERS,
)


@app.get("/health")
async def health_check() -> dict[str, str]:
    return {"status": "ok"}


app.include_router(restaurants_router)

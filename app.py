"""
app.py: FastAPI application factory and startup lifecycle.

This is the ASGI application object imported by uvicorn.
It wires all services onto app.state and registers routers.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from store_scheduler.controllers.admin_controller import router as admin_router
from store_scheduler.controllers.recommendation_controller import router as recommendation_router
from store_scheduler.controllers.schedule_controller import router as schedule_router
from store_scheduler.repository.airtable_repository import AirtableRepository
from store_scheduler.services.auth_service import AuthService
from store_scheduler.services.hr_directory_service import HRDirectoryService
from store_scheduler.services.recommendation_service import RecommendationService
from store_scheduler.services.traffic_service import TrafficService
from store_scheduler.services.work_hours_service import WorkHoursService
from store_scheduler.utils.cache import SnapshotCache, TTLCache
from store_scheduler.utils.config import Settings, get_settings
from store_scheduler.utils.logger import get_logger


logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build and wire the FastAPI application.

    Every dependency is created here and exposed through app.state so
    controllers never construct services themselves.
    """
    settings = settings or get_settings()

    # --- Caches ---
    store_cache: TTLCache = TTLCache(ttl_seconds=settings.store_cache_ttl_seconds)
    snapshot_cache = SnapshotCache(settings.snapshot_cache_directory)

    # --- Repository (Airtable REST access) ---
    repository = AirtableRepository(settings=settings, store_cache=store_cache)

    # --- Services ---
    traffic_service = TrafficService(settings=settings)
    recommendation_service = RecommendationService(
        traffic_service=traffic_service,
        settings=settings,
    )
    work_hours_service = WorkHoursService(repository=repository)
    hr_directory_service = HRDirectoryService(snapshot_cache=snapshot_cache, settings=settings)
    auth_service = AuthService(settings=settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Log the effective configuration before accepting requests."""
        _startup(app)
        yield
        store_cache.clear()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # --- Routers ---
    app.include_router(recommendation_router)
    app.include_router(schedule_router)
    app.include_router(admin_router)

    # --- Inject services into app.state for dependency resolution ---
    app.state.settings = settings
    app.state.store_cache = store_cache
    app.state.repository = repository
    app.state.traffic_service = traffic_service
    app.state.recommendation_service = recommendation_service
    app.state.work_hours_service = work_hours_service
    app.state.hr_directory_service = hr_directory_service
    app.state.auth_service = auth_service

    return app


def _startup(app: FastAPI) -> None:
    settings: Settings = app.state.settings

    if not settings.airtable_configured:
        logger.warning("Startup: Airtable credentials missing, schedule endpoints will return 503")
    if not settings.traffic_api_configured:
        logger.warning("Startup: traffic API not configured, serving simulated traffic")
    if not settings.admin_secret:
        logger.warning("Startup: ADMIN_SECRET not set, admin endpoints are open")

    logger.info(
        "Startup complete | app=%s | version=%s | store_cache_ttl=%s",
        settings.app_name,
        settings.app_version,
        settings.store_cache_ttl_seconds,
    )


# Module-level app object for uvicorn
app = create_app()

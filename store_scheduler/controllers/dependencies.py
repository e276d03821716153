"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status

from store_scheduler.services.auth_service import AuthService
from store_scheduler.services.hr_directory_service import HRDirectoryService
from store_scheduler.services.recommendation_service import RecommendationService
from store_scheduler.services.traffic_service import TrafficService
from store_scheduler.services.work_hours_service import WorkHoursService
from store_scheduler.utils.config import Settings, get_settings


def _service_from_state(request: Request, attribute: str, label: str):
    service = getattr(request.app.state, attribute, None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{label} service is not initialized",
        )
    return service


def get_auth_service(request: Request) -> AuthService:
    service = getattr(request.app.state, "auth_service", None)
    if service is None:
        service = AuthService(settings=get_app_settings(request))
        request.app.state.auth_service = service
    return service


def get_recommendation_service(request: Request) -> RecommendationService:
    return _service_from_state(request, "recommendation_service", "Recommendation")


def get_traffic_service(request: Request) -> TrafficService:
    return _service_from_state(request, "traffic_service", "Traffic")


def get_work_hours_service(request: Request) -> WorkHoursService:
    return _service_from_state(request, "work_hours_service", "Work hours")


def get_hr_directory_service(request: Request) -> HRDirectoryService:
    return _service_from_state(request, "hr_directory_service", "HR directory")


async def require_admin(
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
) -> None:
    cookie = request.cookies.get(auth_service.cookie_name)
    if not auth_service.is_admin_session(cookie):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="A valid admin session is required",
        )


def get_app_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or get_settings()

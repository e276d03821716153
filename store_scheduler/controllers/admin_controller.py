"""Controller layer for admin sessions, HR directories and health."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from pydantic import BaseModel, Field

from store_scheduler.controllers.dependencies import (
    get_app_settings,
    get_auth_service,
    get_hr_directory_service,
    require_admin,
)
from store_scheduler.services.auth_service import (
    AdminSecretNotConfiguredError,
    AuthService,
    InvalidAdminSecretError,
)
from store_scheduler.services.hr_directory_service import (
    HRApiNotConfiguredError,
    HRApiRequestError,
    HRDirectoryService,
)
from store_scheduler.utils.config import Settings
from store_scheduler.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["admin"])


class LoginRequest(BaseModel):
    secret: str = Field(min_length=1)


class SessionResponse(BaseModel):
    authenticated: bool


class DirectoryResponse(BaseModel):
    data: Any
    from_cache: bool = False
    api_error: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    app: str
    version: str
    airtable_configured: bool
    traffic_api_configured: bool
    auth_enabled: bool


@router.post("/admin/login", response_model=SessionResponse, status_code=status.HTTP_200_OK)
async def login(
    payload: LoginRequest,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
) -> SessionResponse:
    try:
        token = auth_service.login(payload.secret)
    except AdminSecretNotConfiguredError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    except InvalidAdminSecretError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected login failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to login",
        ) from exc

    response.set_cookie(
        key=auth_service.cookie_name,
        value=token,
        httponly=True,
        samesite="lax",
    )
    logger.info("Admin session opened")
    return SessionResponse(authenticated=True)


@router.post("/admin/logout", response_model=SessionResponse, status_code=status.HTTP_200_OK)
async def logout(
    request: Request,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
) -> SessionResponse:
    auth_service.logout(request.cookies.get(auth_service.cookie_name))
    response.delete_cookie(auth_service.cookie_name)
    return SessionResponse(authenticated=False)


def _directory_response(loader, label: str) -> DirectoryResponse:
    try:
        return DirectoryResponse(**loader())
    except HRApiNotConfiguredError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    except HRApiRequestError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected HR directory failure | directory=%s", label)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to load {label}",
        ) from exc


@router.get(
    "/lcdc/stores",
    response_model=DirectoryResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)],
)
def get_stores(
    save_snapshot: bool = True,
    fallback: bool = False,
    service: HRDirectoryService = Depends(get_hr_directory_service),
) -> DirectoryResponse:
    return _directory_response(
        lambda: service.get_stores(save_snapshot=save_snapshot, fallback_to_snapshot=fallback),
        "stores",
    )


@router.get(
    "/lcdc/users",
    response_model=DirectoryResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)],
)
def get_users(
    save_snapshot: bool = True,
    fallback: bool = False,
    service: HRDirectoryService = Depends(get_hr_directory_service),
) -> DirectoryResponse:
    return _directory_response(
        lambda: service.get_users(save_snapshot=save_snapshot, fallback_to_snapshot=fallback),
        "users",
    )


@router.get("/health", response_model=HealthResponse, status_code=status.HTTP_200_OK)
async def health(
    settings: Settings = Depends(get_app_settings),
    auth_service: AuthService = Depends(get_auth_service),
) -> HealthResponse:
    return HealthResponse(
        status="ok",
        app=settings.app_name,
        version=settings.app_version,
        airtable_configured=settings.airtable_configured,
        traffic_api_configured=settings.traffic_api_configured,
        auth_enabled=auth_service.auth_enabled,
    )

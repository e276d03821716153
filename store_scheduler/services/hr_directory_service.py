"""Store and employee directories pulled from the HR API."""

from __future__ import annotations

from typing import Any, Optional

import httpx

from store_scheduler.utils.cache import SnapshotCache, SnapshotType
from store_scheduler.utils.config import Settings, get_settings
from store_scheduler.utils.logger import get_logger


logger = get_logger(__name__)

_ENDPOINTS = {
    SnapshotType.USERS: "/api/v1/rrhh/get_users",
    SnapshotType.STORES: "/api/v1/rrhh/get_stores",
}


class HRDirectoryError(Exception):
    """Base exception for HR directory failures."""


class HRApiNotConfiguredError(HRDirectoryError):
    """Raised when the HR API base URL or token is missing."""


class HRApiRequestError(HRDirectoryError):
    """Raised when the HR API rejects the request or cannot be reached."""


class HRDirectoryService:
    """Fetches directories fresh and keeps snapshots as a last-resort fallback."""

    def __init__(
        self,
        snapshot_cache: SnapshotCache,
        settings: Optional[Settings] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._snapshots = snapshot_cache
        self._client = client

    def _http_client(self) -> httpx.Client:
        if not self._settings.traffic_api_configured:
            raise HRApiNotConfiguredError(
                "TRAFFIC_API_BASE_URL and TRAFFIC_API_TOKEN must be configured"
            )
        if self._client is None:
            self._client = httpx.Client(
                base_url=self._settings.traffic_api_base_url or "",
                timeout=self._settings.http_timeout_seconds,
            )
        return self._client

    def _request(self, snapshot_type: SnapshotType) -> Any:
        client = self._http_client()
        endpoint = _ENDPOINTS[snapshot_type]
        try:
            response = client.get(
                endpoint,
                headers={
                    "Authorization": f"Bearer {self._settings.traffic_api_token}",
                    "Accept": "application/json",
                },
            )
        except httpx.HTTPError as exc:
            raise HRApiRequestError(f"HR API unreachable: {exc}") from exc

        if response.status_code == 401:
            raise HRApiRequestError("HR API authentication failed: invalid or expired token")
        if response.is_error:
            raise HRApiRequestError(
                f"HR API error {response.status_code} {response.reason_phrase} for {endpoint}"
            )
        try:
            return response.json()
        except ValueError as exc:
            raise HRApiRequestError(f"HR API returned invalid JSON for {endpoint}") from exc

    def _fetch(
        self,
        snapshot_type: SnapshotType,
        *,
        save_snapshot: bool,
        fallback_to_snapshot: bool,
    ) -> dict[str, Any]:
        try:
            data = self._request(snapshot_type)
        except HRApiRequestError as exc:
            logger.error(
                "HR directory fetch failed | type=%s | error=%s",
                snapshot_type.value,
                exc,
            )
            if fallback_to_snapshot:
                cached = self._snapshots.latest(snapshot_type)
                if cached is not None:
                    logger.warning(
                        "Serving HR directory from snapshot | type=%s",
                        snapshot_type.value,
                    )
                    return {"data": cached, "from_cache": True, "api_error": str(exc)}
            raise

        if save_snapshot:
            try:
                self._snapshots.save(snapshot_type, data)
            except OSError as exc:
                logger.error(
                    "Snapshot save failed | type=%s | error=%s",
                    snapshot_type.value,
                    exc,
                )
        return {"data": data, "from_cache": False, "api_error": None}

    def get_stores(
        self,
        *,
        save_snapshot: bool = True,
        fallback_to_snapshot: bool = False,
    ) -> dict[str, Any]:
        return self._fetch(
            SnapshotType.STORES,
            save_snapshot=save_snapshot,
            fallback_to_snapshot=fallback_to_snapshot,
        )

    def get_users(
        self,
        *,
        save_snapshot: bool = True,
        fallback_to_snapshot: bool = False,
    ) -> dict[str, Any]:
        return self._fetch(
            SnapshotType.USERS,
            save_snapshot=save_snapshot,
            fallback_to_snapshot=fallback_to_snapshot,
        )

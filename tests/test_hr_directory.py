from __future__ import annotations

from dataclasses import replace

import httpx
import pytest

from store_scheduler.services.hr_directory_service import (
    HRApiNotConfiguredError,
    HRApiRequestError,
    HRDirectoryService,
)
from store_scheduler.utils.cache import SnapshotCache, SnapshotType
from store_scheduler.utils.config import get_settings


BASE_URL = "https://hr.test"


def _service(tmp_path, handler) -> tuple[HRDirectoryService, SnapshotCache]:
    settings = replace(get_settings(), traffic_api_base_url=BASE_URL, traffic_api_token="tok")
    cache = SnapshotCache(tmp_path / "lcdc")
    client = httpx.Client(transport=httpx.MockTransport(handler), base_url=BASE_URL)
    return HRDirectoryService(cache, settings=settings, client=client), cache


def test_fresh_fetch_saves_snapshot(tmp_path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/v1/rrhh/get_stores"
        return httpx.Response(200, json=[{"code": "ST01"}])

    service, cache = _service(tmp_path, handler)
    result = service.get_stores()

    assert result == {"data": [{"code": "ST01"}], "from_cache": False, "api_error": None}
    assert cache.latest(SnapshotType.STORES) == [{"code": "ST01"}]


def test_failure_serves_latest_snapshot_when_allowed(tmp_path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="down")

    service, cache = _service(tmp_path, handler)
    cache.save(SnapshotType.USERS, [{"name": "Ana"}])

    result = service.get_users(fallback_to_snapshot=True)

    assert result["data"] == [{"name": "Ana"}]
    assert result["from_cache"] is True
    assert "500" in result["api_error"]


def test_failure_without_fallback_raises(tmp_path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"detail": "expired"})

    service, cache = _service(tmp_path, handler)
    cache.save(SnapshotType.USERS, [{"name": "Ana"}])

    with pytest.raises(HRApiRequestError, match="authentication"):
        service.get_users()


def test_failure_with_no_snapshot_raises(tmp_path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    service, _ = _service(tmp_path, handler)

    with pytest.raises(HRApiRequestError):
        service.get_stores(fallback_to_snapshot=True)


def test_unconfigured_api_raises(tmp_path) -> None:
    settings = replace(get_settings(), traffic_api_base_url=None, traffic_api_token=None)
    service = HRDirectoryService(SnapshotCache(tmp_path), settings=settings)

    with pytest.raises(HRApiNotConfiguredError):
        service.get_stores()


def test_snapshot_write_failure_still_returns_fresh_data(tmp_path, caplog) -> None:
    blocked = tmp_path / "lcdc"
    blocked.write_text("not a directory", encoding="utf-8")
    settings = replace(get_settings(), traffic_api_base_url=BASE_URL, traffic_api_token="tok")
    client = httpx.Client(
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json=[{"code": "ST01"}])),
        base_url=BASE_URL,
    )
    service = HRDirectoryService(SnapshotCache(blocked), settings=settings, client=client)

    with caplog.at_level("ERROR"):
        result = service.get_stores()

    assert result == {"data": [{"code": "ST01"}], "from_cache": False, "api_error": None}
    assert "Snapshot save failed" in caplog.text

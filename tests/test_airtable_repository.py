from __future__ import annotations

import json
from dataclasses import replace

import httpx
import pytest

from store_scheduler.repository.airtable_repository import (
    AirtableNotConfiguredError,
    AirtableRepository,
    AirtableRequestError,
    RecordNotFoundError,
    ScheduleValidationError,
    formula_literal,
    store_profile_from_record,
)
from store_scheduler.utils.cache import TTLCache
from store_scheduler.utils.config import get_settings


BASE_URL = "https://airtable.test/v0/appBase"


def _settings(**overrides):
    values = {
        "airtable_api_key": "key",
        "airtable_base_id": "appBase",
        "airtable_store_table_id": "tblStores",
        "airtable_daily_activity_table_id": "tblDays",
        "airtable_page_size": 2,
    }
    values.update(overrides)
    return replace(get_settings(), **values)


def _repository(handler, store_cache=None, **overrides) -> AirtableRepository:
    client = httpx.Client(transport=httpx.MockTransport(handler), base_url=BASE_URL)
    return AirtableRepository(settings=_settings(**overrides), store_cache=store_cache, client=client)


STORE_RECORD = {
    "id": "recStore",
    "fields": {
        "TIENDA": "Madrid Centro",
        "PAIS": "España",
        "Horario Apertura": "10:00",
        "Horario Cierre": "22:00",
        "Atención Deseada": "30",
        "Crecimiento": 0.1,
    },
}


def test_store_profile_mapping() -> None:
    profile = store_profile_from_record(STORE_RECORD)

    assert profile.record_id == "recStore"
    assert profile.name == "Madrid Centro"
    assert profile.country == "España"
    assert profile.opening_time == "10:00"
    assert profile.closing_time == "22:00"
    assert profile.desired_attention == 30.0
    assert profile.growth_factor == pytest.approx(0.1)


def test_get_store_is_cached() -> None:
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        assert request.headers["Authorization"] == "Bearer key"
        return httpx.Response(200, json=STORE_RECORD)

    repository = _repository(handler, store_cache=TTLCache(ttl_seconds=60))

    first = repository.get_store("recStore")
    second = repository.get_store("recStore")

    assert first == second
    assert calls == ["/v0/appBase/tblStores/recStore"]


def test_missing_store_raises_not_found() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": "NOT_FOUND"})

    with pytest.raises(RecordNotFoundError):
        _repository(handler).get_store("recMissing")


def test_server_error_raises_request_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="unavailable")

    with pytest.raises(AirtableRequestError):
        _repository(handler).get_store("recStore")


def test_unconfigured_credentials_raise() -> None:
    def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover - never called
        raise AssertionError("no request expected")

    with pytest.raises(AirtableNotConfiguredError):
        _repository(handler, airtable_api_key=None).get_store("recStore")


def test_day_activities_follow_pagination_and_filter() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.params.get("offset") == "page2":
            return httpx.Response(200, json={"records": [{"id": "rec3", "fields": {}}]})
        return httpx.Response(
            200,
            json={
                "records": [{"id": "rec1", "fields": {}}, {"id": "rec2", "fields": {}}],
                "offset": "page2",
            },
        )

    records = _repository(handler).list_day_activities("recDay", store_record_id="recStore")

    assert [record["id"] for record in records] == ["rec1", "rec2", "rec3"]
    assert len(seen) == 2
    formula = seen[0].url.params["filterByFormula"]
    assert formula.startswith("AND(")
    assert "'recDay'" in formula and "'recStore'" in formula
    assert seen[0].url.params["pageSize"] == "2"


def test_update_activity_slot_patches_single_field() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "recAct", "fields": {"10:30": "TRABAJO"}})

    record = _repository(handler).update_activity_slot("recAct", "10:30", "TRABAJO")

    assert record["id"] == "recAct"
    assert seen[0].method == "PATCH"
    assert seen[0].url.path == "/v0/appBase/tblDays/recAct"
    assert json.loads(seen[0].content) == {"fields": {"10:30": "TRABAJO"}}


@pytest.mark.parametrize(("slot", "status"), [("10h", "TRABAJO"), ("10:30", "SIESTA")])
def test_update_activity_slot_validates_before_request(slot, status) -> None:
    def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover - never called
        raise AssertionError("no request expected")

    with pytest.raises(ScheduleValidationError):
        _repository(handler).update_activity_slot("recAct", slot, status)


def test_day_activity_ids_are_quoted_inside_the_formula() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"records": []})

    _repository(handler).list_day_activities(
        "x' , TRUE()) , OR(TRUE(), 'y",
        store_record_id="rec\\S",
    )

    formula = seen[0].url.params["filterByFormula"]
    assert formula == (
        "AND({recordId (from Fecha)}='x\\' , TRUE()) , OR(TRUE(), \\'y', "
        "{record_Id (from Tienda y Supervisor)}='rec\\\\S')"
    )


def test_formula_literal_escapes_backslash_before_quote() -> None:
    assert formula_literal("recDay") == "'recDay'"
    assert formula_literal("a\\'b") == "'a\\\\\\'b'"


def test_get_store_evicts_expired_entries() -> None:
    now = [0.0]
    cache = TTLCache(ttl_seconds=10, clock=lambda: now[0])
    cache.set("store:recOld", "stale")

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=STORE_RECORD)

    repository = _repository(handler, store_cache=cache)
    now[0] = 11.0

    repository.get_store("recStore")

    assert cache.get("store:recOld") is None
    assert len(cache) == 1

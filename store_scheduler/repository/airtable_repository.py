"""Repository layer responsible for all Airtable access."""

from __future__ import annotations

from typing import Any, Iterator, Optional

import httpx

from store_scheduler.domain.models import StoreProfile
from store_scheduler.domain.parsing import parse_number, parse_time_label
from store_scheduler.utils.cache import TTLCache
from store_scheduler.utils.config import Settings, get_settings
from store_scheduler.utils.logger import get_logger


logger = get_logger(__name__)

SCHEDULE_STATUSES = (
    "TRABAJO",
    "VACACIONES",
    "LIBRE",
    "BAJA MÉDICA",
    "FORMACIÓN",
    "LACTANCIA",
)

STORE_LINK_FIELD = "record_Id (from Tienda y Supervisor)"
DAY_LINK_FIELD = "recordId (from Fecha)"


class AirtableError(Exception):
    """Base exception for Airtable access failures."""


class AirtableNotConfiguredError(AirtableError):
    """Raised when credentials or table ids are missing."""


class RecordNotFoundError(AirtableError):
    """Raised when a record id does not exist in the target table."""


class AirtableRequestError(AirtableError):
    """Raised when Airtable answers with an error or cannot be reached."""


class ScheduleValidationError(AirtableError):
    """Raised when a schedule edit carries an unknown slot or status."""


def _first_present(fields: dict[str, Any], *names: str) -> Any:
    for name in names:
        value = fields.get(name)
        if value not in (None, ""):
            return value
    return None


def formula_literal(value: str) -> str:
    """Quote a value for an Airtable formula, escaping backslashes and quotes."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def store_profile_from_record(record: dict[str, Any]) -> StoreProfile:
    fields = record.get("fields", {}) or {}
    desired_attention = _first_present(fields, "Atención Deseada", "Atencion Deseada")
    growth = fields.get("Crecimiento")
    return StoreProfile(
        record_id=str(record.get("id", "")),
        name=str(_first_present(fields, "TIENDA", "Name") or ""),
        country=_first_present(fields, "PAIS", "Pais", "País"),
        opening_time=_first_present(fields, "Horario Apertura", "Apertura"),
        closing_time=_first_present(fields, "Horario Cierre", "Cierre"),
        desired_attention=parse_number(desired_attention) or None,
        growth_factor=parse_number(growth) if growth is not None else None,
    )


class AirtableRepository:
    """Encapsulates Airtable REST calls so services stay storage-agnostic."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        store_cache: Optional[TTLCache[StoreProfile]] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._store_cache = store_cache
        self._client = client

    def _http_client(self) -> httpx.Client:
        if not self._settings.airtable_configured:
            raise AirtableNotConfiguredError(
                "AIRTABLE_API_KEY and AIRTABLE_BASE_ID must be configured"
            )
        if self._client is None:
            self._client = httpx.Client(
                base_url=f"{self._settings.airtable_api_url}/{self._settings.airtable_base_id}",
                timeout=self._settings.http_timeout_seconds,
            )
        return self._client

    def _table(self, table_id: Optional[str], setting_name: str) -> str:
        if not table_id:
            raise AirtableNotConfiguredError(f"{setting_name} is not configured")
        return table_id

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        json: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        client = self._http_client()
        try:
            response = client.request(
                method,
                path,
                params=params,
                json=json,
                headers={"Authorization": f"Bearer {self._settings.airtable_api_key}"},
            )
        except httpx.HTTPError as exc:
            raise AirtableRequestError(f"Airtable unreachable: {exc}") from exc

        if response.status_code == 404:
            raise RecordNotFoundError(f"Airtable record not found: {path}")
        if response.is_error:
            logger.error(
                "Airtable request failed | method=%s | path=%s | status=%s | body=%s",
                method,
                path,
                response.status_code,
                response.text[:500],
            )
            raise AirtableRequestError(f"Airtable error {response.status_code} for {path}")
        return response.json()

    def get_record(self, table_id: str, record_id: str) -> dict[str, Any]:
        return self._request("GET", f"/{table_id}/{record_id}")

    def iter_records(
        self,
        table_id: str,
        *,
        formula: Optional[str] = None,
    ) -> Iterator[dict[str, Any]]:
        """Yield every record of a table, following Airtable's ``offset`` pages."""
        params: dict[str, Any] = {"pageSize": self._settings.airtable_page_size}
        if formula:
            params["filterByFormula"] = formula
        while True:
            payload = self._request("GET", f"/{table_id}", params=params)
            yield from payload.get("records", [])
            offset = payload.get("offset")
            if not offset:
                return
            params = {**params, "offset": offset}

    def check_connection(self) -> bool:
        table_id = self._table(
            self._settings.airtable_daily_activity_table_id,
            "AIRTABLE_DAILY_ACTIVITY_TABLE_ID",
        )
        try:
            self._request("GET", f"/{table_id}", params={"maxRecords": 1})
        except AirtableError as exc:
            logger.warning("Airtable connection check failed | error=%s", exc)
            return False
        return True

    def get_store(self, record_id: str) -> StoreProfile:
        table_id = self._table(self._settings.airtable_store_table_id, "AIRTABLE_STORE_TABLE_ID")

        def load() -> StoreProfile:
            logger.info("Loading store from Airtable | store=%s", record_id)
            return store_profile_from_record(self.get_record(table_id, record_id))

        if self._store_cache is None:
            return load()
        evicted = self._store_cache.cleanup()
        if evicted:
            logger.debug("Evicted expired store entries | count=%s", evicted)
        return self._store_cache.get_or_load(f"store:{record_id}", load)

    def list_day_activities(
        self,
        day_record_id: str,
        store_record_id: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        table_id = self._table(
            self._settings.airtable_daily_activity_table_id,
            "AIRTABLE_DAILY_ACTIVITY_TABLE_ID",
        )
        clauses = [f"{{{DAY_LINK_FIELD}}}={formula_literal(day_record_id)}"]
        if store_record_id:
            clauses.append(f"{{{STORE_LINK_FIELD}}}={formula_literal(store_record_id)}")
        formula = clauses[0] if len(clauses) == 1 else f"AND({', '.join(clauses)})"
        records = list(self.iter_records(table_id, formula=formula))
        logger.info(
            "Daily activities loaded | day=%s | store=%s | records=%s",
            day_record_id,
            store_record_id,
            len(records),
        )
        return records

    def update_activity_slot(
        self,
        activity_record_id: str,
        slot_label: str,
        status: Optional[str],
    ) -> dict[str, Any]:
        """Set one slot of an activity record; ``None`` clears it."""
        try:
            parse_time_label(slot_label)
        except ValueError as exc:
            raise ScheduleValidationError(str(exc)) from exc
        if status is not None and status not in SCHEDULE_STATUSES:
            raise ScheduleValidationError(f"unknown schedule status {status!r}")

        table_id = self._table(
            self._settings.airtable_daily_activity_table_id,
            "AIRTABLE_DAILY_ACTIVITY_TABLE_ID",
        )
        record = self._request(
            "PATCH",
            f"/{table_id}/{activity_record_id}",
            json={"fields": {slot_label: status}},
        )
        logger.info(
            "Activity slot updated | record=%s | slot=%s | status=%s",
            activity_record_id,
            slot_label,
            status,
        )
        return record

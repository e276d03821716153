"""Worked-hours aggregation over daily activity records."""

from __future__ import annotations

from typing import Any, Iterable, Optional, Sequence

from store_scheduler.domain.models import ActivitySlotRecord, StoreProfile, WorkHoursResult
from store_scheduler.domain.parsing import format_number
from store_scheduler.domain.time_slots import generate_time_slots, is_france, slot_duration_hours
from store_scheduler.repository.airtable_repository import AirtableRepository
from store_scheduler.utils.logger import get_logger


logger = get_logger(__name__)

WORK_MARKER = "TRABAJO"
WEEKLY_ACTIVITY_SENTINEL = "Actividad Semanal"
FREE_STATUS = "Free"

ADDING_STATUSES = frozenset({"TRABAJO", "FORMACIÓN"})
SUBTRACTING_STATUSES = frozenset({"BAJA MÉDICA"})


def work_status(total_hours: float) -> str:
    return f"Work ({format_number(total_hours)} h)"


def compute_work_hours(record: ActivitySlotRecord, country_is_france: bool) -> WorkHoursResult:
    """Resolve a day's worked hours from four signals, last writer wins.

    1. pre-aggregated worked hours
    2. hours added / subtracted deltas
    3. activity type label ("trabajo" forces work)
    4. slot grid markings, which overwrite everything above when present
    """
    duration = slot_duration_hours(country_is_france)
    total_hours = 0.0
    is_work = False
    activity_type = ""

    if record.worked_hours > 0:
        total_hours = record.worked_hours
        is_work = True

    if record.hours_added > 0 or record.hours_subtracted > 0:
        total_hours = record.hours_added - record.hours_subtracted
        is_work = total_hours > 0

    if record.activity_type:
        activity_type = record.activity_type
        if "trabajo" in activity_type.lower():
            is_work = True
    elif record.weekly_activity:
        activity_type = WEEKLY_ACTIVITY_SENTINEL

    work_slots = [
        label for label, value in record.slots.items() if WORK_MARKER in value.upper()
    ]
    if work_slots:
        total_hours = len(work_slots) * duration
        is_work = True

    total_hours = max(total_hours, 0.0)
    return WorkHoursResult(
        total_hours=total_hours,
        activity_type=activity_type,
        status=work_status(total_hours) if is_work else FREE_STATUS,
        is_work=is_work,
        slot_count=len(work_slots),
        slot_duration_hours=duration,
        work_slots=work_slots or None,
    )


def compute_effective_daily_hours(
    records: Iterable[ActivitySlotRecord],
    slot_labels: Sequence[str],
    country_is_france: bool,
) -> float:
    """Store-wide effective hours for a day; never negative.

    Work and training slots add one slot each, sick-leave slots subtract one.
    """
    duration = slot_duration_hours(country_is_france)
    total = 0.0
    for record in records:
        for label in slot_labels:
            status = record.slots.get(label)
            if status in ADDING_STATUSES:
                total += duration
            elif status in SUBTRACTING_STATUSES:
                total -= duration
    return max(0.0, total)


class WorkHoursService:
    """Loads a store day from Airtable and aggregates each employee's hours."""

    def __init__(self, repository: AirtableRepository) -> None:
        self._repository = repository

    def slot_labels_for(self, store: StoreProfile) -> list[str]:
        return generate_time_slots(store.country, store.opening_time, store.closing_time)

    def store_slot_labels(self, store_id: str) -> dict[str, Any]:
        store = self._repository.get_store(store_id)
        labels = self.slot_labels_for(store)
        return {
            "store_id": store.record_id,
            "country": store.country,
            "opening_time": store.opening_time,
            "closing_time": store.closing_time,
            "slot_minutes": int(slot_duration_hours(is_france(store.country)) * 60),
            "slots": labels,
        }

    def evaluate_fields(
        self,
        fields: dict[str, Any],
        *,
        country: Optional[str],
        opening_time: Optional[str],
        closing_time: Optional[str],
    ) -> WorkHoursResult:
        labels = generate_time_slots(country, opening_time, closing_time)
        record = ActivitySlotRecord.from_fields(fields, labels)
        return compute_work_hours(record, is_france(country))

    def day_report(self, store_id: str, day_record_id: str) -> dict[str, Any]:
        store = self._repository.get_store(store_id)
        labels = self.slot_labels_for(store)
        france = is_france(store.country)

        records = [
            ActivitySlotRecord.from_fields(raw.get("fields", {}), labels, record_id=raw.get("id", ""))
            for raw in self._repository.list_day_activities(day_record_id, store_record_id=store_id)
        ]
        employees = []
        for record in records:
            result = compute_work_hours(record, france)
            employees.append(
                {
                    "record_id": record.record_id,
                    "employee_name": record.employee_name,
                    **result.to_dict(),
                }
            )

        effective_hours = compute_effective_daily_hours(records, labels, france)
        logger.info(
            "Work hours report | store=%s | day=%s | employees=%s | effective_hours=%s",
            store_id,
            day_record_id,
            len(employees),
            effective_hours,
        )
        return {
            "store_id": store.record_id,
            "day_id": day_record_id,
            "slot_duration_hours": slot_duration_hours(france),
            "slots": labels,
            "employees": employees,
            "effective_hours": effective_hours,
        }

    def update_slot(
        self,
        activity_record_id: str,
        slot_label: str,
        status: Optional[str],
    ) -> dict[str, Any]:
        record = self._repository.update_activity_slot(activity_record_id, slot_label, status)
        return {
            "record_id": record.get("id", activity_record_id),
            "slot": slot_label,
            "status": status,
        }

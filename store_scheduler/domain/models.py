"""Domain models for traffic-based staffing and worked-hours aggregation."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from types import MappingProxyType
from typing import Any, Mapping, Optional, Sequence

from store_scheduler.domain.parsing import parse_number, round_half_up


WORKED_HOURS_FIELD = "Horas Trabajadas"
HOURS_ADDED_FIELD = "Horas +"
HOURS_SUBTRACTED_FIELD = "Horas -"
ACTIVITY_TYPE_FIELD = "Tipo Actividad"
WEEKLY_ACTIVITY_FIELD = "Actividad Semanal"


@dataclass(frozen=True)
class TrafficSample:
    date: date
    hour: str
    entries: int


@dataclass(frozen=True)
class RecommendationParameters:
    desired_attention: float = 25.0
    growth_factor: float = 0.0
    opening_time: Optional[str] = None
    closing_time: Optional[str] = None
    round_to_integer: bool = False
    minimums: Optional[Mapping[str, float]] = None


@dataclass(frozen=True)
class HourlyRecommendation:
    hour: str
    entries: int
    recommendation: float
    formula: str
    minimum_applied: bool = False

    @property
    def display_value(self) -> float:
        return round_half_up(self.recommendation, 2)


@dataclass(frozen=True)
class RecommendationResult:
    recommendations: Mapping[str, HourlyRecommendation]
    parameters: RecommendationParameters

    @property
    def total_recommended(self) -> float:
        return sum(item.recommendation for item in self.recommendations.values())


@dataclass(frozen=True)
class DailyTraffic:
    date: date
    entries_by_hour: Mapping[str, int]
    total_entries: int
    peak_hour: str
    peak_entries: int
    average_per_hour: float
    simulated: bool = False


@dataclass(frozen=True)
class WeeklySummary:
    total_entries: int
    total_recommended: float
    total_recommended_rounded: int
    average_daily_entries: int
    busiest_date: Optional[date]
    busiest_date_entries: int


@dataclass(frozen=True)
class StoreProfile:
    record_id: str
    name: str
    country: Optional[str] = None
    opening_time: Optional[str] = None
    closing_time: Optional[str] = None
    desired_attention: Optional[float] = None
    growth_factor: Optional[float] = None


@dataclass(frozen=True)
class ActivitySlotRecord:
    """Snapshot of one employee's day as stored upstream.

    ``slots`` preserves the order of the store's slot labels; only labels the
    caller declared as schedulable are ever present.
    """

    record_id: str = ""
    slots: Mapping[str, str] = field(default_factory=dict)
    worked_hours: float = 0.0
    hours_added: float = 0.0
    hours_subtracted: float = 0.0
    activity_type: Optional[str] = None
    weekly_activity: bool = False
    employee_name: Optional[str] = None

    @classmethod
    def from_fields(
        cls,
        fields: Mapping[str, Any],
        slot_labels: Sequence[str],
        record_id: str = "",
    ) -> "ActivitySlotRecord":
        slots: dict[str, str] = {}
        for label in slot_labels:
            value = fields.get(label)
            if isinstance(value, str):
                slots[label] = value

        activity_type = fields.get(ACTIVITY_TYPE_FIELD)
        if isinstance(activity_type, list):
            activity_type = ", ".join(str(item) for item in activity_type)

        name = fields.get("Nombre") or fields.get("Name")
        return cls(
            record_id=record_id,
            slots=MappingProxyType(slots),
            worked_hours=parse_number(fields.get(WORKED_HOURS_FIELD)),
            hours_added=parse_number(fields.get(HOURS_ADDED_FIELD)),
            hours_subtracted=parse_number(fields.get(HOURS_SUBTRACTED_FIELD)),
            activity_type=str(activity_type) if activity_type else None,
            weekly_activity=bool(fields.get(WEEKLY_ACTIVITY_FIELD)),
            employee_name=str(name) if name else None,
        )


@dataclass(frozen=True)
class WorkHoursResult:
    total_hours: float
    activity_type: str
    status: str
    is_work: bool
    slot_count: int
    slot_duration_hours: float
    work_slots: Optional[list[str]] = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "total_hours": self.total_hours,
            "activity_type": self.activity_type,
            "status": self.status,
            "is_work": self.is_work,
            "slot_count": self.slot_count,
            "slot_duration_hours": self.slot_duration_hours,
        }
        if self.work_slots:
            payload["work_slots"] = list(self.work_slots)
        return payload

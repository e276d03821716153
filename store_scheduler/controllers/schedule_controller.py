"""HTTP controller layer for store time slots and worked hours."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator

from store_scheduler.controllers.dependencies import get_work_hours_service
from store_scheduler.domain.parsing import try_parse_time_label
from store_scheduler.repository.airtable_repository import (
    SCHEDULE_STATUSES,
    AirtableError,
    AirtableNotConfiguredError,
    RecordNotFoundError,
    ScheduleValidationError,
)
from store_scheduler.services.work_hours_service import WorkHoursService
from store_scheduler.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["schedule"])


class StoreSlotsResponse(BaseModel):
    store_id: str
    country: Optional[str] = None
    opening_time: Optional[str] = None
    closing_time: Optional[str] = None
    slot_minutes: int = Field(gt=0)
    slots: list[str]


class WorkHoursResponse(BaseModel):
    total_hours: float = Field(ge=0.0)
    activity_type: str
    status: str
    is_work: bool
    slot_count: int = Field(ge=0)
    slot_duration_hours: float = Field(gt=0.0)
    work_slots: Optional[list[str]] = None


class EmployeeHoursResponse(WorkHoursResponse):
    record_id: str
    employee_name: Optional[str] = None


class DayHoursResponse(BaseModel):
    store_id: str
    day_id: str
    slot_duration_hours: float = Field(gt=0.0)
    slots: list[str]
    employees: list[EmployeeHoursResponse]
    effective_hours: float = Field(ge=0.0)


class WorkHoursRequest(BaseModel):
    """Raw activity fields as stored upstream plus the store's slot setup."""

    activity_fields: dict[str, Any] = Field(default_factory=dict, alias="fields")
    country: Optional[str] = None
    opening_time: Optional[str] = None
    closing_time: Optional[str] = None


class SlotUpdateRequest(BaseModel):
    slot: str
    status: Optional[str] = None

    @field_validator("slot")
    @classmethod
    def validate_slot_label(cls, value: str) -> str:
        if try_parse_time_label(value) is None:
            raise ValueError("slot must be a HH:MM label")
        return value

    @field_validator("status")
    @classmethod
    def validate_status(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in SCHEDULE_STATUSES:
            raise ValueError(f"status must be one of {', '.join(SCHEDULE_STATUSES)}")
        return value


class SlotUpdateResponse(BaseModel):
    record_id: str
    slot: str
    status: Optional[str] = None


def _airtable_http_error(exc: AirtableError) -> HTTPException:
    if isinstance(exc, RecordNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, AirtableNotConfiguredError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
    if isinstance(exc, ScheduleValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))


@router.get(
    "/tiendas/{store_id}/columnas",
    response_model=StoreSlotsResponse,
    status_code=status.HTTP_200_OK,
)
def get_store_slots(
    store_id: str,
    service: WorkHoursService = Depends(get_work_hours_service),
) -> StoreSlotsResponse:
    try:
        payload = service.store_slot_labels(store_id)
    except AirtableError as exc:
        raise _airtable_http_error(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected store slot failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load store slots",
        ) from exc
    return StoreSlotsResponse(**payload)


@router.get(
    "/tiendas/{store_id}/dias/{day_id}/horas",
    response_model=DayHoursResponse,
    status_code=status.HTTP_200_OK,
)
def get_day_hours(
    store_id: str,
    day_id: str,
    service: WorkHoursService = Depends(get_work_hours_service),
) -> DayHoursResponse:
    """Worked hours for every employee scheduled at a store on one day."""
    try:
        report = service.day_report(store_id, day_id)
    except AirtableError as exc:
        raise _airtable_http_error(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected work hours failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to compute worked hours",
        ) from exc
    return DayHoursResponse(**report)


@router.post(
    "/horas/calcular",
    response_model=WorkHoursResponse,
    status_code=status.HTTP_200_OK,
)
async def calculate_work_hours(
    payload: WorkHoursRequest,
    service: WorkHoursService = Depends(get_work_hours_service),
) -> WorkHoursResponse:
    result = service.evaluate_fields(
        payload.activity_fields,
        country=payload.country,
        opening_time=payload.opening_time,
        closing_time=payload.closing_time,
    )
    return WorkHoursResponse(**result.to_dict())


@router.patch(
    "/actividades/{activity_id}/slots",
    response_model=SlotUpdateResponse,
    status_code=status.HTTP_200_OK,
)
def update_activity_slot(
    activity_id: str,
    payload: SlotUpdateRequest,
    service: WorkHoursService = Depends(get_work_hours_service),
) -> SlotUpdateResponse:
    try:
        updated = service.update_slot(activity_id, payload.slot, payload.status)
    except AirtableError as exc:
        raise _airtable_http_error(exc) from exc
    return SlotUpdateResponse(**updated)

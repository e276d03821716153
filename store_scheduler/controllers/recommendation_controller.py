"""HTTP controller layer for traffic and staffing recommendations."""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from store_scheduler.controllers.dependencies import (
    get_recommendation_service,
    get_traffic_service,
)
from store_scheduler.domain.models import (
    HourlyRecommendation,
    RecommendationParameters,
    RecommendationResult,
)
from store_scheduler.services.recommendation_service import (
    InvalidDateRangeError,
    InvalidParameterError,
    NoDataError,
    RecommendationService,
)
from store_scheduler.services.traffic_service import TrafficService, TrafficValidationError
from store_scheduler.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["recommendations"])

TIME_LABEL_REGEX = r"^\d{1,2}:\d{2}$"


class RecommendationDetails(BaseModel):
    calculoCompleto: str
    minimoAplicado: bool = False


class HourlyRecommendationResponse(BaseModel):
    entradas: int = Field(ge=0)
    recomendacion: float
    recomendacionExacta: float
    detalles: RecommendationDetails


class ParametersResponse(BaseModel):
    atencionDeseada: float = Field(gt=0.0)
    crecimiento: float
    horaApertura: Optional[str] = None
    horaCierre: Optional[str] = None
    redondear: bool = False
    minimos: Optional[dict[str, float]] = None


class RecommendationResultsResponse(BaseModel):
    recomendaciones: dict[str, HourlyRecommendationResponse]
    parametros: ParametersResponse


class RecommendationResponse(BaseModel):
    storeCode: str
    startDate: date
    endDate: date
    simulado: bool
    resultados: RecommendationResultsResponse


class DailySummaryResponse(BaseModel):
    fecha: date
    totalEntradas: int = Field(ge=0)
    horaMaxima: str
    entradasHoraMaxima: int = Field(ge=0)
    totalPersonalRecomendado: float


class WeeklySummaryResponse(BaseModel):
    storeCode: str
    startDate: date
    endDate: date
    simulado: bool
    dias: list[DailySummaryResponse]
    totalEntradasSemana: int = Field(ge=0)
    totalPersonalRecomendado: float
    totalPersonalRedondeado: int
    promedioEntradasDiario: int = Field(ge=0)
    diaMayorTrafico: Optional[date] = None
    entradasDiaMayorTrafico: int = Field(ge=0)


class DailyTrafficResponse(BaseModel):
    fecha: date
    entradasPorHora: dict[str, int]
    totalEntradas: int = Field(ge=0)
    horaMaxima: str
    entradasHoraMaxima: int = Field(ge=0)
    promedioEntradasPorHora: float = Field(ge=0.0)


class TrafficResponse(BaseModel):
    tiendaId: str
    fechaInicio: date
    fechaFin: date
    simulado: bool
    dias: list[DailyTrafficResponse]


def _parse_minimums(raw: Optional[list[str]]) -> Optional[dict[str, float]]:
    """Accept repeated ``HH:MM=value`` query items."""
    if not raw:
        return None
    minimums: dict[str, float] = {}
    for item in raw:
        hour, separator, value = item.partition("=")
        if not separator:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"minimos entries must follow HH:MM=value, got {item!r}",
            )
        try:
            minimums[hour.strip()] = float(value)
        except ValueError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"minimos value must be numeric, got {value!r}",
            ) from exc
    return minimums


def _hour_to_response(item: HourlyRecommendation) -> HourlyRecommendationResponse:
    return HourlyRecommendationResponse(
        entradas=item.entries,
        recomendacion=item.display_value,
        recomendacionExacta=item.recommendation,
        detalles=RecommendationDetails(
            calculoCompleto=item.formula,
            minimoAplicado=item.minimum_applied,
        ),
    )


def _parameters_to_response(params: RecommendationParameters) -> ParametersResponse:
    return ParametersResponse(
        atencionDeseada=params.desired_attention,
        crecimiento=params.growth_factor,
        horaApertura=params.opening_time,
        horaCierre=params.closing_time,
        redondear=params.round_to_integer,
        minimos=dict(params.minimums) if params.minimums else None,
    )


def _results_to_response(result: RecommendationResult) -> RecommendationResultsResponse:
    return RecommendationResultsResponse(
        recomendaciones={
            hour: _hour_to_response(item) for hour, item in result.recommendations.items()
        },
        parametros=_parameters_to_response(result.parameters),
    )


def _build_parameters(
    service: RecommendationService,
    atencion_deseada: Optional[float],
    crecimiento: Optional[float],
    horario_apertura: Optional[str],
    horario_cierre: Optional[str],
    redondear: bool,
    minimos: Optional[list[str]],
) -> RecommendationParameters:
    return service.default_parameters(
        desired_attention=atencion_deseada,
        growth_factor=crecimiento,
        opening_time=horario_apertura,
        closing_time=horario_cierre,
        round_to_integer=redondear,
        minimums=_parse_minimums(minimos),
    )


def _recommendation_http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, (InvalidParameterError, InvalidDateRangeError)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, NoDataError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    logger.exception("Unexpected recommendation failure")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Failed to compute recommendations",
    )


@router.get(
    "/recomendaciones",
    response_model=RecommendationResponse,
    status_code=status.HTTP_200_OK,
)
def get_recommendations(
    store_code: str = Query(alias="storeCode", min_length=1),
    start_date: date = Query(alias="startDate"),
    end_date: date = Query(alias="endDate"),
    atencion_deseada: Optional[float] = Query(default=None, alias="atencionDeseada"),
    crecimiento: Optional[float] = Query(default=None),
    horario_apertura: Optional[str] = Query(
        default=None, alias="horarioApertura", pattern=TIME_LABEL_REGEX
    ),
    horario_cierre: Optional[str] = Query(
        default=None, alias="horarioCierre", pattern=TIME_LABEL_REGEX
    ),
    redondear: bool = Query(default=False),
    minimos: Optional[list[str]] = Query(default=None),
    service: RecommendationService = Depends(get_recommendation_service),
) -> RecommendationResponse:
    """Hourly staffing recommendations for a store over a date range."""
    params = _build_parameters(
        service,
        atencion_deseada,
        crecimiento,
        horario_apertura,
        horario_cierre,
        redondear,
        minimos,
    )
    try:
        outcome = service.recommend_for_range(
            store_code=store_code,
            start_date=start_date,
            end_date=end_date,
            params=params,
        )
    except Exception as exc:
        raise _recommendation_http_error(exc) from exc

    return RecommendationResponse(
        storeCode=outcome.store_code,
        startDate=outcome.start_date,
        endDate=outcome.end_date,
        simulado=outcome.simulated,
        resultados=_results_to_response(outcome.result),
    )


@router.get(
    "/recomendaciones/resumen-semanal",
    response_model=WeeklySummaryResponse,
    status_code=status.HTTP_200_OK,
)
def get_weekly_summary(
    store_code: str = Query(alias="storeCode", min_length=1),
    start_date: date = Query(alias="startDate"),
    end_date: date = Query(alias="endDate"),
    atencion_deseada: Optional[float] = Query(default=None, alias="atencionDeseada"),
    crecimiento: Optional[float] = Query(default=None),
    horario_apertura: Optional[str] = Query(
        default=None, alias="horarioApertura", pattern=TIME_LABEL_REGEX
    ),
    horario_cierre: Optional[str] = Query(
        default=None, alias="horarioCierre", pattern=TIME_LABEL_REGEX
    ),
    redondear: bool = Query(default=False),
    service: RecommendationService = Depends(get_recommendation_service),
) -> WeeklySummaryResponse:
    params = _build_parameters(
        service,
        atencion_deseada,
        crecimiento,
        horario_apertura,
        horario_cierre,
        redondear,
        None,
    )
    try:
        outcome = service.weekly_summary(
            store_code=store_code,
            start_date=start_date,
            end_date=end_date,
            params=params,
        )
    except Exception as exc:
        raise _recommendation_http_error(exc) from exc

    summary = outcome["summary"]
    return WeeklySummaryResponse(
        storeCode=store_code,
        startDate=start_date,
        endDate=end_date,
        simulado=outcome["simulated"],
        dias=[
            DailySummaryResponse(
                fecha=day.date,
                totalEntradas=day.total_entries,
                horaMaxima=day.peak_hour,
                entradasHoraMaxima=day.peak_entries,
                totalPersonalRecomendado=round(result.total_recommended, 2),
            )
            for day, result in outcome["days"]
        ],
        totalEntradasSemana=summary.total_entries,
        totalPersonalRecomendado=summary.total_recommended,
        totalPersonalRedondeado=summary.total_recommended_rounded,
        promedioEntradasDiario=summary.average_daily_entries,
        diaMayorTrafico=summary.busiest_date,
        entradasDiaMayorTrafico=summary.busiest_date_entries,
    )


@router.get("/trafico", response_model=TrafficResponse, status_code=status.HTTP_200_OK)
def get_traffic(
    tienda_id: str = Query(alias="tiendaId", min_length=1),
    fecha_inicio: date = Query(alias="fechaInicio"),
    fecha_fin: date = Query(alias="fechaFin"),
    service: TrafficService = Depends(get_traffic_service),
) -> TrafficResponse:
    try:
        days = service.daily_traffic(tienda_id, fecha_inicio, fecha_fin)
    except TrafficValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected traffic failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load traffic",
        ) from exc

    return TrafficResponse(
        tiendaId=tienda_id,
        fechaInicio=fecha_inicio,
        fechaFin=fecha_fin,
        simulado=any(day.simulated for day in days),
        dias=[
            DailyTrafficResponse(
                fecha=day.date,
                entradasPorHora=dict(day.entries_by_hour),
                totalEntradas=day.total_entries,
                horaMaxima=day.peak_hour,
                entradasHoraMaxima=day.peak_entries,
                promedioEntradasPorHora=day.average_per_hour,
            )
            for day in days
        ],
    )

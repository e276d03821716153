"""Staffing recommendations derived from hourly foot traffic.

``compute_recommendations`` is the pure engine: it groups traffic by hour,
applies the opening window and turns entries into a staffing figure with
``(entries / desired_attention) * (1 + growth_factor)``. Every hour carries
the arithmetic as a readable formula so store managers can audit the number.
``RecommendationService`` wires the engine to the traffic source.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, replace
from datetime import date
from typing import Any, Optional, Sequence

from store_scheduler.domain.constraints import validate_recommendation_parameters
from store_scheduler.domain.models import (
    DailyTraffic,
    HourlyRecommendation,
    RecommendationParameters,
    RecommendationResult,
    TrafficSample,
    WeeklySummary,
)
from store_scheduler.domain.parsing import format_number, parse_time_label, round_half_up
from store_scheduler.services.traffic_service import (
    TrafficService,
    TrafficValidationError,
    summarize_daily_traffic,
)
from store_scheduler.utils.config import Settings, get_settings
from store_scheduler.utils.logger import get_logger


logger = get_logger(__name__)


class RecommendationError(Exception):
    """Base exception for recommendation workflow failures."""


class InvalidParameterError(RecommendationError):
    """Raised when recommendation parameters are unusable."""


class InvalidDateRangeError(RecommendationError):
    """Raised when a requested date range starts after it ends."""


class NoDataError(RecommendationError):
    """Raised when there is no traffic to base recommendations on."""


def _hour_of(label: str) -> int:
    return parse_time_label(label)[0]


def _within_window(hour: int, opening_hour: Optional[int], closing_hour: Optional[int]) -> bool:
    if opening_hour is not None and hour < opening_hour:
        return False
    if closing_hour is not None and hour >= closing_hour:
        return False
    return True


def _build_formula(
    entries: int,
    params: RecommendationParameters,
    value: float,
    minimum: Optional[float],
) -> str:
    shown = format_number(value if params.round_to_integer else round_half_up(value, 2))
    formula = (
        f"({entries} / {format_number(params.desired_attention)}) * "
        f"(1 + {format_number(params.growth_factor)}) = {shown}"
    )
    if minimum is not None:
        formula += f" -> minimum {format_number(minimum)}"
    return formula


def compute_recommendations(
    samples: Sequence[TrafficSample],
    params: RecommendationParameters,
) -> RecommendationResult:
    """Turn traffic samples into one staffing recommendation per hour.

    Entries of the same hour label are summed across every date supplied; the
    caller decides whether that is a single day or a whole week. Hours outside
    ``[opening_time, closing_time)`` are dropped, compared on the hour.
    """
    try:
        validate_recommendation_parameters(params)
    except ValueError as exc:
        raise InvalidParameterError(str(exc)) from exc
    if not samples:
        raise NoDataError("no traffic samples supplied")

    entries_by_hour: dict[str, int] = {}
    for sample in samples:
        if sample.entries < 0:
            raise InvalidParameterError(
                f"traffic entries must be >= 0, got {sample.entries} at {sample.hour}"
            )
        try:
            hour = _hour_of(sample.hour)
        except ValueError as exc:
            raise InvalidParameterError(str(exc)) from exc
        label = f"{hour:02d}:00"
        entries_by_hour[label] = entries_by_hour.get(label, 0) + int(sample.entries)

    opening_hour = _hour_of(params.opening_time) if params.opening_time else None
    closing_hour = _hour_of(params.closing_time) if params.closing_time else None
    minimums = {
        f"{_hour_of(label):02d}:00": float(value)
        for label, value in (params.minimums or {}).items()
    }

    recommendations: "OrderedDict[str, HourlyRecommendation]" = OrderedDict()
    for label in sorted(entries_by_hour):
        if not _within_window(_hour_of(label), opening_hour, closing_hour):
            continue
        entries = entries_by_hour[label]
        value = (entries / params.desired_attention) * (1 + params.growth_factor)
        if params.round_to_integer:
            value = round_half_up(value)

        applied_minimum: Optional[float] = None
        floor = minimums.get(label)
        if floor is not None and value < floor:
            value = floor
            applied_minimum = floor

        recommendations[label] = HourlyRecommendation(
            hour=label,
            entries=entries,
            recommendation=value,
            formula=_build_formula(entries, params, value, applied_minimum),
            minimum_applied=applied_minimum is not None,
        )

    logger.debug(
        "Recommendations computed | hours=%s | desired_attention=%s | growth_factor=%s",
        len(recommendations),
        params.desired_attention,
        params.growth_factor,
    )
    return RecommendationResult(recommendations=recommendations, parameters=params)


def summarize_week(
    daily_traffic: Sequence[DailyTraffic],
    daily_results: Sequence[RecommendationResult],
) -> WeeklySummary:
    total_entries = 0
    busiest_date: Optional[date] = None
    busiest_entries = 0
    for day in daily_traffic:
        total_entries += day.total_entries
        if day.total_entries > busiest_entries:
            busiest_entries = day.total_entries
            busiest_date = day.date

    total_recommended = sum(result.total_recommended for result in daily_results)
    days_with_data = len(daily_traffic)
    average_daily = int(round_half_up(total_entries / days_with_data)) if days_with_data else 0
    return WeeklySummary(
        total_entries=total_entries,
        total_recommended=round_half_up(total_recommended, 2),
        total_recommended_rounded=int(round_half_up(total_recommended)),
        average_daily_entries=average_daily,
        busiest_date=busiest_date,
        busiest_date_entries=busiest_entries,
    )


@dataclass(frozen=True)
class RangeRecommendation:
    store_code: str
    start_date: date
    end_date: date
    result: RecommendationResult
    simulated: bool


class RecommendationService:
    """Fetches traffic for a store/date range and runs the recommendation engine."""

    def __init__(
        self,
        traffic_service: Optional[TrafficService] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._traffic_service = traffic_service or TrafficService(settings=self._settings)

    def default_parameters(self, **overrides: Any) -> RecommendationParameters:
        params = RecommendationParameters(
            desired_attention=self._settings.recommendation_default_desired_attention,
            growth_factor=self._settings.recommendation_default_growth_factor,
        )
        cleaned = {key: value for key, value in overrides.items() if value is not None}
        return replace(params, **cleaned)

    def _fetch(self, store_code: str, start_date: date, end_date: date):
        if start_date > end_date:
            raise InvalidDateRangeError(
                f"start date {start_date.isoformat()} is after end date {end_date.isoformat()}"
            )
        try:
            return self._traffic_service.fetch_samples(store_code, start_date, end_date)
        except TrafficValidationError as exc:
            raise InvalidParameterError(str(exc)) from exc

    def recommend_for_range(
        self,
        *,
        store_code: str,
        start_date: date,
        end_date: date,
        params: RecommendationParameters,
    ) -> RangeRecommendation:
        traffic = self._fetch(store_code, start_date, end_date)
        result = compute_recommendations(traffic.samples, params)
        logger.info(
            "Recommendations served | store=%s | start=%s | end=%s | hours=%s | simulated=%s",
            store_code,
            start_date,
            end_date,
            len(result.recommendations),
            traffic.simulated,
        )
        return RangeRecommendation(
            store_code=store_code,
            start_date=start_date,
            end_date=end_date,
            result=result,
            simulated=traffic.simulated,
        )

    def weekly_summary(
        self,
        *,
        store_code: str,
        start_date: date,
        end_date: date,
        params: RecommendationParameters,
    ) -> dict[str, Any]:
        traffic = self._fetch(store_code, start_date, end_date)
        if not traffic.samples:
            raise NoDataError(f"no traffic for store {store_code}")

        daily = summarize_daily_traffic(traffic.samples, simulated=traffic.simulated)
        per_day: list[tuple[DailyTraffic, RecommendationResult]] = []
        for day in daily:
            day_samples = [sample for sample in traffic.samples if sample.date == day.date]
            per_day.append((day, compute_recommendations(day_samples, params)))

        summary = summarize_week(daily, [result for _, result in per_day])
        return {
            "days": per_day,
            "summary": summary,
            "simulated": traffic.simulated,
        }

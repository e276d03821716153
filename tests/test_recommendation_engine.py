"""Tests for the hourly staffing recommendation engine."""

from __future__ import annotations

from datetime import date

import pytest

from store_scheduler.domain.models import RecommendationParameters, TrafficSample
from store_scheduler.services.recommendation_service import (
    InvalidParameterError,
    NoDataError,
    compute_recommendations,
    summarize_week,
)
from store_scheduler.services.traffic_service import summarize_daily_traffic


DAY = date(2026, 3, 2)


def _samples(entries_by_hour: dict[str, int], day: date = DAY) -> list[TrafficSample]:
    return [
        TrafficSample(date=day, hour=hour, entries=entries)
        for hour, entries in entries_by_hour.items()
    ]


def test_end_to_end_example_with_growth() -> None:
    params = RecommendationParameters(desired_attention=25, growth_factor=0.1)
    result = compute_recommendations(_samples({"08:00": 50, "09:00": 80}), params)

    assert list(result.recommendations) == ["08:00", "09:00"]
    assert result.recommendations["08:00"].recommendation == pytest.approx(2.2)
    assert result.recommendations["09:00"].recommendation == pytest.approx(3.52)
    assert result.recommendations["08:00"].entries == 50
    assert result.recommendations["08:00"].formula == "(50 / 25) * (1 + 0.1) = 2.2"
    assert result.parameters is params


def test_formula_reproduces_arithmetic() -> None:
    params = RecommendationParameters(desired_attention=25, growth_factor=0.15)
    result = compute_recommendations(_samples({"12:00": 120}), params)

    hourly = result.recommendations["12:00"]
    assert hourly.formula == "(120 / 25) * (1 + 0.15) = 5.52"
    assert hourly.display_value == 5.52
    assert hourly.minimum_applied is False


def test_hours_are_normalized_and_sorted() -> None:
    params = RecommendationParameters()
    samples = _samples({"14:30": 10, "9:15": 20, "09:45": 5})
    result = compute_recommendations(samples, params)

    assert list(result.recommendations) == ["09:00", "14:00"]
    assert result.recommendations["09:00"].entries == 25


def test_entries_of_same_hour_are_summed_across_dates() -> None:
    samples = _samples({"10:00": 30}) + _samples({"10:00": 20}, day=date(2026, 3, 3))
    result = compute_recommendations(samples, RecommendationParameters(desired_attention=25))

    assert result.recommendations["10:00"].entries == 50
    assert result.recommendations["10:00"].recommendation == pytest.approx(2.0)


def test_opening_window_is_half_open_on_the_hour() -> None:
    params = RecommendationParameters(opening_time="09:30", closing_time="21:00")
    samples = _samples({"08:00": 10, "09:00": 10, "20:00": 10, "21:00": 10})
    result = compute_recommendations(samples, params)

    assert list(result.recommendations) == ["09:00", "20:00"]


def test_single_window_bound_applies_alone() -> None:
    samples = _samples({"08:00": 10, "12:00": 10, "22:00": 10})

    only_closing = compute_recommendations(
        samples, RecommendationParameters(closing_time="12:00")
    )
    only_opening = compute_recommendations(
        samples, RecommendationParameters(opening_time="12:00")
    )

    assert list(only_closing.recommendations) == ["08:00"]
    assert list(only_opening.recommendations) == ["12:00", "22:00"]


def test_window_excluding_everything_returns_empty_map() -> None:
    params = RecommendationParameters(opening_time="10:00", closing_time="11:00")
    result = compute_recommendations(_samples({"08:00": 10}), params)

    assert dict(result.recommendations) == {}


@pytest.mark.parametrize("desired_attention", [0, -5, float("nan")])
def test_non_positive_desired_attention_raises(desired_attention: float) -> None:
    params = RecommendationParameters(desired_attention=desired_attention)
    with pytest.raises(InvalidParameterError):
        compute_recommendations(_samples({"10:00": 10}), params)


def test_invalid_opening_time_raises() -> None:
    params = RecommendationParameters(opening_time="nine")
    with pytest.raises(InvalidParameterError):
        compute_recommendations(_samples({"10:00": 10}), params)


def test_empty_samples_raise_no_data() -> None:
    with pytest.raises(NoDataError):
        compute_recommendations([], RecommendationParameters())


def test_negative_entries_raise() -> None:
    with pytest.raises(InvalidParameterError):
        compute_recommendations(_samples({"10:00": -1}), RecommendationParameters())


def test_round_to_integer_rounds_half_up() -> None:
    params = RecommendationParameters(desired_attention=20, round_to_integer=True)
    result = compute_recommendations(_samples({"10:00": 50, "11:00": 45}), params)

    assert result.recommendations["10:00"].recommendation == 3
    assert result.recommendations["11:00"].recommendation == 2
    assert result.recommendations["10:00"].formula == "(50 / 20) * (1 + 0) = 3"


def test_hourly_minimum_floors_recommendation() -> None:
    params = RecommendationParameters(
        desired_attention=25,
        minimums={"09:00": 2, "10:00": 1},
    )
    result = compute_recommendations(_samples({"09:00": 10, "10:00": 100}), params)

    floored = result.recommendations["09:00"]
    assert floored.recommendation == 2
    assert floored.minimum_applied is True
    assert floored.formula == "(10 / 25) * (1 + 0) = 2 -> minimum 2"

    untouched = result.recommendations["10:00"]
    assert untouched.recommendation == pytest.approx(4.0)
    assert untouched.minimum_applied is False


def test_negative_minimum_is_rejected() -> None:
    params = RecommendationParameters(minimums={"09:00": -1})
    with pytest.raises(InvalidParameterError):
        compute_recommendations(_samples({"09:00": 10}), params)


def test_repeated_calls_are_identical() -> None:
    params = RecommendationParameters(desired_attention=30, growth_factor=0.2)
    samples = _samples({"09:00": 33, "10:00": 71, "11:00": 0})

    first = compute_recommendations(samples, params)
    second = compute_recommendations(samples, params)

    assert first == second


def test_summarize_week_totals_and_busiest_day() -> None:
    params = RecommendationParameters(desired_attention=25)
    day_one = _samples({"09:00": 50, "10:00": 100})
    day_two = _samples({"09:00": 25}, day=date(2026, 3, 3))

    daily = summarize_daily_traffic(day_one + day_two)
    results = [
        compute_recommendations(day_one, params),
        compute_recommendations(day_two, params),
    ]
    summary = summarize_week(daily, results)

    assert summary.total_entries == 175
    assert summary.total_recommended == pytest.approx(7.0)
    assert summary.total_recommended_rounded == 7
    assert summary.average_daily_entries == 88
    assert summary.busiest_date == DAY
    assert summary.busiest_date_entries == 150

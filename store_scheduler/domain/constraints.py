"""Domain-level validation rules for staffing recommendation inputs."""

from __future__ import annotations

import math

from store_scheduler.domain.models import RecommendationParameters
from store_scheduler.domain.parsing import parse_time_label


def validate_recommendation_parameters(params: RecommendationParameters) -> None:
    if not math.isfinite(params.desired_attention) or params.desired_attention <= 0:
        raise ValueError("desired_attention must be > 0")
    if not math.isfinite(params.growth_factor):
        raise ValueError("growth_factor must be a finite number")
    if params.opening_time is not None:
        parse_time_label(params.opening_time)
    if params.closing_time is not None:
        parse_time_label(params.closing_time)
    if params.minimums:
        for hour, minimum in params.minimums.items():
            parse_time_label(hour)
            if minimum < 0:
                raise ValueError(f"minimum for {hour} must be >= 0")

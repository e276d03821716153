"""Hourly foot-traffic source backed by the HR API with a simulated fallback."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Iterable, Optional

import httpx
import numpy as np
import pandas as pd

from store_scheduler.domain.models import DailyTraffic, TrafficSample
from store_scheduler.domain.parsing import format_time_label, parse_number
from store_scheduler.utils.config import Settings, get_settings
from store_scheduler.utils.logger import get_logger


logger = get_logger(__name__)

STORE_ACCESS_ENDPOINT = "/api/v1/rrhh/get_stores_access"

# Average entries per opening hour used when no live data is available.
SIMULATED_HOURLY_PATTERN: dict[int, int] = {
    9: 15,
    10: 25,
    11: 35,
    12: 45,
    13: 50,
    14: 40,
    15: 30,
    16: 35,
    17: 45,
    18: 50,
    19: 40,
    20: 25,
    21: 15,
}
SIMULATED_VARIATION = 0.2


class TrafficError(Exception):
    """Base exception for traffic retrieval failures."""


class TrafficValidationError(TrafficError):
    """Raised when a traffic query is malformed."""


@dataclass(frozen=True)
class TrafficFetchResult:
    samples: list[TrafficSample]
    simulated: bool


def iter_dates(start: date, end: date) -> Iterable[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def _hour_from_record(raw_hour: Any) -> Optional[int]:
    if raw_hour is None:
        return None
    head = str(raw_hour).strip().split(":")[0]
    try:
        hour = int(head)
    except ValueError:
        return None
    if not 0 <= hour <= 23:
        return None
    return hour


def summarize_daily_traffic(
    samples: list[TrafficSample],
    simulated: bool = False,
) -> list[DailyTraffic]:
    """Per-date totals, peak hour and mean entries over hours with traffic."""
    if not samples:
        return []

    frame = pd.DataFrame(
        [
            {"date": sample.date, "hour": sample.hour, "entries": sample.entries}
            for sample in samples
        ]
    )
    frame = frame.groupby(["date", "hour"], as_index=False)["entries"].sum()
    frame = frame.sort_values(by=["date", "hour"])

    summaries: list[DailyTraffic] = []
    for day, day_frame in frame.groupby("date", sort=True):
        with_traffic = day_frame[day_frame["entries"] > 0]
        total = int(day_frame["entries"].sum())
        if with_traffic.empty:
            peak_hour, peak_entries, average = "", 0, 0.0
        else:
            peak_row = with_traffic.loc[with_traffic["entries"].idxmax()]
            peak_hour = str(peak_row["hour"])
            peak_entries = int(peak_row["entries"])
            average = float(with_traffic["entries"].mean())
        summaries.append(
            DailyTraffic(
                date=day,
                entries_by_hour={
                    str(row.hour): int(row.entries) for row in day_frame.itertuples()
                },
                total_entries=total,
                peak_hour=peak_hour,
                peak_entries=peak_entries,
                average_per_hour=average,
                simulated=simulated,
            )
        )
    return summaries


class TrafficService:
    """Fetches hourly entries per store/date, simulating when the API is unavailable."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._client = client

    def _http_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                base_url=self._settings.traffic_api_base_url or "",
                timeout=self._settings.http_timeout_seconds,
            )
        return self._client

    def simulate_day(self, store_code: str, day: date) -> list[TrafficSample]:
        """Deterministic synthetic traffic for one store/date."""
        store_seed = sum(ord(char) for char in store_code)
        rng = np.random.default_rng(
            [self._settings.synthetic_random_seed, store_seed, day.toordinal()]
        )
        hours = sorted(SIMULATED_HOURLY_PATTERN)
        variations = rng.uniform(-SIMULATED_VARIATION, SIMULATED_VARIATION, size=len(hours))
        return [
            TrafficSample(
                date=day,
                hour=format_time_label(hour),
                entries=int(round(SIMULATED_HOURLY_PATTERN[hour] * (1.0 + variation))),
            )
            for hour, variation in zip(hours, variations)
        ]

    def _fetch_live_day(self, store_code: str, day: date) -> list[TrafficSample]:
        response = self._http_client().get(
            STORE_ACCESS_ENDPOINT,
            params={"store_code": store_code, "date": day.isoformat()},
            headers={
                "Authorization": f"Bearer {self._settings.traffic_api_token}",
                "Accept": "application/json",
            },
        )
        response.raise_for_status()
        payload = response.json()

        entries_by_hour: dict[int, int] = {}
        records = payload.get("data") if isinstance(payload, dict) else None
        for record in records or []:
            if not isinstance(record, dict):
                continue
            hour = _hour_from_record(record.get("hora"))
            if hour is None:
                continue
            entries = max(0, int(parse_number(record.get("entradas"))))
            entries_by_hour[hour] = entries_by_hour.get(hour, 0) + entries

        return [
            TrafficSample(date=day, hour=format_time_label(hour), entries=entries)
            for hour, entries in sorted(entries_by_hour.items())
        ]

    def fetch_samples(self, store_code: str, start: date, end: date) -> TrafficFetchResult:
        if not store_code or not store_code.strip():
            raise TrafficValidationError("store_code is required")
        if start > end:
            raise TrafficValidationError("start date must not be after end date")
        span_days = (end - start).days + 1
        if span_days > self._settings.traffic_max_range_days:
            raise TrafficValidationError(
                f"date range spans {span_days} days; "
                f"at most {self._settings.traffic_max_range_days} are allowed"
            )

        days = list(iter_dates(start, end))
        if not self._settings.traffic_api_configured:
            logger.info(
                "Traffic API not configured; simulating | store=%s | days=%s",
                store_code,
                len(days),
            )
            return TrafficFetchResult(
                samples=[sample for day in days for sample in self.simulate_day(store_code, day)],
                simulated=True,
            )

        try:
            samples = [
                sample for day in days for sample in self._fetch_live_day(store_code, day)
            ]
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning(
                "Traffic API request failed; falling back to simulation | store=%s | error=%s",
                store_code,
                exc,
            )
            return TrafficFetchResult(
                samples=[sample for day in days for sample in self.simulate_day(store_code, day)],
                simulated=True,
            )

        logger.info(
            "Traffic fetched | store=%s | start=%s | end=%s | samples=%s",
            store_code,
            start,
            end,
            len(samples),
        )
        return TrafficFetchResult(samples=samples, simulated=False)

    def daily_traffic(self, store_code: str, start: date, end: date) -> list[DailyTraffic]:
        result = self.fetch_samples(store_code, start, end)
        return summarize_daily_traffic(result.samples, simulated=result.simulated)

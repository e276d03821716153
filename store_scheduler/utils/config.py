"""Environment-driven application settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional


PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _env_str(name: str, default: str = "") -> str:
    return os.getenv(name, default).strip()


def _env_optional(name: str) -> Optional[str]:
    value = _env_str(name)
    return value or None


def _env_float(name: str, default: float) -> float:
    raw = _env_str(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def _env_int(name: str, default: int) -> int:
    raw = _env_str(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    log_level: str

    admin_secret: Optional[str]
    admin_cookie_name: str

    airtable_api_url: str
    airtable_api_key: Optional[str]
    airtable_base_id: Optional[str]
    airtable_store_table_id: Optional[str]
    airtable_daily_activity_table_id: Optional[str]
    airtable_page_size: int

    traffic_api_base_url: Optional[str]
    traffic_api_token: Optional[str]
    http_timeout_seconds: float
    traffic_max_range_days: int

    store_cache_ttl_seconds: float
    snapshot_cache_directory: Path
    synthetic_random_seed: int

    recommendation_default_desired_attention: float
    recommendation_default_growth_factor: float

    @property
    def airtable_configured(self) -> bool:
        return bool(self.airtable_api_key and self.airtable_base_id)

    @property
    def traffic_api_configured(self) -> bool:
        return bool(self.traffic_api_base_url and self.traffic_api_token)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build settings once per process from environment variables."""
    snapshot_directory = _env_str("SNAPSHOT_CACHE_DIRECTORY") or str(
        PROJECT_ROOT / "cache" / "lcdc"
    )
    return Settings(
        app_name=_env_str("APP_NAME", "Store Scheduler"),
        app_version=_env_str("APP_VERSION", "1.0.0"),
        log_level=_env_str("LOG_LEVEL", "INFO"),
        admin_secret=_env_optional("ADMIN_SECRET"),
        admin_cookie_name=_env_str("ADMIN_COOKIE_NAME", "admin_session"),
        airtable_api_url=_env_str("AIRTABLE_API_URL", "https://api.airtable.com/v0"),
        airtable_api_key=_env_optional("AIRTABLE_API_KEY"),
        airtable_base_id=_env_optional("AIRTABLE_BASE_ID"),
        airtable_store_table_id=_env_optional("AIRTABLE_STORE_TABLE_ID"),
        airtable_daily_activity_table_id=_env_optional("AIRTABLE_DAILY_ACTIVITY_TABLE_ID"),
        airtable_page_size=_env_int("AIRTABLE_PAGE_SIZE", 100),
        traffic_api_base_url=_env_optional("TRAFFIC_API_BASE_URL"),
        traffic_api_token=_env_optional("TRAFFIC_API_TOKEN"),
        http_timeout_seconds=_env_float("HTTP_TIMEOUT_SECONDS", 5.0),
        traffic_max_range_days=_env_int("TRAFFIC_MAX_RANGE_DAYS", 31),
        store_cache_ttl_seconds=_env_float("STORE_CACHE_TTL_SECONDS", 300.0),
        snapshot_cache_directory=Path(snapshot_directory),
        synthetic_random_seed=_env_int("SYNTHETIC_RANDOM_SEED", 42),
        recommendation_default_desired_attention=_env_float(
            "RECOMMENDATION_DEFAULT_DESIRED_ATTENTION", 25.0
        ),
        recommendation_default_growth_factor=_env_float(
            "RECOMMENDATION_DEFAULT_GROWTH_FACTOR", 0.0
        ),
    )

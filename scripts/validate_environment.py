#!/usr/bin/env python3
"""Validate local store scheduler environment readiness."""

from __future__ import annotations

import importlib
import shutil
import sys
import tempfile
from dataclasses import replace
from datetime import date
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from store_scheduler.domain.time_slots import generate_time_slots
from store_scheduler.repository.airtable_repository import AirtableRepository
from store_scheduler.services.recommendation_service import RecommendationService
from store_scheduler.services.traffic_service import TrafficService
from store_scheduler.utils.cache import SnapshotCache, SnapshotType
from store_scheduler.utils.config import get_settings

SEPARATOR_LINE = "=" * 44


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def main() -> int:
    results: list[str] = []
    all_passed = True
    temp_dir = tempfile.mkdtemp(prefix="store-scheduler-env-")

    # CHECK 1: Python version >= 3.10
    if sys.version_info >= (3, 10):
        ok, line = _print_result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _print_result(
            "Python version >= 3.10",
            False,
            f"found {sys.version.split()[0]}",
        )
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 2: Required packages importable
    package_names = ["fastapi", "uvicorn", "pydantic", "httpx", "numpy", "pandas", "pytest"]
    import_errors: list[str] = []
    for module_name in package_names:
        try:
            importlib.import_module(module_name)
        except ImportError as exc:
            import_errors.append(f"{module_name} ({exc})")
    if import_errors:
        ok, line = _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    else:
        ok, line = _print_result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    try:
        settings = replace(
            get_settings(),
            traffic_api_base_url=None,
            traffic_api_token=None,
            snapshot_cache_directory=Path(temp_dir) / "lcdc",
        )

        # CHECK 3: Slot grid derivation
        try:
            slots = generate_time_slots("España", "09:00", "21:00")
            if len(slots) != 24:
                raise RuntimeError(f"expected 24 slots, got {len(slots)}")
            ok, line = _print_result("Time slots: 24 half-hour slots", True)
        except Exception as exc:
            ok, line = _print_result("Time slots", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 4: Recommendations over simulated traffic
        try:
            service = RecommendationService(
                traffic_service=TrafficService(settings=settings),
                settings=settings,
            )
            outcome = service.recommend_for_range(
                store_code="VALIDATION",
                start_date=date(2026, 1, 5),
                end_date=date(2026, 1, 5),
                params=service.default_parameters(),
            )
            ok, line = _print_result(
                "Simulated recommendations",
                True,
                f": {len(outcome.result.recommendations)} hours",
            )
        except Exception as exc:
            ok, line = _print_result("Simulated recommendations", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 5: Snapshot cache is writable
        try:
            cache = SnapshotCache(settings.snapshot_cache_directory)
            cache.save(SnapshotType.STORES, [{"id": "validation"}])
            if cache.latest(SnapshotType.STORES) != [{"id": "validation"}]:
                raise RuntimeError("snapshot round trip mismatch")
            ok, line = _print_result("Snapshot cache", True)
        except Exception as exc:
            ok, line = _print_result("Snapshot cache", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 6: Airtable connectivity (optional)
        base_settings = get_settings()
        if base_settings.airtable_configured:
            connected = AirtableRepository(settings=base_settings).check_connection()
            ok, line = _print_result("Airtable connection", connected, "" if connected else "unreachable")
            all_passed = all_passed and ok
        else:
            line = "[SKIP] Airtable connection: credentials not configured"
        results.append(line)

    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)

    print(SEPARATOR_LINE)
    print(" Store Scheduler Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(" All checks passed. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())

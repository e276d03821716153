from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from store_scheduler.utils.cache import SnapshotCache, SnapshotType, TTLCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_ttl_cache_expires_entries() -> None:
    clock = FakeClock()
    cache: TTLCache[str] = TTLCache(ttl_seconds=60, clock=clock)
    cache.set("store:rec1", "Madrid")

    clock.now += 59
    assert cache.get("store:rec1") == "Madrid"

    clock.now += 2
    assert cache.get("store:rec1") is None
    assert len(cache) == 0


def test_get_or_load_calls_loader_once_until_expiry() -> None:
    clock = FakeClock()
    cache: TTLCache[int] = TTLCache(ttl_seconds=10, clock=clock)
    calls: list[int] = []

    def loader() -> int:
        calls.append(1)
        return len(calls)

    assert cache.get_or_load("key", loader) == 1
    assert cache.get_or_load("key", loader) == 1
    clock.now += 11
    assert cache.get_or_load("key", loader) == 2
    assert len(calls) == 2


def test_cleanup_removes_only_expired_entries() -> None:
    clock = FakeClock()
    cache: TTLCache[str] = TTLCache(ttl_seconds=10, clock=clock)
    cache.set("short", "a", ttl_seconds=1)
    cache.set("long", "b")

    clock.now += 5
    assert cache.cleanup() == 1
    assert cache.get("long") == "b"


def test_ttl_must_be_positive() -> None:
    with pytest.raises(ValueError):
        TTLCache(ttl_seconds=0)


def test_snapshot_cache_returns_latest_payload(tmp_path) -> None:
    stamps = iter(
        [
            datetime(2026, 1, 1, 8, 0, tzinfo=timezone.utc),
            datetime(2026, 1, 1, 8, 0, tzinfo=timezone.utc) + timedelta(minutes=5),
        ]
    )
    cache = SnapshotCache(tmp_path / "lcdc", now=lambda: next(stamps))

    cache.save(SnapshotType.USERS, [{"id": 1}])
    cache.save(SnapshotType.USERS, [{"id": 2}])

    assert cache.latest(SnapshotType.USERS) == [{"id": 2}]
    assert cache.latest(SnapshotType.STORES) is None
    assert len(list((tmp_path / "lcdc" / "users").glob("*.json"))) == 2


def test_snapshot_cache_ignores_corrupt_file(tmp_path) -> None:
    target = tmp_path / "stores"
    target.mkdir()
    (target / "2026-01-01T00-00-00-000000.json").write_text("{not json", encoding="utf-8")

    assert SnapshotCache(tmp_path).latest(SnapshotType.STORES) is None

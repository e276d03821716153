"""Caches used by collaborator services.

``create_app`` constructs one of each and hands them to the services that
need them.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from threading import RLock
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from store_scheduler.utils.logger import get_logger


logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class _CacheEntry(Generic[T]):
    value: T
    expires_at: float


class TTLCache(Generic[T]):
    """In-memory key/value store whose entries expire after ``ttl_seconds``."""

    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")
        self._ttl_seconds = float(ttl_seconds)
        self._clock = clock
        self._entries: Dict[str, _CacheEntry[T]] = {}
        self._lock = RLock()

    def set(self, key: str, value: T, ttl_seconds: Optional[float] = None) -> None:
        ttl = self._ttl_seconds if ttl_seconds is None else float(ttl_seconds)
        with self._lock:
            self._entries[key] = _CacheEntry(value=value, expires_at=self._clock() + ttl)
        logger.debug("Cache set | key=%s | ttl=%s", key, ttl)

    def get(self, key: str) -> Optional[T]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() > entry.expires_at:
                del self._entries[key]
                return None
            return entry.value

    def get_or_load(self, key: str, loader: Callable[[], T]) -> T:
        cached = self.get(key)
        if cached is not None:
            return cached
        value = loader()
        self.set(key, value)
        return value

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def cleanup(self) -> int:
        """Drop expired entries and return how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if now > entry.expires_at]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class SnapshotType(str, Enum):
    USERS = "users"
    STORES = "stores"


class SnapshotCache:
    """Keeps one timestamped JSON file per fetch, grouped by snapshot type."""

    def __init__(
        self,
        directory: Path,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._directory = Path(directory)
        self._now = now

    def _type_directory(self, snapshot_type: SnapshotType) -> Path:
        return self._directory / snapshot_type.value

    def save(self, snapshot_type: SnapshotType, payload: Any) -> Path:
        target_dir = self._type_directory(snapshot_type)
        target_dir.mkdir(parents=True, exist_ok=True)
        stamp = self._now().strftime("%Y-%m-%dT%H-%M-%S-%f")
        path = target_dir / f"{stamp}.json"
        path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        logger.info("Snapshot saved | type=%s | path=%s", snapshot_type.value, path)
        return path

    def latest(self, snapshot_type: SnapshotType) -> Optional[Any]:
        target_dir = self._type_directory(snapshot_type)
        if not target_dir.is_dir():
            return None
        # File names are sortable timestamps, newest last.
        files = sorted(target_dir.glob("*.json"))
        if not files:
            return None
        latest_file = files[-1]
        try:
            return json.loads(latest_file.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("Snapshot file is not valid JSON | path=%s", latest_file)
            return None

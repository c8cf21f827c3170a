"""Two-tier analytics cache over a size-limited key-value substrate.

The *core* entry holds the project list and computed analytics; the
*extended* entry holds the raw activity and KPI lists. Each carries its own
timestamp and TTL and is read, expired and written on its own. When a write
exceeds the substrate's budget the least essential slots are dropped one at a
time; an entry that cannot be written even in its smallest form is removed so
a stale copy can never pass as fresh.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Tuple

import orjson

from ..config import settings
from ..models.analytics import AnalyticsResult
from ..models.records import Activity, KPIRecord, Project

logger = logging.getLogger(__name__)


CORE_KEY = "boq.analytics.core"
EXTENDED_KEY = "boq.analytics.extended"

# Slots dropped first-to-last when an entry does not fit
CORE_DROP_ORDER: Tuple[str, ...] = ("analytics",)
EXTENDED_DROP_ORDER: Tuple[str, ...] = ("activities",)


class CacheQuotaExceeded(Exception):
    """The substrate refused a write because it would exceed its budget."""


class CacheSubstrate(Protocol):
    def get(self, key: str) -> Optional[bytes]: ...

    def set(self, key: str, blob: bytes) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryCacheSubstrate:
    """Process-local key-value store with a total byte budget."""

    def __init__(self, max_bytes: Optional[int] = None) -> None:
        self.max_bytes = settings.cache_max_bytes if max_bytes is None else max_bytes
        self._data: Dict[str, bytes] = {}

    @property
    def used_bytes(self) -> int:
        return sum(len(blob) for blob in self._data.values())

    def get(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def set(self, key: str, blob: bytes) -> None:
        projected = self.used_bytes - len(self._data.get(key, b"")) + len(blob)
        if projected > self.max_bytes:
            raise CacheQuotaExceeded(f"{key}: {projected} bytes exceeds budget of {self.max_bytes}")
        self._data[key] = blob

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


@dataclass
class CachedAnalytics:
    projects: List[Project]
    analytics: Optional[List[AnalyticsResult]] = None
    activities: Optional[List[Activity]] = None
    kpis: Optional[List[KPIRecord]] = None
    timestamp: float = field(default=0.0)


class AnalyticsCache:
    def __init__(
        self,
        substrate: CacheSubstrate,
        core_ttl_seconds: Optional[float] = None,
        extended_ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.substrate = substrate
        self.core_ttl = settings.cache_core_ttl_seconds if core_ttl_seconds is None else core_ttl_seconds
        self.extended_ttl = (
            settings.cache_extended_ttl_seconds if extended_ttl_seconds is None else extended_ttl_seconds
        )
        self.clock = clock

    def _read(self, key: str, ttl: float) -> Optional[dict]:
        blob = self.substrate.get(key)
        if blob is None:
            return None
        try:
            payload = orjson.loads(blob)
        except orjson.JSONDecodeError:
            logger.warning("Discarding unreadable cache entry %s", key)
            self.substrate.remove(key)
            return None
        timestamp = payload.get("timestamp") if isinstance(payload, dict) else None
        if not isinstance(timestamp, (int, float)) or self.clock() - timestamp > ttl:
            self.substrate.remove(key)
            return None
        return payload

    def _write(self, key: str, payload: Dict[str, Any], drop_order: Sequence[str]) -> Tuple[str, ...]:
        """Write ``payload``, shedding slots in ``drop_order`` until it fits.

        Returns the slots that were kept, or an empty tuple if nothing fit.
        """
        slots = dict(payload)
        pending = list(drop_order)
        while True:
            try:
                self.substrate.set(key, orjson.dumps(slots))
                return tuple(name for name in slots if name != "timestamp")
            except CacheQuotaExceeded as exc:
                if not pending:
                    logger.warning("Cache entry %s does not fit even when trimmed; removing it: %s", key, exc)
                    self.substrate.remove(key)
                    return ()
                dropped = pending.pop(0)
                slots.pop(dropped, None)
                logger.warning("Cache entry %s over quota; dropping slot %s", key, dropped)

    def store(
        self,
        projects: Sequence[Project],
        analytics: Sequence[AnalyticsResult],
        activities: Sequence[Activity] = (),
        kpis: Sequence[KPIRecord] = (),
    ) -> None:
        # Old entries must not hold budget the new ones need
        self.invalidate()
        timestamp = self.clock()
        self._write(
            CORE_KEY,
            {
                "timestamp": timestamp,
                "projects": [project.model_dump(mode="json") for project in projects],
                "analytics": [result.model_dump(mode="json") for result in analytics],
            },
            CORE_DROP_ORDER,
        )
        self._write(
            EXTENDED_KEY,
            {
                "timestamp": timestamp,
                "kpis": [record.model_dump(mode="json") for record in kpis],
                "activities": [activity.model_dump(mode="json") for activity in activities],
            },
            EXTENDED_DROP_ORDER,
        )

    def load(self) -> Optional[CachedAnalytics]:
        core = self._read(CORE_KEY, self.core_ttl)
        if core is None:
            return None
        cached = CachedAnalytics(
            projects=[Project.model_validate(row) for row in core.get("projects") or []],
            timestamp=float(core["timestamp"]),
        )
        if "analytics" in core:
            cached.analytics = [AnalyticsResult.model_validate(row) for row in core["analytics"]]

        extended = self._read(EXTENDED_KEY, self.extended_ttl)
        if extended is not None:
            if "activities" in extended:
                cached.activities = [Activity.model_validate(row) for row in extended["activities"]]
            if "kpis" in extended:
                cached.kpis = [KPIRecord.model_validate(row) for row in extended["kpis"]]
        return cached

    def invalidate(self) -> None:
        self.substrate.remove(CORE_KEY)
        self.substrate.remove(EXTENDED_KEY)

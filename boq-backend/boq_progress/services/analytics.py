from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from time import perf_counter
from typing import Callable, Iterator, List, Optional, Sequence

from ..config import settings
from ..models.analytics import AnalyticsListResponse, AnalyticsResult
from ..models.records import Activity, KPIRecord, Project
from ..repos.activity_repo import ActivityRepo
from ..repos.kpi_repo import KpiRepo
from ..repos.record_store import RecordStore
from .analytics_cache import AnalyticsCache
from .matcher import project_codes_match, record_project_key
from .valuation import compute_project_analytics

logger = logging.getLogger(__name__)


DEFAULT_CHUNK_SIZE = 50

ProgressCallback = Callable[[int, int], None]


def _chunks(projects: Sequence[Project], chunk_size: int) -> Iterator[Sequence[Project]]:
    if chunk_size < 1:
        raise ValueError("chunk_size must be at least 1")
    for offset in range(0, len(projects), chunk_size):
        yield projects[offset : offset + chunk_size]


async def compute_all_analytics(
    projects: Sequence[Project],
    activities: Sequence[Activity],
    kpis: Sequence[KPIRecord],
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    progress: Optional[ProgressCallback] = None,
    as_of: Optional[datetime] = None,
) -> List[AnalyticsResult]:
    """Compute analytics for every project, yielding to the event loop between chunks."""
    moment = as_of or datetime.now()
    total = len(projects)
    results: List[AnalyticsResult] = []
    for index, chunk in enumerate(_chunks(projects, chunk_size)):
        if index:
            await asyncio.sleep(0)
        results.extend(compute_project_analytics(project, activities, kpis, as_of=moment) for project in chunk)
        if progress is not None:
            progress(len(results), total)
    return results


def compute_all_analytics_sync(
    projects: Sequence[Project],
    activities: Sequence[Activity],
    kpis: Sequence[KPIRecord],
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    progress: Optional[ProgressCallback] = None,
    as_of: Optional[datetime] = None,
) -> List[AnalyticsResult]:
    moment = as_of or datetime.now()
    total = len(projects)
    results: List[AnalyticsResult] = []
    for chunk in _chunks(projects, chunk_size):
        results.extend(compute_project_analytics(project, activities, kpis, as_of=moment) for project in chunk)
        if progress is not None:
            progress(len(results), total)
    return results


class AnalyticsService:
    """Loads project data from the store and serves analytics, cached when fresh."""

    def __init__(
        self,
        store: RecordStore,
        cache: AnalyticsCache,
        chunk_size: Optional[int] = None,
    ) -> None:
        self.activity_repo = ActivityRepo(store)
        self.kpi_repo = KpiRepo(store)
        self.cache = cache
        self.chunk_size = chunk_size or settings.analytics_chunk_size

    async def get_all(self, refresh: bool = False, as_of: Optional[datetime] = None) -> AnalyticsListResponse:
        moment = as_of or datetime.now()
        if not refresh:
            cached = self.cache.load()
            if cached is not None and cached.analytics is not None:
                logger.debug("analytics served from cache projects=%s", len(cached.analytics))
                # Cached figures are as of the moment they were stored
                return AnalyticsListResponse(
                    projects=cached.analytics,
                    from_cache=True,
                    as_of=datetime.fromtimestamp(cached.timestamp),
                )

        start = perf_counter()
        projects = await asyncio.to_thread(self.activity_repo.fetch_projects)
        activities = await asyncio.to_thread(self.activity_repo.fetch_activities)
        kpis = await asyncio.to_thread(self.kpi_repo.fetch_all)

        def _report(done: int, total: int) -> None:
            logger.debug("analytics progress %s/%s", done, total)

        results = await compute_all_analytics(
            projects,
            activities,
            kpis,
            chunk_size=self.chunk_size,
            progress=_report,
            as_of=moment,
        )
        await asyncio.to_thread(self.cache.store, projects, results, activities, kpis)
        elapsed = (perf_counter() - start) * 1000
        logger.info(
            "analytics recomputed projects=%s activities=%s kpis=%s elapsed_ms=%.2f",
            len(projects),
            len(activities),
            len(kpis),
            elapsed,
        )
        return AnalyticsListResponse(projects=results, from_cache=False, as_of=moment)

    async def get_project(
        self,
        project_code: str,
        refresh: bool = False,
        as_of: Optional[datetime] = None,
    ) -> Optional[AnalyticsResult]:
        listing = await self.get_all(refresh=refresh, as_of=as_of)
        wanted = project_code.strip().upper()
        # Exact key first so "P4110" never resolves to a "P4110-P" sub-project
        for result in listing.projects:
            if record_project_key(result) == wanted:
                return result
        for result in listing.projects:
            if project_codes_match(record_project_key(result), wanted):
                return result
        return None

    def invalidate(self) -> None:
        self.cache.invalidate()

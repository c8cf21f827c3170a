from __future__ import annotations

from datetime import date

import pytest

from boq_progress.models.calendar import CalendarConfig
from boq_progress.models.records import Activity, Project
from boq_progress.repos.record_store import InMemoryRecordStore
from boq_progress.services.analytics_cache import AnalyticsCache, MemoryCacheSubstrate


class FakeClock:
    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return AnalyticsCache(
        MemoryCacheSubstrate(max_bytes=5 * 1024 * 1024),
        core_ttl_seconds=1800,
        extended_ttl_seconds=1800,
        clock=clock,
    )


@pytest.fixture
def five_day_week():
    # Saturday and Sunday off
    return CalendarConfig.build(weekend_days={5, 6})


@pytest.fixture
def excavation():
    return Activity(
        project_code="P1",
        project_full_code="P1-A",
        activity_name="Excavation",
        zone="Zone 1",
        unit="m3",
        planned_units=10,
        total_units=100,
        total_value=2000,
        start=date(2024, 1, 1),
        deadline=date(2024, 1, 12),
    )


@pytest.fixture
def seeded_store(store):
    store.insert(
        "projects",
        [
            Project(project_code="P1", project_full_code="P1-A", project_name="North Works").model_dump(),
            Project(project_code="P2", project_full_code="P2", project_name="South Works").model_dump(),
        ],
    )
    store.insert(
        "boq_activities",
        [
            {
                "project_code": "P1",
                "project_full_code": "P1-A",
                "activity_name": "Excavation",
                "zone": "Zone 1",
                "total_units": 100,
                "total_value": 2000,
            },
            {
                "project_code": "P2",
                "project_full_code": "P2",
                "activity_name": "Piling",
                "rate": 5,
            },
        ],
    )
    store.insert(
        "kpi_records",
        [
            {
                "input_type": "Planned",
                "project_code": "P1",
                "project_full_code": "P1-A",
                "activity_name": "Excavation",
                "quantity": 50,
                "value": 50,
                "target_date": date(2024, 1, 8),
            },
            {
                "input_type": "Planned",
                "project_code": "P1",
                "project_full_code": "P1-A",
                "activity_name": "Excavation",
                "quantity": 50,
                "target_date": date(2024, 1, 15),
            },
            {
                "input_type": "Actual",
                "project_code": "P1",
                "project_full_code": "P1-A",
                "activity_name": "Excavation",
                "quantity": 30,
                "activity_date": date(2024, 1, 8),
            },
            {
                "input_type": "Planned",
                "project_code": "P2",
                "project_full_code": "P2",
                "activity_name": "Piling",
                "quantity": 10,
                "target_date": date(2024, 1, 2),
            },
        ],
    )
    return store

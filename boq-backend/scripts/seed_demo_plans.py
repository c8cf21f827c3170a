from __future__ import annotations

import argparse
import random
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List

from boq_progress.db import PostgresRecordStore, close_pool, initialize_database, open_pool
from boq_progress.models.records import ACTUAL, Activity, KPIRecord, Project
from boq_progress.repos.holiday_repo import HolidayRepo
from boq_progress.repos.kpi_repo import KpiRepo
from boq_progress.repos.record_store import ACTIVITIES_TABLE, PROJECTS_TABLE, RecordStore
from boq_progress.services.plan_sync import sync_plan


@dataclass(frozen=True)
class DemoActivity:
    name: str
    division: str
    unit: str
    total_units: float
    rate: float
    duration_days: int


DEMO_PROJECTS = [
    Project(project_code="P4110", project_full_code="P4110", project_name="Riverside Residences"),
    Project(project_code="P4110", project_sub_code="P", project_full_code="P4110-P", project_name="Riverside Podium"),
    Project(project_code="P5067", project_full_code="P5067", project_name="Harbour Logistics Hub"),
]

DEMO_ACTIVITIES = [
    DemoActivity("Excavation", "Earthworks", "m3", 4200, 18.5, 20),
    DemoActivity("Blinding Concrete", "Concrete", "m3", 310, 95.0, 8),
    DemoActivity("Raft Reinforcement", "Concrete", "t", 145, 1150.0, 15),
    DemoActivity("Blockwork", "Masonry", "m2", 2600, 32.0, 30),
]

ZONES = ["Zone A", "Zone B", "Zone C"]


def build_activities(start: date, rng: random.Random) -> List[Activity]:
    activities: List[Activity] = []
    for project in DEMO_PROJECTS:
        cursor = start
        for template in DEMO_ACTIVITIES:
            zone = rng.choice(ZONES)
            planned = round(template.total_units * rng.uniform(0.8, 1.0))
            activities.append(
                Activity(
                    project_code=project.project_code,
                    project_sub_code=project.project_sub_code,
                    project_full_code=project.project_full_code,
                    activity_name=template.name,
                    zone=f"{project.project_code} - {zone}",
                    division=template.division,
                    unit=template.unit,
                    planned_units=planned,
                    total_units=template.total_units,
                    total_value=round(template.total_units * template.rate, 2),
                    rate=template.rate,
                    start=cursor,
                    deadline=cursor + timedelta(days=template.duration_days),
                )
            )
            cursor += timedelta(days=template.duration_days // 2)
    return activities


def record_actuals(repo: KpiRepo, activity: Activity, today: date, rng: random.Random) -> int:
    """Book a random share of each elapsed planned day as completed work."""
    planned = repo.fetch_generated_plan(activity.project_full_code, activity.activity_name)
    actuals = [
        KPIRecord(
            input_type=ACTUAL,
            project_code=activity.project_code,
            project_sub_code=activity.project_sub_code,
            project_full_code=activity.project_full_code,
            activity_name=activity.activity_name,
            zone=activity.zone,
            section=record.section,
            unit=record.unit,
            quantity=round(record.quantity * rng.uniform(0.6, 1.1), 2),
            activity_date=record.target_date,
            day=record.day,
        )
        for record in planned
        if record.target_date is not None and record.target_date < today
    ]
    if actuals:
        repo.insert_many(actuals)
    return len(actuals)


def seed(store: RecordStore, start: date, today: date, rng: random.Random, dry_run: bool) -> None:
    activities = build_activities(start, rng)
    if dry_run:
        for activity in activities:
            print(f"{activity.project_key:10} {activity.activity_name:20} {activity.start} -> {activity.deadline}")
        return

    store.insert(PROJECTS_TABLE, [project.model_dump(exclude={"id"}) for project in DEMO_PROJECTS])
    store.insert(ACTIVITIES_TABLE, [activity.model_dump(exclude={"id"}) for activity in activities])

    config = HolidayRepo(store).load_calendar()
    repo = KpiRepo(store)
    planned_rows = actual_rows = 0
    for activity in activities:
        result = sync_plan(repo, activity, None, config)
        planned_rows += result.added + result.updated
        actual_rows += record_actuals(repo, activity, today, rng)
    print(f"Seeded {len(activities)} activities, {planned_rows} planned rows, {actual_rows} actual rows.")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed demo projects, BOQ activities and daily plans.")
    parser.add_argument("--start", type=date.fromisoformat, default=None, help="First plan date (default: 30 days ago).")
    parser.add_argument("--seed", type=int, default=None, help="Seed for deterministic output.")
    parser.add_argument("--dry-run", action="store_true", help="Preview activities without writing to the database.")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    today = date.today()
    start = args.start or today - timedelta(days=30)
    rng = random.Random(args.seed)

    if args.dry_run:
        seed(store=None, start=start, today=today, rng=rng, dry_run=True)
        return

    open_pool()
    try:
        initialize_database()
        seed(PostgresRecordStore(), start, today, rng, dry_run=False)
    finally:
        close_pool()


if __name__ == "__main__":
    main()

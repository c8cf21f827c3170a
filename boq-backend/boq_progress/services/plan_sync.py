"""Daily plan generation for BOQ activities and re-synchronisation after edits.

Generated Planned rows are matched to a regenerated plan by position (both
sides oldest-date first) rather than by content, so edits to quantity or date
range rewrite rows in place instead of duplicating them.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from ..models.analytics import PlanSummary, SyncResult
from ..models.calendar import CalendarConfig
from ..models.records import PLANNED, Activity, KPIRecord
from ..repos.kpi_repo import KpiRepo
from ..repos.record_store import RecordStoreError
from .calendar import distribute_quantity

logger = logging.getLogger(__name__)


DEFAULT_UNIT = "No."

# Columns rewritten on an existing generated row during a sync
SYNC_COLUMNS = (
    "project_code",
    "project_sub_code",
    "project_full_code",
    "activity_name",
    "quantity",
    "unit",
    "zone",
    "section",
    "target_date",
    "activity_date",
    "day",
)


def generate_plan(activity: Activity, config: CalendarConfig) -> List[KPIRecord]:
    if activity.start is None or activity.deadline is None:
        logger.info("generate_plan activity=%s skipped: missing start or deadline", activity.activity_name)
        return []
    if activity.planned_units <= 0:
        logger.info("generate_plan activity=%s skipped: no planned units", activity.activity_name)
        return []

    distribution = distribute_quantity(activity.start, activity.deadline, activity.planned_units, config)
    records = [
        KPIRecord(
            input_type=PLANNED,
            project_code=activity.project_code,
            project_sub_code=activity.project_sub_code,
            project_full_code=activity.project_full_code or activity.project_code,
            activity_name=activity.activity_name,
            zone=activity.zone,
            section=activity.zone or activity.division,
            unit=activity.unit or DEFAULT_UNIT,
            quantity=entry.quantity,
            target_date=entry.date,
            activity_date=entry.date,
            day=f"Day {index} - {entry.date.strftime('%A')}",
        )
        for index, entry in enumerate(distribution, start=1)
    ]
    logger.debug("generate_plan activity=%s days=%s", activity.activity_name, len(records))
    return records


def summarize_plan(records: Sequence[KPIRecord]) -> PlanSummary:
    if not records:
        return PlanSummary()
    total = sum(record.quantity for record in records)
    dates = sorted(record.target_date for record in records if record.target_date is not None)
    return PlanSummary(
        total_quantity=round(total, 2),
        number_of_days=len(records),
        average_per_day=round(total / len(records), 2),
        start_date=dates[0] if dates else None,
        end_date=dates[-1] if dates else None,
    )


def _sync_patch(record: KPIRecord) -> dict:
    row = record.to_row()
    return {column: row[column] for column in SYNC_COLUMNS}


def sync_plan(
    repo: KpiRepo,
    activity: Activity,
    old_activity_name: Optional[str],
    config: CalendarConfig,
) -> SyncResult:
    """Bring the stored plan for ``activity`` in line with its current definition.

    ``old_activity_name`` is the name the activity had before the edit; the
    stored rows are still filed under it. Each row write stands alone: a failed
    write is logged and skipped, and only successful writes are counted.
    """
    lookup_name = old_activity_name or activity.activity_name
    project_key = activity.project_full_code or activity.project_code
    existing = repo.fetch_generated_plan(project_key, lookup_name)
    generated = generate_plan(activity, config)

    old_count = len(existing)
    new_count = len(generated)
    result = SyncResult()

    for current, replacement in zip(existing, generated):
        try:
            repo.update(current.id, _sync_patch(replacement))
        except RecordStoreError:
            logger.exception("sync_plan update failed row_id=%s activity=%s", current.id, activity.activity_name)
        else:
            result.updated += 1

    for replacement in generated[old_count:]:
        try:
            repo.insert(replacement)
        except RecordStoreError:
            logger.exception("sync_plan insert failed day=%s activity=%s", replacement.day, activity.activity_name)
        else:
            result.added += 1

    for stale in existing[new_count:]:
        try:
            repo.delete(stale.id)
        except RecordStoreError:
            logger.exception("sync_plan delete failed row_id=%s activity=%s", stale.id, activity.activity_name)
        else:
            result.deleted += 1

    logger.info(
        "sync_plan project=%s activity=%s previous=%s existing=%s generated=%s added=%s updated=%s deleted=%s",
        project_key,
        activity.activity_name,
        lookup_name,
        old_count,
        new_count,
        result.added,
        result.updated,
        result.deleted,
    )
    return result

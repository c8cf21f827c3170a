"""Record valuation and per-project progress windows.

Three windows are reported for every project:

* total            - every Planned record, whatever its date;
* planned to date  - Planned records dated on or before yesterday;
* earned           - every Actual record, whatever its date.

Value and quantity aggregations run through the same ``window_totals`` so the
two can never disagree on which records fall in which window.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from time import perf_counter
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from ..models.analytics import AnalyticsResult
from ..models.records import Activity, KPIRecord, Project
from .matcher import belongs_to_project, resolve_activity

logger = logging.getLogger(__name__)


# Value columns that equal the quantity to this tolerance hold a quantity, not money
VALUE_EQUALS_QUANTITY_TOLERANCE = 0.01


@dataclass(frozen=True)
class WindowTotals:
    total: float = 0.0
    planned_to_date: float = 0.0
    earned: float = 0.0


def resolve_rate(record: KPIRecord, activity: Optional[Activity]) -> Optional[float]:
    if activity is not None:
        rate = activity.unit_rate
        if rate:
            return rate
    if record.rate > 0:
        return record.rate
    return None


def _priced_quantity(record: KPIRecord, activity: Optional[Activity]) -> float:
    rate = resolve_rate(record, activity)
    if rate is None or record.quantity <= 0:
        return 0.0
    return record.quantity * rate


def derive_value(record: KPIRecord, activity: Optional[Activity]) -> float:
    if record.is_actual:
        if record.actual_value > 0:
            return record.actual_value
        if record.value > 0:
            return record.value
        return _priced_quantity(record, activity)

    if record.value > 0 and abs(record.value - record.quantity) >= VALUE_EQUALS_QUANTITY_TOLERANCE:
        return record.value
    return _priced_quantity(record, activity)


def yesterday_cutoff(as_of: Optional[datetime] = None) -> date:
    moment = as_of or datetime.now()
    return moment.date() - timedelta(days=1)


def window_totals(
    records: Iterable[KPIRecord],
    measure: Callable[[KPIRecord], float],
    cutoff: date,
) -> WindowTotals:
    total = planned_to_date = earned = 0.0
    for record in records:
        if record.is_planned:
            amount = measure(record)
            total += amount
            reference = record.reference_date
            if reference is not None and reference <= cutoff:
                planned_to_date += amount
        elif record.is_actual:
            earned += measure(record)
    return WindowTotals(total=total, planned_to_date=planned_to_date, earned=earned)


def _clamp_pct(value: float) -> float:
    return max(0.0, min(100.0, value))


def progress_percentages(total: float, planned_to_date: float, earned: float) -> Tuple[float, float, float]:
    if total <= 0:
        return 0.0, 0.0, 0.0
    planned_pct = _clamp_pct(planned_to_date / total * 100.0)
    actual_pct = _clamp_pct(earned / total * 100.0)
    return planned_pct, actual_pct, actual_pct - planned_pct


def compute_project_analytics(
    project: Project,
    activities: Sequence[Activity],
    kpis: Sequence[KPIRecord],
    as_of: Optional[datetime] = None,
) -> AnalyticsResult:
    start = perf_counter()
    cutoff = yesterday_cutoff(as_of)
    project_activities = [a for a in activities if belongs_to_project(a, project)]
    project_kpis = [k for k in kpis if belongs_to_project(k, project)]

    def _value(record: KPIRecord) -> float:
        return derive_value(record, resolve_activity(record, project_activities, project))

    values = window_totals(project_kpis, _value, cutoff)
    quantities = window_totals(project_kpis, lambda record: record.quantity, cutoff)
    planned_pct, actual_pct, variance = progress_percentages(values.total, values.planned_to_date, values.earned)

    elapsed = (perf_counter() - start) * 1000
    logger.debug(
        "compute_project_analytics project=%s activities=%s kpis=%s elapsed_ms=%.2f",
        project.project_key,
        len(project_activities),
        len(project_kpis),
        elapsed,
    )
    return AnalyticsResult(
        project_code=project.project_code,
        project_full_code=project.project_full_code,
        total_value=values.total,
        planned_to_date_value=values.planned_to_date,
        earned_value=values.earned,
        total_quantity=quantities.total,
        planned_to_date_quantity=quantities.planned_to_date,
        earned_quantity=quantities.earned,
        planned_pct=planned_pct,
        actual_pct=actual_pct,
        variance=variance,
        planned_records=sum(1 for k in project_kpis if k.is_planned),
        actual_records=sum(1 for k in project_kpis if k.is_actual),
    )


def rank_by_progress(results: Iterable[AnalyticsResult], limit: int = 5) -> List[AnalyticsResult]:
    ranked = sorted(results, key=lambda result: result.actual_pct, reverse=True)
    return ranked[: max(limit, 0)]


def projects_behind_schedule(results: Iterable[AnalyticsResult], tolerance: float = 0.0) -> List[AnalyticsResult]:
    return [result for result in results if result.variance < -abs(tolerance)]

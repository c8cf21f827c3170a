from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from ..dependencies import get_analytics_cache, get_calendar, get_record_store
from ..models.analytics import PlanPreviewResponse, PlanSyncRequest, SyncResult
from ..models.calendar import CalendarConfig
from ..models.records import Activity
from ..repos.kpi_repo import KpiRepo
from ..repos.record_store import RecordStore
from ..services.analytics_cache import AnalyticsCache
from ..services.plan_sync import generate_plan, summarize_plan, sync_plan

router = APIRouter(prefix="/api/v1/plans", tags=["plans"])


def _require_identity(activity: Activity) -> None:
    if not activity.activity_name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="activityName is required")
    if not activity.project_key:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="projectCode is required")


@router.post("/preview", response_model=PlanPreviewResponse)
def preview_plan(activity: Activity, config: CalendarConfig = Depends(get_calendar)) -> PlanPreviewResponse:
    _require_identity(activity)
    records = generate_plan(activity, config)
    return PlanPreviewResponse(records=records, summary=summarize_plan(records))


@router.post("/sync", response_model=SyncResult)
def sync(
    payload: PlanSyncRequest,
    store: RecordStore = Depends(get_record_store),
    cache: AnalyticsCache = Depends(get_analytics_cache),
    config: CalendarConfig = Depends(get_calendar),
) -> SyncResult:
    _require_identity(payload.activity)
    result = sync_plan(KpiRepo(store), payload.activity, payload.previous_name, config)
    if result.added or result.updated or result.deleted:
        cache.invalidate()
    return result

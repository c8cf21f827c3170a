from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from ..config import settings
from ..dependencies import get_analytics_service
from ..models.analytics import AnalyticsListResponse, AnalyticsResult
from ..services.analytics import AnalyticsService

router = APIRouter(prefix="/api/v1/analytics", tags=["analytics"])


def _ensure_feature_enabled() -> None:
    if not settings.feature_analytics_api:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Analytics API is disabled")


@router.get("", response_model=AnalyticsListResponse)
async def all_projects(
    refresh: bool = Query(default=False),
    service: AnalyticsService = Depends(get_analytics_service),
) -> AnalyticsListResponse:
    _ensure_feature_enabled()
    return await service.get_all(refresh=refresh)


@router.post("/invalidate", status_code=status.HTTP_204_NO_CONTENT)
def invalidate(service: AnalyticsService = Depends(get_analytics_service)) -> Response:
    _ensure_feature_enabled()
    service.invalidate()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{project_code}", response_model=AnalyticsResult)
async def one_project(
    project_code: str,
    refresh: bool = Query(default=False),
    service: AnalyticsService = Depends(get_analytics_service),
) -> AnalyticsResult:
    _ensure_feature_enabled()
    result = await service.get_project(project_code, refresh=refresh)
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    return result

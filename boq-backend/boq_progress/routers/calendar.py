from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..dependencies import get_calendar
from ..models.analytics import WorkdaysResponse
from ..models.calendar import CalendarConfig
from ..services.calendar import working_days

router = APIRouter(prefix="/api/v1/calendar", tags=["calendar"])

MAX_RANGE_DAYS = 366 * 10


@router.get("/workdays", response_model=WorkdaysResponse)
def workdays(
    start: date = Query(...),
    end: date = Query(...),
    config: CalendarConfig = Depends(get_calendar),
) -> WorkdaysResponse:
    if end < start:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="end must not be before start")
    if (end - start).days > MAX_RANGE_DAYS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Date range too large")
    days = working_days(start, end, config)
    return WorkdaysResponse(start=start, end=end, count=len(days), dates=days)

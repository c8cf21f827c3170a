from __future__ import annotations

from fastapi import Depends, Request

from .models.calendar import CalendarConfig
from .repos.holiday_repo import HolidayRepo
from .repos.record_store import RecordStore
from .services.analytics import AnalyticsService
from .services.analytics_cache import AnalyticsCache


def get_record_store(request: Request) -> RecordStore:
    return request.app.state.store


def get_analytics_cache(request: Request) -> AnalyticsCache:
    return request.app.state.analytics_cache


def get_calendar(store: RecordStore = Depends(get_record_store)) -> CalendarConfig:
    return HolidayRepo(store).load_calendar()


def get_analytics_service(
    store: RecordStore = Depends(get_record_store),
    cache: AnalyticsCache = Depends(get_analytics_cache),
) -> AnalyticsService:
    return AnalyticsService(store, cache)

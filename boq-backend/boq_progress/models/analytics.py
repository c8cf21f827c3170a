from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .records import Activity, KPIRecord


class AnalyticsResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)
    project_code: str = Field(alias="projectCode")
    project_full_code: str = Field(default="", alias="projectFullCode")
    total_value: float = Field(default=0.0, alias="totalValue")
    planned_to_date_value: float = Field(default=0.0, alias="plannedToDateValue")
    earned_value: float = Field(default=0.0, alias="earnedValue")
    total_quantity: float = Field(default=0.0, alias="totalQuantity")
    planned_to_date_quantity: float = Field(default=0.0, alias="plannedToDateQuantity")
    earned_quantity: float = Field(default=0.0, alias="earnedQuantity")
    planned_pct: float = Field(default=0.0, alias="plannedPct")
    actual_pct: float = Field(default=0.0, alias="actualPct")
    variance: float = 0.0
    planned_records: int = Field(default=0, alias="plannedRecords")
    actual_records: int = Field(default=0, alias="actualRecords")


class AnalyticsListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    projects: List[AnalyticsResult] = Field(default_factory=list)
    from_cache: bool = Field(default=False, alias="fromCache")
    as_of: datetime = Field(alias="asOf")


class SyncResult(BaseModel):
    added: int = 0
    updated: int = 0
    deleted: int = 0


class PlanSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    total_quantity: float = Field(default=0.0, alias="totalQuantity")
    number_of_days: int = Field(default=0, alias="numberOfDays")
    average_per_day: float = Field(default=0.0, alias="averagePerDay")
    start_date: Optional[date] = Field(default=None, alias="startDate")
    end_date: Optional[date] = Field(default=None, alias="endDate")


class PlanPreviewResponse(BaseModel):
    records: List[KPIRecord] = Field(default_factory=list)
    summary: PlanSummary


class PlanSyncRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    activity: Activity
    previous_name: Optional[str] = Field(default=None, alias="previousName")


class WorkdaysResponse(BaseModel):
    start: date
    end: date
    count: int
    dates: List[date] = Field(default_factory=list)

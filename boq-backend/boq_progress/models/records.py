"""Typed project, activity and KPI rows.

Rows arrive from storage with a canonical snake_case column plus several
legacy spellings for the same concept ("Project Full Code", "Quantity",
"Target Date", ...). They are normalised here, once, so the engine never has
to probe alternative keys.
"""
from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any, Literal, Optional, Tuple, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


PLANNED = "Planned"
ACTUAL = "Actual"

InputType = Literal["Planned", "Actual"]

_EMPTY_DATE_MARKERS = {"", "n/a", "null", "none", "-"}


def coerce_float(value: Any) -> float:
    """Parse loosely formatted numbers; anything unusable becomes ``0.0``."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).replace(",", "").strip()
        if not text:
            return 0.0
        try:
            number = float(text)
        except ValueError:
            return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def coerce_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if text.lower() in _EMPTY_DATE_MARKERS:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


def coerce_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _choices(*names: str) -> AliasChoices:
    return AliasChoices(*names)


class _ProjectCoded(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    project_code: str = Field(
        default="",
        validation_alias=_choices("project_code", "projectCode", "Project Code"),
        serialization_alias="projectCode",
    )
    project_sub_code: str = Field(
        default="",
        validation_alias=_choices("project_sub_code", "projectSubCode", "Project Sub Code"),
        serialization_alias="projectSubCode",
    )
    project_full_code: str = Field(
        default="",
        validation_alias=_choices("project_full_code", "projectFullCode", "Project Full Code"),
        serialization_alias="projectFullCode",
    )

    @field_validator("project_code", "project_sub_code", "project_full_code", mode="before")
    @classmethod
    def _code_text(cls, value):
        return coerce_text(value)

    @property
    def project_key(self) -> str:
        """The most specific code available; a full code always wins."""
        return self.project_full_code or self.project_code


class Project(_ProjectCoded):
    id: Optional[Union[int, str]] = None
    project_name: str = Field(
        default="",
        validation_alias=_choices("project_name", "projectName", "Project Name"),
        serialization_alias="projectName",
    )

    @field_validator("project_name", mode="before")
    @classmethod
    def _name_text(cls, value):
        return coerce_text(value)


class Activity(_ProjectCoded):
    id: Optional[Union[int, str]] = None
    activity_name: str = Field(
        default="",
        validation_alias=_choices("activity_name", "activityName", "Activity Name", "activity", "Activity"),
        serialization_alias="activityName",
    )
    zone: str = Field(
        default="",
        validation_alias=_choices("zone", "zone_ref", "zoneRef", "Zone Ref", "zone_number", "Zone Number", "Zone"),
    )
    division: str = Field(
        default="",
        validation_alias=_choices("division", "activity_division", "activityDivision", "Activity Division"),
    )
    unit: str = Field(default="", validation_alias=_choices("unit", "Unit"))
    planned_units: float = Field(
        default=0.0,
        validation_alias=_choices("planned_units", "plannedUnits", "Planned Units"),
        serialization_alias="plannedUnits",
    )
    total_units: float = Field(
        default=0.0,
        validation_alias=_choices("total_units", "totalUnits", "Total Units"),
        serialization_alias="totalUnits",
    )
    total_value: float = Field(
        default=0.0,
        validation_alias=_choices("total_value", "totalValue", "Total Value"),
        serialization_alias="totalValue",
    )
    rate: float = Field(default=0.0, validation_alias=_choices("rate", "Rate"))
    start: Optional[date] = Field(
        default=None,
        validation_alias=_choices(
            "start",
            "planned_activity_start_date",
            "plannedActivityStartDate",
            "Planned Activity Start Date",
            "Activity Start Date",
        ),
    )
    deadline: Optional[date] = Field(default=None, validation_alias=_choices("deadline", "Deadline"))

    @field_validator("activity_name", "zone", "division", "unit", mode="before")
    @classmethod
    def _text(cls, value):
        return coerce_text(value)

    @field_validator("planned_units", "total_units", "total_value", "rate", mode="before")
    @classmethod
    def _number(cls, value):
        return coerce_float(value)

    @field_validator("start", "deadline", mode="before")
    @classmethod
    def _date(cls, value):
        return coerce_date(value)

    @property
    def unit_rate(self) -> Optional[float]:
        if self.total_value > 0 and self.total_units > 0:
            return self.total_value / self.total_units
        if self.rate > 0:
            return self.rate
        return None

    @property
    def identity(self) -> Tuple[str, str, str]:
        return (
            self.project_key.upper(),
            self.activity_name.upper(),
            self.zone.upper(),
        )


class KPIRecord(_ProjectCoded):
    id: Optional[Union[int, str]] = None
    input_type: Optional[InputType] = Field(
        default=None,
        validation_alias=_choices("input_type", "inputType", "Input Type"),
        serialization_alias="inputType",
    )
    activity_name: str = Field(
        default="",
        validation_alias=_choices("activity_name", "activityName", "Activity Name", "activity", "Activity"),
        serialization_alias="activityName",
    )
    zone: str = Field(default="", validation_alias=_choices("zone", "Zone", "zone_number", "Zone Number"))
    section: str = Field(default="", validation_alias=_choices("section", "Section"))
    unit: str = Field(default="", validation_alias=_choices("unit", "Unit"))
    quantity: float = Field(default=0.0, validation_alias=_choices("quantity", "Quantity"))
    value: float = Field(default=0.0, validation_alias=_choices("value", "Value"))
    actual_value: float = Field(
        default=0.0,
        validation_alias=_choices("actual_value", "actualValue", "Actual Value"),
        serialization_alias="actualValue",
    )
    rate: float = Field(default=0.0, validation_alias=_choices("rate", "Rate"))
    target_date: Optional[date] = Field(
        default=None,
        validation_alias=_choices("target_date", "targetDate", "Target Date"),
        serialization_alias="targetDate",
    )
    activity_date: Optional[date] = Field(
        default=None,
        validation_alias=_choices("activity_date", "activityDate", "Activity Date"),
        serialization_alias="activityDate",
    )
    day: str = Field(default="", validation_alias=_choices("day", "Day"))

    @field_validator("input_type", mode="before")
    @classmethod
    def _input_type(cls, value):
        text = coerce_text(value).lower()
        if text == "planned":
            return PLANNED
        if text == "actual":
            return ACTUAL
        return None

    @field_validator("activity_name", "zone", "section", "unit", "day", mode="before")
    @classmethod
    def _text(cls, value):
        return coerce_text(value)

    @field_validator("quantity", "value", "actual_value", "rate", mode="before")
    @classmethod
    def _number(cls, value):
        return coerce_float(value)

    @field_validator("target_date", "activity_date", mode="before")
    @classmethod
    def _date(cls, value):
        return coerce_date(value)

    @property
    def is_planned(self) -> bool:
        return self.input_type == PLANNED

    @property
    def is_actual(self) -> bool:
        return self.input_type == ACTUAL

    @property
    def reference_date(self) -> Optional[date]:
        return self.activity_date or self.target_date

    def to_row(self) -> dict:
        """Canonical column mapping used when writing to the record store."""
        return self.model_dump(exclude={"id"})

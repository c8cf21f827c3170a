from datetime import date
from typing import FrozenSet, Iterable, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_WEEKEND_DAYS: FrozenSet[int] = frozenset({6})


class Holiday(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    date: date
    name: str = ""
    is_recurring: bool = Field(default=False, alias="isRecurring")


class CalendarConfig(BaseModel):
    """Working-calendar rules applied to a single computation.

    ``weekend_days`` uses ``date.weekday()`` numbering (Monday=0 .. Sunday=6).
    ``include_weekends`` turns weekend days into working days for compressed
    schedules; holidays still apply.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    weekend_days: FrozenSet[int] = Field(default=DEFAULT_WEEKEND_DAYS, alias="weekendDays")
    holidays: Tuple[Holiday, ...] = ()
    include_weekends: bool = Field(default=False, alias="includeWeekends")

    @field_validator("weekend_days", mode="before")
    @classmethod
    def _weekday_numbers(cls, value):
        if value is None:
            return DEFAULT_WEEKEND_DAYS
        return frozenset(int(day) for day in value if 0 <= int(day) <= 6)

    @classmethod
    def build(
        cls,
        weekend_days: Optional[Iterable[int]] = None,
        holidays: Iterable[Union[Holiday, dict]] = (),
        include_weekends: bool = False,
    ) -> "CalendarConfig":
        return cls(
            weekend_days=DEFAULT_WEEKEND_DAYS if weekend_days is None else frozenset(weekend_days),
            holidays=tuple(h if isinstance(h, Holiday) else Holiday.model_validate(h) for h in holidays),
            include_weekends=include_weekends,
        )


class DailyQuantity(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: date
    quantity: float

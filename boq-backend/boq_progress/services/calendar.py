from __future__ import annotations

import math
from datetime import date, timedelta
from typing import List, Optional

from ..config import settings
from ..models.calendar import CalendarConfig, DailyQuantity, Holiday


ONE_DAY = timedelta(days=1)


def default_config(holidays=()) -> CalendarConfig:
    return CalendarConfig.build(
        weekend_days=settings.calendar_weekend_days,
        holidays=holidays,
        include_weekends=settings.calendar_include_weekends,
    )


def _matching_holiday(day: date, config: CalendarConfig) -> Optional[Holiday]:
    for holiday in config.holidays:
        if holiday.is_recurring:
            if (holiday.date.month, holiday.date.day) == (day.month, day.day):
                return holiday
        elif holiday.date == day:
            return holiday
    return None


def is_weekend(day: date, config: CalendarConfig) -> bool:
    if config.include_weekends:
        return False
    return day.weekday() in config.weekend_days


def is_holiday(day: date, config: CalendarConfig) -> bool:
    return _matching_holiday(day, config) is not None


def holiday_name(day: date, config: CalendarConfig) -> Optional[str]:
    holiday = _matching_holiday(day, config)
    return holiday.name if holiday else None


def is_working_day(day: date, config: CalendarConfig) -> bool:
    return not is_weekend(day, config) and not is_holiday(day, config)


def working_days(start: date, end: date, config: CalendarConfig) -> List[date]:
    days: List[date] = []
    current = start
    while current <= end:
        if is_working_day(current, config):
            days.append(current)
        current += ONE_DAY
    return days


def count_workdays(start: date, end: date, config: CalendarConfig) -> int:
    return len(working_days(start, end, config))


def add_workdays(start: date, n: int, config: CalendarConfig) -> date:
    """Step forward from ``start`` until ``n`` working days have been passed."""
    result = start
    added = 0
    while added < n:
        result += ONE_DAY
        if is_working_day(result, config):
            added += 1
    return result


def end_date_for_duration(start: date, duration: int, config: CalendarConfig) -> date:
    if duration <= 0:
        return start
    return add_workdays(start, duration - 1, config)


def _normalise_total(total) -> float:
    try:
        total = float(total)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(total) or math.isinf(total) or total < 0:
        return 0.0
    return total


def distribute_quantity(start: date, end: date, total_qty, config: CalendarConfig) -> List[DailyQuantity]:
    """Spread ``total_qty`` over the working days between ``start`` and ``end``.

    Every day receives ``floor(total / days)``; the first ``remainder`` days
    receive one more unit. A fractional residue, if any, lands on the first day
    that did not get the extra unit, so the quantities always add back up to
    the requested total.
    """
    days = working_days(start, end, config)
    if not days:
        return []

    total = _normalise_total(total_qty)
    count = len(days)
    base = math.floor(total / count)
    remainder = total - base * count
    bumped = min(int(math.floor(remainder)), count)
    residue = remainder - bumped

    quantities: List[float] = [float(base + 1 if index < bumped else base) for index in range(count)]
    if residue > 0:
        quantities[min(bumped, count - 1)] += residue

    return [DailyQuantity(date=day, quantity=quantity) for day, quantity in zip(days, quantities)]

from __future__ import annotations

from datetime import date

import pytest

from boq_progress.models.calendar import CalendarConfig, Holiday
from boq_progress.services.calendar import (
    add_workdays,
    count_workdays,
    distribute_quantity,
    end_date_for_duration,
    holiday_name,
    is_working_day,
    working_days,
)

# 2024-01-01 is a Monday
MONDAY = date(2024, 1, 1)
SUNDAY = date(2024, 1, 7)


def test_default_weekend_is_sunday_only():
    config = CalendarConfig.build()
    assert count_workdays(MONDAY, SUNDAY, config) == 6
    assert not is_working_day(SUNDAY, config)
    assert is_working_day(date(2024, 1, 6), config)


def test_holidays_and_recurring_holidays_are_excluded():
    config = CalendarConfig.build(
        weekend_days={5, 6},
        holidays=[
            Holiday(date=date(2024, 1, 3), name="Site closure"),
            {"date": "2019-01-05", "name": "Founders Day", "isRecurring": True},
        ],
    )
    days = working_days(MONDAY, SUNDAY, config)
    assert days == [date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 4)]
    assert holiday_name(date(2024, 1, 3), config) == "Site closure"
    assert holiday_name(date(2031, 1, 5), config) == "Founders Day"
    assert holiday_name(date(2024, 1, 4), config) is None


def test_holiday_on_weekend_is_not_double_counted(five_day_week):
    config = CalendarConfig.build(
        weekend_days={5, 6},
        holidays=[
            Holiday(date=SUNDAY, name="Site closure"),
            Holiday(date=date(2020, 1, 6), name="Founders Day", is_recurring=True),
        ],
    )
    assert count_workdays(MONDAY, SUNDAY, config) == count_workdays(MONDAY, SUNDAY, five_day_week) == 5
    distribution = distribute_quantity(MONDAY, SUNDAY, 10, config)
    assert len(distribution) == 5
    assert [entry.quantity for entry in distribution] == [2, 2, 2, 2, 2]


def test_include_weekends_keeps_holidays():
    config = CalendarConfig.build(
        weekend_days={5, 6},
        holidays=[Holiday(date=date(2024, 1, 6), name="Strike")],
        include_weekends=True,
    )
    days = working_days(MONDAY, SUNDAY, config)
    assert len(days) == 6
    assert date(2024, 1, 6) not in days
    assert SUNDAY in days


def test_reversed_range_has_no_working_days(five_day_week):
    assert working_days(SUNDAY, MONDAY, five_day_week) == []
    assert count_workdays(SUNDAY, MONDAY, five_day_week) == 0
    assert distribute_quantity(SUNDAY, MONDAY, 10, five_day_week) == []


def test_weekend_only_range_distributes_nothing(five_day_week):
    assert distribute_quantity(date(2024, 1, 6), SUNDAY, 10, five_day_week) == []


def test_add_workdays_skips_weekends(five_day_week):
    friday = date(2024, 1, 5)
    assert add_workdays(friday, 1, five_day_week) == date(2024, 1, 8)
    assert add_workdays(friday, 0, five_day_week) == friday
    assert add_workdays(friday, -3, five_day_week) == friday


def test_end_date_for_duration_counts_start_day(five_day_week):
    assert end_date_for_duration(MONDAY, 5, five_day_week) == date(2024, 1, 5)
    assert end_date_for_duration(MONDAY, 6, five_day_week) == date(2024, 1, 8)
    assert end_date_for_duration(MONDAY, 0, five_day_week) == MONDAY


def test_hundred_units_over_six_workdays():
    distribution = distribute_quantity(MONDAY, SUNDAY, 100, CalendarConfig.build())
    assert [entry.quantity for entry in distribution] == [17, 17, 17, 17, 16, 16]
    assert [entry.date for entry in distribution][-1] == date(2024, 1, 6)


def test_even_split(five_day_week):
    distribution = distribute_quantity(MONDAY, date(2024, 1, 5), 10, five_day_week)
    assert [entry.quantity for entry in distribution] == [2, 2, 2, 2, 2]


def test_fractional_residue_lands_after_bumped_days(five_day_week):
    distribution = distribute_quantity(MONDAY, date(2024, 1, 3), 7.5, five_day_week)
    assert [entry.quantity for entry in distribution] == pytest.approx([3, 2.5, 2])


@pytest.mark.parametrize("total", [0, 1, 7, 99.25, 1234, 5000.5])
def test_distribution_always_adds_up(five_day_week, total):
    distribution = distribute_quantity(MONDAY, date(2024, 2, 29), total, five_day_week)
    assert sum(entry.quantity for entry in distribution) == pytest.approx(total)
    assert all(entry.quantity >= 0 for entry in distribution)


@pytest.mark.parametrize("total", [None, "abc", float("nan"), -5])
def test_unusable_totals_distribute_zero(five_day_week, total):
    distribution = distribute_quantity(MONDAY, date(2024, 1, 5), total, five_day_week)
    assert len(distribution) == 5
    assert all(entry.quantity == 0 for entry in distribution)

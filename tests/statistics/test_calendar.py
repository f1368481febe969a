from datetime import date

import pytest

from src.school_attendance.school_attendance.core.exceptions import ValidationError
from src.school_attendance.school_attendance.statistics.calendar import WorkingCalendar


def test_default_calendar_excludes_only_sunday():
    cal = WorkingCalendar()

    assert cal.is_working_day(date(2024, 3, 2))  # Saturday
    assert not cal.is_working_day(date(2024, 3, 3))  # Sunday


def test_working_days_in_march_2024():
    # 31 days, five Sundays
    assert WorkingCalendar().working_days_between(date(2024, 3, 1), date(2024, 3, 31)) == 26


def test_working_days_single_day_range():
    cal = WorkingCalendar()

    assert cal.working_days_between(date(2024, 3, 4), date(2024, 3, 4)) == 1
    assert cal.working_days_between(date(2024, 3, 3), date(2024, 3, 3)) == 0


def test_working_days_with_weekend_excluded():
    cal = WorkingCalendar.from_weekdays([6, 7])

    assert cal.working_days_between(date(2024, 3, 1), date(2024, 3, 10)) == 6


def test_inverted_range_is_rejected():
    with pytest.raises(ValidationError):
        WorkingCalendar().working_days_between(date(2024, 3, 5), date(2024, 3, 4))


def test_ensure_markable_names_the_weekday():
    with pytest.raises(ValidationError, match="Sunday"):
        WorkingCalendar().ensure_markable(date(2024, 3, 3))


@pytest.mark.parametrize("weekdays", [{0}, {8}, {1, 2, 3, 4, 5, 6, 7}])
def test_invalid_weekday_sets_are_rejected(weekdays):
    with pytest.raises(ValueError):
        WorkingCalendar.from_weekdays(weekdays)

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import FrozenSet, Iterable

from ..core.constants import DEFAULT_NON_ATTENDANCE_WEEKDAYS
from ..core.exceptions import ValidationError

_WEEKDAY_NAMES = {1: "Monday", 2: "Tuesday", 3: "Wednesday", 4: "Thursday", 5: "Friday", 6: "Saturday", 7: "Sunday"}


@dataclass(frozen=True)
class WorkingCalendar:
    """Which weekdays are school days.

    Weekdays use ISO numbering (Monday=1 .. Sunday=7).
    """

    non_attendance_weekdays: FrozenSet[int] = DEFAULT_NON_ATTENDANCE_WEEKDAYS

    def __post_init__(self):
        days = frozenset(int(d) for d in self.non_attendance_weekdays)
        invalid = sorted(d for d in days if d not in _WEEKDAY_NAMES)
        if invalid:
            raise ValueError(f"Invalid ISO weekday numbers: {invalid}")
        if len(days) == 7:
            raise ValueError("At least one weekday must allow attendance")
        object.__setattr__(self, "non_attendance_weekdays", days)

    @classmethod
    def from_weekdays(cls, weekdays: Iterable[int]) -> "WorkingCalendar":
        return cls(non_attendance_weekdays=frozenset(weekdays))

    def is_working_day(self, day: date) -> bool:
        return day.isoweekday() not in self.non_attendance_weekdays

    def ensure_markable(self, day: date) -> None:
        if not self.is_working_day(day):
            raise ValidationError(f"Cannot mark attendance on {_WEEKDAY_NAMES[day.isoweekday()]}")

    def working_days_between(self, start: date, end: date) -> int:
        """Days in ``[start, end]`` inclusive that are not excluded weekdays."""

        if start > end:
            raise ValidationError(f"Start date {start} is after end date {end}")

        total = (end - start).days + 1
        full_weeks, remainder = divmod(total, 7)
        excluded = full_weeks * len(self.non_attendance_weekdays)
        for offset in range(remainder):
            if not self.is_working_day(start + timedelta(days=full_weeks * 7 + offset)):
                excluded += 1
        return total - excluded

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from ..attendance.model import AttendanceFact
from ..cache import keys
from ..cache.service import AttendanceCache
from ..common.datetime_utils import now_local
from ..roster.model import Student
from .model import AttendanceStatistics, AttendanceSummary, ClassDailySummary, ClassStatistics, MonthlyOverview, TrendPoint
from .service import StatisticsService

logger = logging.getLogger(__name__)


class CachedStatisticsService:
    """Read-through cache in front of :class:`StatisticsService`.

    Same call signatures; a cold cache and a warm cache return equal results
    for the same ledger state.
    """

    def __init__(self, statistics: StatisticsService, cache: AttendanceCache):
        self._statistics = statistics
        self._cache = cache

    def student_statistics(self, student_id: int, start: date, end: date) -> AttendanceStatistics:
        return self._cache.get_or_compute(
            keys.student_statistics_key(student_id, start, end),
            lambda: self._statistics.student_statistics(student_id, start, end),
        )

    def daily_summary_by_class(self, school_id: int, on_date: date) -> dict[str, ClassDailySummary]:
        return self._cache.get_or_compute(
            keys.daily_summary_key(school_id, on_date),
            lambda: self._statistics.daily_summary_by_class(school_id, on_date),
        )

    def working_days_between(self, start: date, end: date) -> int:
        return self._statistics.working_days_between(start, end)

    def student_summary(self, student_id: int, start: date, end: date) -> AttendanceSummary:
        return self._cache.get_or_compute(
            keys.student_summary_key(student_id, start, end),
            lambda: self._statistics.student_summary(student_id, start, end),
        )

    def teacher_summary(self, teacher_id: int, start: date, end: date) -> AttendanceSummary:
        return self._cache.get_or_compute(
            keys.teacher_summary_key(teacher_id, start, end),
            lambda: self._statistics.teacher_summary(teacher_id, start, end),
        )

    def monthly_overview(self, school_id: int, year: int, month: int) -> MonthlyOverview:
        return self._cache.get_or_compute(
            keys.monthly_overview_key(school_id, year, month),
            lambda: self._statistics.monthly_overview(school_id, year, month),
        )

    def class_statistics(self, school_id: int, start: date, end: date) -> list[ClassStatistics]:
        return self._cache.get_or_compute(
            keys.class_statistics_key(school_id, start, end),
            lambda: self._statistics.class_statistics(school_id, start, end),
        )

    def student_trend(self, student_id: int, start: date, end: date) -> list[TrendPoint]:
        return self._cache.get_or_compute(
            keys.student_trend_key(student_id, start, end),
            lambda: self._statistics.student_trend(student_id, start, end),
        )

    def facts_by_date(self, school_id: int, on_date: date) -> list[AttendanceFact]:
        return self._cache.get_or_compute(
            keys.facts_by_date_key(school_id, on_date),
            lambda: self._statistics.facts_by_date(school_id, on_date),
        )

    def class_attendance(
        self, school_id: int, standard: str, section: Optional[str], on_date: date
    ) -> list[AttendanceFact]:
        return self._cache.get_or_compute(
            keys.class_attendance_key(school_id, standard, section, on_date),
            lambda: self._statistics.class_attendance(school_id, standard, section, on_date),
        )

    def students_not_marked(
        self, school_id: int, standard: str, section: Optional[str], on_date: date
    ) -> list[Student]:
        return self._cache.get_or_compute(
            keys.unmarked_students_key(school_id, standard, section, on_date),
            lambda: self._statistics.students_not_marked(school_id, standard, section, on_date),
        )

    def warm_up(self, school_id: int, *, today: Optional[date] = None) -> None:
        """Pre-compute today's dashboard and the month-to-date aggregates."""

        today = today or now_local().date()
        logger.info("Warming up attendance caches for school %s", school_id)
        self.daily_summary_by_class(school_id, today)
        self.monthly_overview(school_id, today.year, today.month)
        self.class_statistics(school_id, today.replace(day=1), today)
        logger.info("Attendance cache warm-up completed for school %s", school_id)

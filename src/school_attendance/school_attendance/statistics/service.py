from __future__ import annotations

import logging
from collections import Counter
from datetime import date
from typing import Optional

from ..attendance.model import AttendanceFact
from ..attendance.repository import AttendanceLedger
from ..attendance.specifications import AttendanceFilter, for_daily_report, for_student_summary, for_teacher
from ..common.datetime_utils import month_bounds
from ..common.validators import require_date_range
from ..core.enums import AttendanceStatus, SortOrder
from ..core.exceptions import NotFoundError, ValidationError
from ..roster.model import Student
from ..roster.repository import RosterProvider
from .calendar import WorkingCalendar
from .model import (
    AttendanceStatistics,
    AttendanceSummary,
    ClassDailySummary,
    ClassStatistics,
    MonthlyOverview,
    TrendPoint,
    percentage,
)

logger = logging.getLogger(__name__)


def _class_sort_key(student: Student) -> tuple[str, str]:
    return student.standard, student.section or ""


class StatisticsService:
    """Derives percentages, status breakdowns and working-day counts from the ledger.

    Percentages are plain floats; rounding is left to presentation code.
    """

    def __init__(
        self,
        ledger: AttendanceLedger,
        roster: RosterProvider,
        *,
        calendar: Optional[WorkingCalendar] = None,
    ):
        self._ledger = ledger
        self._roster = roster
        self._calendar = calendar or WorkingCalendar()

    @property
    def calendar(self) -> WorkingCalendar:
        return self._calendar

    def _school_students(self, school_id: int, standard: Optional[str] = None, section: Optional[str] = None):
        return {s.student_id: s for s in self._roster.list_active_students(int(school_id), standard, section)}

    def student_statistics(self, student_id: int, start: date, end: date) -> AttendanceStatistics:
        start, end = require_date_range(start, end)
        spec = for_student_summary(student_id, start, end, exclude_holidays=True)
        counts = Counter(f.status for f in self._ledger.query(spec))

        total_days = sum(counts.values())
        present_days = sum(n for status, n in counts.items() if status.counts_as_present)
        return AttendanceStatistics(
            total_days=total_days,
            present_days=present_days,
            absent_days=counts[AttendanceStatus.ABSENT],
            half_days=counts[AttendanceStatus.HALF_DAY],
            sick_leave_days=counts[AttendanceStatus.SICK_LEAVE],
            attendance_percentage=percentage(present_days, total_days),
        )

    def daily_summary_by_class(self, school_id: int, on_date: date) -> dict[str, ClassDailySummary]:
        """Per-class status counts for one school day, keyed by ``standard-section``."""

        students = self._school_students(school_id)
        counts: dict[str, Counter] = {}
        class_of: dict[str, Student] = {}

        for fact in self._ledger.query(for_daily_report(on_date, students.keys(), exclude_holidays=True)):
            student = students[fact.student_id]
            key = student.class_key
            counts.setdefault(key, Counter())[fact.status] += 1
            class_of.setdefault(key, student)

        summaries: dict[str, ClassDailySummary] = {}
        for key in sorted(counts, key=lambda k: _class_sort_key(class_of[k])):
            c = counts[key]
            total = sum(c.values())
            sample = class_of[key]
            summaries[key] = ClassDailySummary(
                standard=sample.standard,
                section=sample.section,
                total_students=total,
                present_count=c[AttendanceStatus.PRESENT],
                absent_count=c[AttendanceStatus.ABSENT],
                late_count=c[AttendanceStatus.LATE],
                half_day_count=c[AttendanceStatus.HALF_DAY],
                sick_leave_count=c[AttendanceStatus.SICK_LEAVE],
                attendance_percentage=percentage(c[AttendanceStatus.PRESENT] + c[AttendanceStatus.LATE], total),
            )
        return summaries

    def working_days_between(self, start: date, end: date) -> int:
        return self._calendar.working_days_between(start, end)

    def student_summary(self, student_id: int, start: date, end: date) -> AttendanceSummary:
        start, end = require_date_range(start, end)
        student = self._roster.get_student(int(student_id))
        if not student:
            raise NotFoundError(f"Student with ID {student_id} not found")

        counts = Counter(f.status for f in self._ledger.query(for_student_summary(student_id, start, end)))
        present = sum(n for status, n in counts.items() if status.counts_as_present)
        absent = counts[AttendanceStatus.ABSENT]
        half = counts[AttendanceStatus.HALF_DAY]
        sick = counts[AttendanceStatus.SICK_LEAVE]
        total = present + absent + half + sick

        return AttendanceSummary(
            subject_id=student.student_id,
            display_name=student.full_name,
            class_name=student.class_name,
            total_days=total,
            present_days=present,
            absent_days=absent,
            half_days=half,
            sick_leave_days=sick,
            holiday_days=counts[AttendanceStatus.HOLIDAY],
            attendance_percentage=percentage(present, total),
        )

    def teacher_summary(self, teacher_id: int, start: date, end: date) -> AttendanceSummary:
        """Teacher presence inferred from the working days on which they marked anything."""

        start, end = require_date_range(start, end)
        teacher = self._roster.get_teacher(int(teacher_id))
        if not teacher:
            raise NotFoundError(f"Teacher with ID {teacher_id} not found")

        working_days = self._calendar.working_days_between(start, end)
        marked_dates = {
            f.date for f in self._ledger.query(for_teacher(teacher_id, start, end)) if self._calendar.is_working_day(f.date)
        }
        present = len(marked_dates)

        return AttendanceSummary(
            subject_id=teacher.teacher_id,
            display_name=teacher.full_name,
            class_name=None,
            total_days=working_days,
            present_days=present,
            absent_days=max(working_days - present, 0),
            half_days=0,
            sick_leave_days=0,
            holiday_days=0,
            attendance_percentage=percentage(present, working_days),
        )

    def monthly_overview(self, school_id: int, year: int, month: int) -> MonthlyOverview:
        if not 1 <= int(month) <= 12:
            raise ValidationError(f"Invalid month: {month}")
        start, end = month_bounds(int(year), int(month))
        students = self._school_students(school_id)

        spec = AttendanceFilter(student_ids=frozenset(students), start=start, end=end, exclude_holidays=True)
        counts = Counter(f.status for f in self._ledger.query(spec))
        total = sum(counts.values())
        present = counts[AttendanceStatus.PRESENT]
        absent = counts[AttendanceStatus.ABSENT]
        late = counts[AttendanceStatus.LATE]

        return MonthlyOverview(
            school_id=int(school_id),
            year=int(year),
            month=int(month),
            total_records=total,
            present_count=present,
            absent_count=absent,
            late_count=late,
            present_percentage=percentage(present, total),
            absent_percentage=percentage(absent, total),
            late_percentage=percentage(late, total),
        )

    def class_statistics(self, school_id: int, start: date, end: date) -> list[ClassStatistics]:
        """Per-class totals over a range; half days count as present, sick leave as absent."""

        start, end = require_date_range(start, end)
        students = self._school_students(school_id)
        buckets: dict[str, Counter] = {}
        order: dict[str, tuple[str, str]] = {}

        spec = AttendanceFilter(student_ids=frozenset(students), start=start, end=end, exclude_holidays=True)
        for fact in self._ledger.query(spec):
            student = students[fact.student_id]
            key = student.class_key
            order.setdefault(key, _class_sort_key(student))
            bucket = buckets.setdefault(key, Counter())
            bucket["total"] += 1
            if fact.status in (AttendanceStatus.PRESENT, AttendanceStatus.HALF_DAY):
                bucket["present"] += 1
            elif fact.status in (AttendanceStatus.ABSENT, AttendanceStatus.SICK_LEAVE):
                bucket["absent"] += 1
            elif fact.status == AttendanceStatus.LATE:
                bucket["late"] += 1

        result = []
        for key in sorted(buckets, key=order.__getitem__):
            b = buckets[key]
            result.append(
                ClassStatistics(
                    class_key=key,
                    total_records=b["total"],
                    present_count=b["present"],
                    absent_count=b["absent"],
                    late_count=b["late"],
                    present_percentage=percentage(b["present"], b["total"]),
                    absent_percentage=percentage(b["absent"], b["total"]),
                    late_percentage=percentage(b["late"], b["total"]),
                )
            )
        return result

    def student_trend(self, student_id: int, start: date, end: date) -> list[TrendPoint]:
        start, end = require_date_range(start, end)
        facts = self._ledger.query(for_student_summary(student_id, start, end), order=SortOrder.ASC)
        return [TrendPoint(date=f.date, status=f.status) for f in facts]

    def facts_by_date(self, school_id: int, on_date: date) -> list[AttendanceFact]:
        students = self._school_students(school_id)
        facts = self._ledger.query(for_daily_report(on_date, students.keys()))
        return sorted(facts, key=lambda f: (_class_sort_key(students[f.student_id]), f.student_id))

    def class_attendance(
        self, school_id: int, standard: str, section: Optional[str], on_date: date
    ) -> list[AttendanceFact]:
        students = self._school_students(school_id, standard, section)
        facts = self._ledger.query(for_daily_report(on_date, students.keys()))
        return sorted(facts, key=lambda f: f.student_id)

    def students_not_marked(
        self, school_id: int, standard: str, section: Optional[str], on_date: date
    ) -> list[Student]:
        students = self._school_students(school_id, standard, section)
        marked = {f.student_id for f in self._ledger.query(for_daily_report(on_date, students.keys()))}
        return [s for sid, s in sorted(students.items()) if sid not in marked]

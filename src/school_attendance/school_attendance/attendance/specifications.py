"""Composable filters for ledger queries.

One :class:`AttendanceFilter` describes a query; the MySQL ledger renders it
to a WHERE clause and in-memory stores evaluate it with :meth:`matches`.
``None`` fields never constrain the query. ``exclude_holidays`` drops facts
that carry the holiday flag or the HOLIDAY status.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Callable, FrozenSet, Optional

from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError
from ..roster.model import Student
from .model import AttendanceFact


@dataclass(frozen=True)
class AttendanceFilter:
    student_id: Optional[int] = None
    student_ids: Optional[FrozenSet[int]] = None
    teacher_id: Optional[int] = None
    start: Optional[date] = None
    end: Optional[date] = None
    on_date: Optional[date] = None
    status: Optional[AttendanceStatus] = None
    standard: Optional[str] = None
    section: Optional[str] = None
    exclude_holidays: bool = False

    def __post_init__(self):
        if self.start and self.end and self.start > self.end:
            raise ValidationError(f"Start date {self.start} is after end date {self.end}")

    @property
    def needs_student_join(self) -> bool:
        return self.standard is not None or self.section is not None

    def matches(self, fact: AttendanceFact, student_lookup: Optional[Callable[[int], Optional[Student]]] = None) -> bool:
        if self.student_id is not None and fact.student_id != self.student_id:
            return False
        if self.student_ids is not None and fact.student_id not in self.student_ids:
            return False
        if self.teacher_id is not None and fact.marked_by != self.teacher_id:
            return False
        if self.start is not None and fact.date < self.start:
            return False
        if self.end is not None and fact.date > self.end:
            return False
        if self.on_date is not None and fact.date != self.on_date:
            return False
        if self.status is not None and fact.status != self.status:
            return False
        if self.exclude_holidays and (fact.is_holiday or fact.status == AttendanceStatus.HOLIDAY):
            return False
        if self.needs_student_join:
            student = student_lookup(fact.student_id) if student_lookup else None
            if student is None:
                return False
            if self.standard is not None and student.standard != self.standard:
                return False
            if self.section is not None and student.section != self.section:
                return False
        return True

    def to_sql(self, *, alias: str = "ar", student_alias: str = "s") -> tuple[str, list[object]]:
        """Render as ``(where_clause, params)`` for mysql-connector."""

        clauses: list[str] = []
        params: list[object] = []

        if self.student_id is not None:
            clauses.append(f"{alias}.student_id=%s")
            params.append(int(self.student_id))
        if self.student_ids is not None:
            if not self.student_ids:
                clauses.append("1=0")
            else:
                ids = sorted(int(i) for i in self.student_ids)
                clauses.append(f"{alias}.student_id IN ({', '.join(['%s'] * len(ids))})")
                params.extend(ids)
        if self.teacher_id is not None:
            clauses.append(f"{alias}.marked_by=%s")
            params.append(int(self.teacher_id))
        if self.start is not None:
            clauses.append(f"{alias}.work_date>=%s")
            params.append(self.start)
        if self.end is not None:
            clauses.append(f"{alias}.work_date<=%s")
            params.append(self.end)
        if self.on_date is not None:
            clauses.append(f"{alias}.work_date=%s")
            params.append(self.on_date)
        if self.status is not None:
            clauses.append(f"{alias}.status=%s")
            params.append(self.status.value)
        if self.exclude_holidays:
            clauses.append(f"{alias}.is_holiday=0 AND {alias}.status<>%s")
            params.append(AttendanceStatus.HOLIDAY.value)
        if self.standard is not None:
            clauses.append(f"{student_alias}.standard=%s")
            params.append(self.standard)
        if self.section is not None:
            clauses.append(f"{student_alias}.section=%s")
            params.append(self.section)

        where = " AND ".join(clauses) if clauses else "1=1"
        return where, params


def for_student_summary(
    student_id: int, start: Optional[date], end: Optional[date], *, exclude_holidays: bool = False
) -> AttendanceFilter:
    return AttendanceFilter(student_id=int(student_id), start=start, end=end, exclude_holidays=exclude_holidays)


def for_daily_report(on_date: date, student_ids=None, *, exclude_holidays: bool = False) -> AttendanceFilter:
    ids = frozenset(int(i) for i in student_ids) if student_ids is not None else None
    return AttendanceFilter(on_date=on_date, student_ids=ids, exclude_holidays=exclude_holidays)


def for_class_on_date(on_date: date, standard: str, section: Optional[str]) -> AttendanceFilter:
    return AttendanceFilter(on_date=on_date, standard=standard, section=section)


def for_teacher(teacher_id: int, start: Optional[date], end: Optional[date]) -> AttendanceFilter:
    return AttendanceFilter(teacher_id=int(teacher_id), start=start, end=end)

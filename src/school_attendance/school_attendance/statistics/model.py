from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.enums import AttendanceStatus


def percentage(part: int, total: int) -> float:
    """``part / total * 100`` as a float; 0.0 when ``total`` is zero."""

    return (part * 100.0 / total) if total > 0 else 0.0


@dataclass(frozen=True)
class AttendanceStatistics:
    total_days: int
    present_days: int
    absent_days: int
    half_days: int
    sick_leave_days: int
    attendance_percentage: float


@dataclass(frozen=True)
class ClassDailySummary:
    standard: str
    section: Optional[str]
    total_students: int
    present_count: int
    absent_count: int
    late_count: int
    half_day_count: int
    sick_leave_count: int
    attendance_percentage: float


@dataclass(frozen=True)
class AttendanceSummary:
    """Per-person summary used by report generators."""

    subject_id: int
    display_name: str
    class_name: Optional[str]
    total_days: int
    present_days: int
    absent_days: int
    half_days: int
    sick_leave_days: int
    holiday_days: int
    attendance_percentage: float


@dataclass(frozen=True)
class MonthlyOverview:
    school_id: int
    year: int
    month: int
    total_records: int
    present_count: int
    absent_count: int
    late_count: int
    present_percentage: float
    absent_percentage: float
    late_percentage: float


@dataclass(frozen=True)
class ClassStatistics:
    class_key: str
    total_records: int
    present_count: int
    absent_count: int
    late_count: int
    present_percentage: float
    absent_percentage: float
    late_percentage: float


@dataclass(frozen=True)
class TrendPoint:
    date: date
    status: AttendanceStatus

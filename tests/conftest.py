from __future__ import annotations

from datetime import datetime

import pytest

from src.school_attendance.school_attendance.attendance.service import AttendanceService
from src.school_attendance.school_attendance.cache.backend import InMemoryCacheBackend
from src.school_attendance.school_attendance.cache.service import AttendanceCache
from src.school_attendance.school_attendance.roster.model import Student, Teacher
from src.school_attendance.school_attendance.statistics.calendar import WorkingCalendar
from src.school_attendance.school_attendance.statistics.service import StatisticsService

from tests.fakes import FakeClock, InMemoryLedger, InMemoryRoster


@pytest.fixture
def fixed_now():
    return datetime(2024, 3, 4, 8, 0, 0)


@pytest.fixture
def roster():
    # school 1: class 5-A (students 3, 4) and 5-B (student 5); school 2: student 7
    students = [
        Student(student_id=3, school_id=1, standard="5", section="A", full_name="An"),
        Student(student_id=4, school_id=1, standard="5", section="A", full_name="Binh"),
        Student(student_id=5, school_id=1, standard="5", section="B", full_name="Chi"),
        Student(student_id=7, school_id=2, standard="6", section=None, full_name="Dung"),
        Student(student_id=9, school_id=1, standard="5", section="A", full_name="Left", is_active=False),
    ]
    teachers = [
        Teacher(teacher_id=11, school_id=1, is_active=True, full_name="Ms. Hoa"),
        Teacher(teacher_id=12, school_id=2, is_active=True, full_name="Mr. Lam"),
    ]
    return InMemoryRoster(
        students={s.student_id: s for s in students},
        teachers={t.teacher_id: t for t in teachers},
    )


@pytest.fixture
def ledger(roster, fixed_now):
    return InMemoryLedger(roster, now=fixed_now)


@pytest.fixture
def cache_clock():
    return FakeClock()


@pytest.fixture
def cache(cache_clock):
    return AttendanceCache(InMemoryCacheBackend(clock=cache_clock))


@pytest.fixture
def calendar():
    return WorkingCalendar()


@pytest.fixture
def service(ledger, roster, cache, calendar):
    return AttendanceService(ledger, roster, cache, calendar=calendar)


@pytest.fixture
def statistics(ledger, roster, calendar):
    return StatisticsService(ledger, roster, calendar=calendar)

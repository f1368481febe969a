from __future__ import annotations

from datetime import date

import pytest

from src.school_attendance.school_attendance.attendance.service import AttendanceService
from src.school_attendance.school_attendance.cache.service import AttendanceCache
from src.school_attendance.school_attendance.core.enums import AttendanceStatus
from src.school_attendance.school_attendance.statistics.cached_service import CachedStatisticsService

from tests.fakes import FailingCacheBackend

MONDAY = date(2024, 3, 4)
MARCH = (date(2024, 3, 1), date(2024, 3, 31))


@pytest.fixture
def cached(statistics, cache):
    return CachedStatisticsService(statistics, cache)


def test_warm_results_equal_cold_results(cached, statistics, service, ledger):
    service.mark_daily_roster(1, MONDAY, absent_student_ids=[3])
    service.mark_one(3, date(2024, 3, 5), AttendanceStatus.LATE, teacher_id=11)

    calls = [
        lambda s: s.student_statistics(3, *MARCH),
        lambda s: s.daily_summary_by_class(1, MONDAY),
        lambda s: s.student_summary(3, *MARCH),
        lambda s: s.teacher_summary(11, *MARCH),
        lambda s: s.monthly_overview(1, 2024, 3),
        lambda s: s.class_statistics(1, *MARCH),
        lambda s: s.student_trend(3, *MARCH),
        lambda s: s.facts_by_date(1, MONDAY),
        lambda s: s.class_attendance(1, "5", "A", MONDAY),
        lambda s: s.students_not_marked(1, "5", "A", date(2024, 3, 5)),
    ]
    for call in calls:
        cold = call(cached)
        warm = call(cached)
        assert cold == warm == call(statistics)


def test_warm_read_skips_the_ledger(cached, service, ledger):
    service.mark_one(3, MONDAY, AttendanceStatus.PRESENT)

    cached.student_statistics(3, *MARCH)
    queries = ledger.calls["query"]
    cached.student_statistics(3, *MARCH)

    assert ledger.calls["query"] == queries


def test_mark_one_makes_next_read_fresh(cached, service):
    service.mark_one(3, MONDAY, AttendanceStatus.PRESENT)
    assert cached.student_statistics(3, *MARCH).attendance_percentage == 100.0
    assert cached.daily_summary_by_class(1, MONDAY)["5-A"].present_count == 1

    service.mark_one(3, MONDAY, AttendanceStatus.ABSENT)

    assert cached.student_statistics(3, *MARCH).attendance_percentage == 0.0
    assert cached.daily_summary_by_class(1, MONDAY)["5-A"].absent_count == 1


def test_daily_roster_makes_other_students_fresh(cached, service):
    assert cached.student_statistics(4, *MARCH).total_days == 0
    assert [s.student_id for s in cached.students_not_marked(1, "5", "A", MONDAY)] == [3, 4]

    service.mark_daily_roster(1, MONDAY)

    assert cached.student_statistics(4, *MARCH).total_days == 1
    assert cached.students_not_marked(1, "5", "A", MONDAY) == []


def test_delete_makes_facts_by_date_fresh(cached, service):
    fact = service.mark_one(3, MONDAY, AttendanceStatus.PRESENT)
    assert len(cached.facts_by_date(1, MONDAY)) == 1

    service.delete_fact(fact.fact_id)

    assert cached.facts_by_date(1, MONDAY) == []


def test_correction_refreshes_both_dates(cached, service):
    fact = service.mark_one(3, MONDAY, AttendanceStatus.PRESENT)
    tuesday = date(2024, 3, 5)
    assert len(cached.facts_by_date(1, MONDAY)) == 1
    assert cached.facts_by_date(1, tuesday) == []

    service.delete_and_remark(fact.fact_id, student_id=3, work_date=tuesday, status=AttendanceStatus.PRESENT)

    assert cached.facts_by_date(1, MONDAY) == []
    assert len(cached.facts_by_date(1, tuesday)) == 1


def test_teacher_summary_fresh_after_marking_teacher_changes(cached, service):
    service.mark_one(3, MONDAY, AttendanceStatus.PRESENT, teacher_id=11)
    assert cached.teacher_summary(11, *MARCH).present_days == 1

    service.mark_one(3, MONDAY, AttendanceStatus.PRESENT, teacher_id=12)

    assert cached.teacher_summary(11, *MARCH).present_days == 0
    assert cached.teacher_summary(12, *MARCH).present_days == 1


def test_unavailable_cache_still_answers(statistics, service):
    cached = CachedStatisticsService(statistics, AttendanceCache(FailingCacheBackend()))
    service.mark_one(3, MONDAY, AttendanceStatus.PRESENT)

    assert cached.student_statistics(3, *MARCH) == statistics.student_statistics(3, *MARCH)


def test_warm_up_precomputes_dashboard(cached, cache, service, ledger):
    service.mark_daily_roster(1, MONDAY)

    cached.warm_up(1, today=MONDAY)
    queries = ledger.calls["query"]
    cached.daily_summary_by_class(1, MONDAY)
    cached.monthly_overview(1, 2024, 3)
    cached.class_statistics(1, date(2024, 3, 1), MONDAY)

    assert ledger.calls["query"] == queries
    assert cache.stats().hits >= 3


def test_working_days_passes_through(cached):
    assert cached.working_days_between(*MARCH) == 26

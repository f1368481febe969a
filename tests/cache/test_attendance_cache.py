from __future__ import annotations

from datetime import date, timedelta

import pytest

from src.school_attendance.school_attendance.cache import keys
from src.school_attendance.school_attendance.cache.backend import InMemoryCacheBackend
from src.school_attendance.school_attendance.cache.regions import CacheConfig, CacheRegion, DEFAULT_TTLS, TtlClass
from src.school_attendance.school_attendance.cache.service import AttendanceCache

from tests.fakes import FailingCacheBackend, FakeClock

MONDAY = date(2024, 3, 4)
TUESDAY = date(2024, 3, 5)


class CountingCompute:
    def __init__(self, value="value"):
        self.value = value
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.value


def _cache(clock=None, config=None):
    backend = InMemoryCacheBackend(clock=clock or FakeClock())
    return AttendanceCache(backend, config), backend


def _present(backend, key) -> bool:
    return backend.get(key.serialized) is not None


def test_get_or_compute_reads_through_once():
    cache, _ = _cache()
    compute = CountingCompute({"5-A": 1})
    key = keys.daily_summary_key(1, MONDAY)

    assert cache.get_or_compute(key, compute) == {"5-A": 1}
    assert cache.get_or_compute(key, compute) == {"5-A": 1}
    assert compute.calls == 1
    stats = cache.stats()
    assert (stats.hits, stats.misses, stats.errors) == (1, 1, 0)


def test_cached_values_are_copies():
    cache, _ = _cache()
    key = keys.facts_by_date_key(1, MONDAY)

    first = cache.get_or_compute(key, lambda: [1, 2])
    first.append(3)

    assert cache.get_or_compute(key, lambda: []) == [1, 2]


def test_none_is_not_cached():
    cache, _ = _cache()
    compute = CountingCompute(None)
    key = keys.student_profile_key(3)

    cache.get_or_compute(key, compute)
    cache.get_or_compute(key, compute)

    assert compute.calls == 2


def test_dashboard_entries_expire_after_five_minutes():
    clock = FakeClock()
    cache, _ = _cache(clock)
    compute = CountingCompute()
    key = keys.daily_summary_key(1, MONDAY)

    cache.get_or_compute(key, compute)
    clock.advance(timedelta(minutes=4, seconds=59))
    cache.get_or_compute(key, compute)
    assert compute.calls == 1

    clock.advance(timedelta(seconds=2))
    cache.get_or_compute(key, compute)
    assert compute.calls == 2


def test_ttl_overrides_by_class_and_region():
    config = CacheConfig.from_seconds({"dashboard": 60, "student-statistics": 10})

    assert config.ttl_for(CacheRegion.DAILY_SUMMARY) == timedelta(seconds=60)
    assert config.ttl_for(CacheRegion.STUDENT_STATISTICS) == timedelta(seconds=10)
    assert config.ttl_for(CacheRegion.STUDENT_SUMMARY) == DEFAULT_TTLS[TtlClass.SUMMARY]
    assert config.ttl_for(CacheRegion.SCHOOL_CLASSES) == timedelta(hours=4)


@pytest.mark.parametrize("overrides", [{"nope": 10}, {"dashboard": 0}])
def test_bad_ttl_overrides_are_rejected(overrides):
    with pytest.raises(ValueError):
        CacheConfig.from_seconds(overrides)


def test_backend_failures_fall_through_to_compute():
    backend = FailingCacheBackend()
    cache = AttendanceCache(backend)
    compute = CountingCompute(42)
    key = keys.student_statistics_key(3, MONDAY, MONDAY)

    assert cache.get_or_compute(key, compute) == 42
    assert cache.get_or_compute(key, compute) == 42
    assert compute.calls == 2
    assert cache.invalidate(CacheRegion.DAILY_SUMMARY) == 0
    cache.invalidate_for_write(student_id=3, work_date=MONDAY)
    assert cache.stats().errors >= 5


def test_single_write_evicts_student_date_and_school_level_regions():
    cache, backend = _cache()
    stats_3 = keys.student_statistics_key(3, MONDAY, TUESDAY)
    stats_4 = keys.student_statistics_key(4, MONDAY, TUESDAY)
    daily = keys.daily_summary_key(2, TUESDAY)
    facts_monday = keys.facts_by_date_key(1, MONDAY)
    facts_tuesday = keys.facts_by_date_key(1, TUESDAY)
    teacher = keys.teacher_summary_key(12, MONDAY, TUESDAY)
    profile = keys.student_profile_key(3)
    for key in (stats_3, stats_4, daily, facts_monday, facts_tuesday, teacher, profile):
        cache.get_or_compute(key, lambda: "cached")

    cache.invalidate_for_write(student_id=3, work_date=MONDAY)

    assert not _present(backend, stats_3)
    assert _present(backend, stats_4)
    assert not _present(backend, daily)
    assert not _present(backend, facts_monday)
    assert _present(backend, facts_tuesday)
    assert not _present(backend, teacher)
    assert _present(backend, profile)


def test_batch_write_evicts_every_student_region():
    cache, backend = _cache()
    stats_4 = keys.student_statistics_key(4, MONDAY, TUESDAY)
    facts_tuesday = keys.facts_by_date_key(1, TUESDAY)
    roster = keys.class_roster_key(1, None, None)
    profile = keys.student_profile_key(4)
    for key in (stats_4, facts_tuesday, roster, profile):
        cache.get_or_compute(key, lambda: "cached")

    cache.invalidate_for_batch(dates=[MONDAY])

    assert not _present(backend, stats_4)
    assert _present(backend, facts_tuesday)
    assert _present(backend, roster)
    assert _present(backend, profile)


def test_invalidate_roster_for_one_school():
    cache, backend = _cache()
    school_1 = keys.class_roster_key(1, "5", "A")
    school_2 = keys.class_roster_key(2, None, None)
    classes_1 = keys.school_classes_key(1)
    profile = keys.student_profile_key(3)
    for key in (school_1, school_2, classes_1, profile):
        cache.get_or_compute(key, lambda: "cached")

    cache.invalidate_roster(school_id=1)

    assert not _present(backend, school_1)
    assert _present(backend, school_2)
    assert not _present(backend, classes_1)
    assert not _present(backend, profile)


def test_invalidate_all_clears_everything():
    cache, backend = _cache()
    for key in (keys.student_profile_key(3), keys.monthly_overview_key(1, 2024, 3)):
        cache.get_or_compute(key, lambda: "cached")

    cache.invalidate_all()

    assert len(backend) == 0

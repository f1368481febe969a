from __future__ import annotations

import fnmatch
import threading
from datetime import date, timedelta

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from src.school_attendance.school_attendance.cache import keys
from src.school_attendance.school_attendance.cache.redis_backend import RedisCacheBackend
from src.school_attendance.school_attendance.cache.service import AttendanceCache
from src.school_attendance.school_attendance.core.exceptions import TransientStoreError
from src.school_attendance.school_attendance.statistics.model import AttendanceStatistics


class FakeRedis:
    def __init__(self):
        self.data: dict[str, bytes] = {}
        self.ttls: dict[str, int] = {}
        self.deletes: list[tuple] = []

    def get(self, name):
        return self.data.get(name)

    def set(self, name, value, px=None):
        self.data[name] = value
        self.ttls[name] = px

    def scan_iter(self, match=None, count=None):
        return [k for k in list(self.data) if fnmatch.fnmatchcase(k, match)]

    def delete(self, *names):
        self.deletes.append(names)
        removed = 0
        for name in names:
            if self.data.pop(name, None) is not None:
                removed += 1
        return removed


class DownRedis:
    def __getattr__(self, name):
        def _fail(*args, **kwargs):
            raise RedisConnectionError("Connection refused")

        return _fail


def test_round_trips_domain_objects_with_prefix_and_ttl():
    client = FakeRedis()
    backend = RedisCacheBackend(client, prefix="t:")
    stats = AttendanceStatistics(5, 2, 1, 1, 1, 40.0)

    backend.set("student-statistics:/student=i:3/", stats, timedelta(minutes=15))

    assert list(client.data) == ["t:student-statistics:/student=i:3/"]
    assert client.ttls["t:student-statistics:/student=i:3/"] == 900_000
    assert backend.get("student-statistics:/student=i:3/") == stats
    assert backend.get("missing") is None


def test_delete_matching_is_scoped_to_prefix():
    client = FakeRedis()
    client.data["other-app:daily-summary:/school=i:1/"] = b"x"
    backend = RedisCacheBackend(client, prefix="t:")
    backend.set("daily-summary:/school=i:1/", 1, timedelta(minutes=5))
    backend.set("daily-summary:/school=i:2/", 2, timedelta(minutes=5))
    backend.set("monthly-overview:/school=i:1/", 3, timedelta(minutes=5))

    assert backend.delete_matching("daily-summary:*") == 2
    assert sorted(client.data) == ["other-app:daily-summary:/school=i:1/", "t:monthly-overview:/school=i:1/"]


def test_nothing_to_delete_skips_delete_call():
    client = FakeRedis()

    assert RedisCacheBackend(client).delete_matching("daily-summary:*") == 0
    assert client.deletes == []


def test_unreadable_entry_is_transient():
    client = FakeRedis()
    client.data["school-attendance:k"] = b"not a pickle"

    with pytest.raises(TransientStoreError):
        RedisCacheBackend(client).get("k")


@pytest.mark.parametrize(
    "call",
    [
        lambda b: b.get("k"),
        lambda b: b.set("k", 1, timedelta(seconds=1)),
        lambda b: b.delete_matching("*"),
    ],
)
def test_redis_errors_become_transient_errors(call):
    with pytest.raises(TransientStoreError):
        call(RedisCacheBackend(DownRedis()))


def test_unpicklable_value_is_transient_and_writes_nothing():
    client = FakeRedis()

    with pytest.raises(TransientStoreError):
        RedisCacheBackend(client).set("k", threading.Lock(), timedelta(seconds=1))
    assert client.data == {}


def test_cache_serves_computed_value_when_it_cannot_be_stored():
    cache = AttendanceCache(RedisCacheBackend(FakeRedis()))
    lock = threading.Lock()

    value = cache.get_or_compute(keys.daily_summary_key(1, date(2024, 3, 4)), lambda: {"lock": lock})

    assert value == {"lock": lock}
    assert cache.stats().errors == 1
    assert cache.stats().misses == 1

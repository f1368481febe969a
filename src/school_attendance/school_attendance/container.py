from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.mysql_attendance_ledger import MySQLAttendanceLedger
from .attendance.repository import AttendanceLedger
from .attendance.service import AttendanceService
from .cache.backend import CacheBackend, InMemoryCacheBackend
from .cache.redis_backend import RedisCacheBackend
from .cache.regions import CacheConfig
from .cache.service import AttendanceCache
from .core.enums import CacheBackendKind
from .database.connection import DBConfig, DatabaseConnection
from .roster.cached_roster import CachedRosterProvider
from .roster.mysql_roster_repository import MySQLRosterRepository
from .roster.repository import RosterProvider
from .settings import EngineSettings
from .statistics.cached_service import CachedStatisticsService
from .statistics.calendar import WorkingCalendar
from .statistics.service import StatisticsService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    ledger: AttendanceLedger
    roster: RosterProvider
    cache: AttendanceCache
    calendar: WorkingCalendar

    attendance_service: AttendanceService
    statistics_service: CachedStatisticsService


def build_cache_backend(settings: EngineSettings) -> CacheBackend:
    if settings.cache_backend == CacheBackendKind.REDIS:
        return RedisCacheBackend.from_url(str(settings.redis_url), timeout_seconds=settings.store_timeout_seconds)
    return InMemoryCacheBackend()


def wire(
    *,
    ledger: AttendanceLedger,
    roster: RosterProvider,
    backend: CacheBackend,
    cache_config: Optional[CacheConfig] = None,
    calendar: Optional[WorkingCalendar] = None,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Assemble the services over any ledger, roster and cache backend."""

    calendar = calendar or WorkingCalendar()
    cache = AttendanceCache(backend, cache_config)
    cached_roster = CachedRosterProvider(roster, cache)

    statistics = StatisticsService(ledger, cached_roster, calendar=calendar)
    return Container(
        conn=conn,
        ledger=ledger,
        roster=cached_roster,
        cache=cache,
        calendar=calendar,
        attendance_service=AttendanceService(ledger, cached_roster, cache, calendar=calendar),
        statistics_service=CachedStatisticsService(statistics, cache),
    )


def build_container(settings: EngineSettings) -> Container:
    config = DBConfig.from_dict(dict(settings.db_config), timeout_seconds=settings.store_timeout_seconds)
    conn = DatabaseConnection(config)

    return wire(
        ledger=MySQLAttendanceLedger(conn),
        roster=MySQLRosterRepository(conn),
        backend=build_cache_backend(settings),
        cache_config=CacheConfig.from_seconds(settings.cache_ttls),
        calendar=WorkingCalendar.from_weekdays(settings.non_attendance_weekdays),
        conn=conn,
    )

from __future__ import annotations

from enum import Enum


class AttendanceStatus(str, Enum):
    """Attendance outcome of one student on one day, stored by value."""

    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    LATE = "LATE"
    HALF_DAY = "HALF_DAY"
    HOLIDAY = "HOLIDAY"
    SICK_LEAVE = "SICK_LEAVE"

    @property
    def counts_as_present(self) -> bool:
        return self in (AttendanceStatus.PRESENT, AttendanceStatus.LATE)


class SortOrder(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


class CacheBackendKind(str, Enum):
    MEMORY = "memory"
    REDIS = "redis"

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Mapping, Optional


class TtlClass(str, Enum):
    """How fast the data behind a region changes."""

    DASHBOARD = "dashboard"
    SUMMARY = "summary"
    PATTERN = "pattern"
    PROFILE = "profile"
    CLASS_INFO = "class-info"
    SCHOOL_CONFIG = "school-config"


DEFAULT_TTLS: Mapping[TtlClass, timedelta] = {
    TtlClass.DASHBOARD: timedelta(minutes=5),
    TtlClass.SUMMARY: timedelta(minutes=15),
    TtlClass.PATTERN: timedelta(minutes=30),
    TtlClass.PROFILE: timedelta(hours=1),
    TtlClass.CLASS_INFO: timedelta(hours=2),
    TtlClass.SCHOOL_CONFIG: timedelta(hours=4),
}


class CacheRegion(str, Enum):
    DAILY_SUMMARY = "daily-summary"
    UNMARKED_STUDENTS = "unmarked-students"
    FACTS_BY_DATE = "facts-by-date"
    CLASS_ATTENDANCE = "class-attendance"
    STUDENT_STATISTICS = "student-statistics"
    STUDENT_SUMMARY = "student-summary"
    TEACHER_SUMMARY = "teacher-summary"
    STUDENT_TREND = "student-trend"
    MONTHLY_OVERVIEW = "monthly-overview"
    CLASS_STATISTICS = "class-statistics"
    STUDENT_PROFILE = "student-profile"
    TEACHER_PROFILE = "teacher-profile"
    CLASS_ROSTER = "class-roster"
    SCHOOL_CLASSES = "school-classes"


@dataclass(frozen=True)
class RegionPolicy:
    ttl_class: TtlClass
    key_fields: tuple[str, ...]

    @property
    def derived_from_attendance(self) -> bool:
        return self.ttl_class in (TtlClass.DASHBOARD, TtlClass.SUMMARY, TtlClass.PATTERN)

    @property
    def cleared_on_any_write(self) -> bool:
        # school and class level aggregates
        return self.ttl_class in (TtlClass.DASHBOARD, TtlClass.PATTERN)


REGION_POLICIES: Mapping[CacheRegion, RegionPolicy] = {
    CacheRegion.DAILY_SUMMARY: RegionPolicy(TtlClass.DASHBOARD, ("school", "date")),
    CacheRegion.UNMARKED_STUDENTS: RegionPolicy(TtlClass.DASHBOARD, ("school", "standard", "section", "date")),
    CacheRegion.FACTS_BY_DATE: RegionPolicy(TtlClass.SUMMARY, ("school", "date")),
    CacheRegion.CLASS_ATTENDANCE: RegionPolicy(TtlClass.SUMMARY, ("school", "standard", "section", "date")),
    CacheRegion.STUDENT_STATISTICS: RegionPolicy(TtlClass.SUMMARY, ("student", "start", "end")),
    CacheRegion.STUDENT_SUMMARY: RegionPolicy(TtlClass.SUMMARY, ("student", "start", "end")),
    CacheRegion.TEACHER_SUMMARY: RegionPolicy(TtlClass.SUMMARY, ("teacher", "start", "end")),
    CacheRegion.STUDENT_TREND: RegionPolicy(TtlClass.PATTERN, ("student", "start", "end")),
    CacheRegion.MONTHLY_OVERVIEW: RegionPolicy(TtlClass.PATTERN, ("school", "year", "month")),
    CacheRegion.CLASS_STATISTICS: RegionPolicy(TtlClass.PATTERN, ("school", "start", "end")),
    CacheRegion.STUDENT_PROFILE: RegionPolicy(TtlClass.PROFILE, ("student",)),
    CacheRegion.TEACHER_PROFILE: RegionPolicy(TtlClass.PROFILE, ("teacher",)),
    CacheRegion.CLASS_ROSTER: RegionPolicy(TtlClass.CLASS_INFO, ("school", "standard", "section")),
    CacheRegion.SCHOOL_CLASSES: RegionPolicy(TtlClass.SCHOOL_CONFIG, ("school",)),
}


def regions_keyed_by(field_name: str) -> tuple[CacheRegion, ...]:
    return tuple(r for r, p in REGION_POLICIES.items() if field_name in p.key_fields)


@dataclass(frozen=True)
class CacheConfig:
    """TTL per region: class defaults plus optional per-region overrides."""

    ttl_by_class: Mapping[TtlClass, timedelta] = field(default_factory=lambda: dict(DEFAULT_TTLS))
    region_overrides: Mapping[CacheRegion, timedelta] = field(default_factory=dict)

    def ttl_for(self, region: CacheRegion) -> timedelta:
        override = self.region_overrides.get(region)
        if override is not None:
            return override
        ttl_class = REGION_POLICIES[region].ttl_class
        return self.ttl_by_class.get(ttl_class, DEFAULT_TTLS[ttl_class])

    @classmethod
    def from_seconds(cls, overrides: Optional[Mapping[str, int]] = None) -> "CacheConfig":
        """Build from ``{"dashboard": 300, "student-statistics": 900, ...}``.

        Keys may name a TTL class or a single region.
        """

        ttl_by_class = dict(DEFAULT_TTLS)
        region_overrides: dict[CacheRegion, timedelta] = {}
        class_names = {c.value: c for c in TtlClass}
        region_names = {r.value: r for r in CacheRegion}

        for name, seconds in (overrides or {}).items():
            ttl = timedelta(seconds=int(seconds))
            if ttl <= timedelta(0):
                raise ValueError(f"Cache TTL for {name!r} must be positive")
            if name in class_names:
                ttl_by_class[class_names[name]] = ttl
            elif name in region_names:
                region_overrides[region_names[name]] = ttl
            else:
                raise ValueError(f"Unknown cache region or TTL class: {name!r}")

        return cls(ttl_by_class=ttl_by_class, region_overrides=region_overrides)

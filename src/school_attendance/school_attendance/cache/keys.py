"""Typed cache key builders, one per region.

Every key component carries a type tag (``i:`` int, ``d:`` date, ``s:``
string, ``n`` for None, ...) and strings are percent-escaped, so ``None``,
``"None"`` and ``"null"`` produce different keys and no value can smuggle
glob characters into an eviction pattern.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional
from urllib.parse import quote

from .regions import REGION_POLICIES, CacheRegion


def encode_component(value: Any) -> str:
    if value is None:
        return "n"
    if isinstance(value, bool):
        return "b:1" if value else "b:0"
    if isinstance(value, Enum):
        return "e:" + quote(str(value.value), safe="")
    if isinstance(value, int):
        return f"i:{value}"
    if isinstance(value, datetime):
        return "t:" + value.isoformat()
    if isinstance(value, date):
        return "d:" + value.isoformat()
    if isinstance(value, str):
        return "s:" + quote(value, safe="")
    raise TypeError(f"Unsupported cache key component type: {type(value)!r}")


@dataclass(frozen=True)
class CacheKey:
    region: CacheRegion
    parts: tuple[tuple[str, str], ...]

    @classmethod
    def build(cls, region: CacheRegion, *fields: tuple[str, Any]) -> "CacheKey":
        names = tuple(name for name, _ in fields)
        expected = REGION_POLICIES[region].key_fields
        if names != expected:
            raise ValueError(f"Key fields {names} do not match region {region.value} fields {expected}")
        return cls(region=region, parts=tuple((name, encode_component(value)) for name, value in fields))

    @property
    def serialized(self) -> str:
        body = "".join(f"/{name}={value}" for name, value in self.parts)
        return f"{self.region.value}:{body}/"


def field_pattern(name: str, value: Any) -> str:
    """Glob matching every key of a region that has ``name == value``."""

    return f"*/{name}={encode_component(value)}/*"


def daily_summary_key(school_id: int, on_date: date) -> CacheKey:
    return CacheKey.build(CacheRegion.DAILY_SUMMARY, ("school", int(school_id)), ("date", on_date))


def unmarked_students_key(school_id: int, standard: str, section: Optional[str], on_date: date) -> CacheKey:
    return CacheKey.build(
        CacheRegion.UNMARKED_STUDENTS,
        ("school", int(school_id)),
        ("standard", standard),
        ("section", section),
        ("date", on_date),
    )


def facts_by_date_key(school_id: int, on_date: date) -> CacheKey:
    return CacheKey.build(CacheRegion.FACTS_BY_DATE, ("school", int(school_id)), ("date", on_date))


def class_attendance_key(school_id: int, standard: str, section: Optional[str], on_date: date) -> CacheKey:
    return CacheKey.build(
        CacheRegion.CLASS_ATTENDANCE,
        ("school", int(school_id)),
        ("standard", standard),
        ("section", section),
        ("date", on_date),
    )


def student_statistics_key(student_id: int, start: date, end: date) -> CacheKey:
    return CacheKey.build(CacheRegion.STUDENT_STATISTICS, ("student", int(student_id)), ("start", start), ("end", end))


def student_summary_key(student_id: int, start: date, end: date) -> CacheKey:
    return CacheKey.build(CacheRegion.STUDENT_SUMMARY, ("student", int(student_id)), ("start", start), ("end", end))


def teacher_summary_key(teacher_id: int, start: date, end: date) -> CacheKey:
    return CacheKey.build(CacheRegion.TEACHER_SUMMARY, ("teacher", int(teacher_id)), ("start", start), ("end", end))


def student_trend_key(student_id: int, start: date, end: date) -> CacheKey:
    return CacheKey.build(CacheRegion.STUDENT_TREND, ("student", int(student_id)), ("start", start), ("end", end))


def monthly_overview_key(school_id: int, year: int, month: int) -> CacheKey:
    return CacheKey.build(
        CacheRegion.MONTHLY_OVERVIEW, ("school", int(school_id)), ("year", int(year)), ("month", int(month))
    )


def class_statistics_key(school_id: int, start: date, end: date) -> CacheKey:
    return CacheKey.build(CacheRegion.CLASS_STATISTICS, ("school", int(school_id)), ("start", start), ("end", end))


def student_profile_key(student_id: int) -> CacheKey:
    return CacheKey.build(CacheRegion.STUDENT_PROFILE, ("student", int(student_id)))


def teacher_profile_key(teacher_id: int) -> CacheKey:
    return CacheKey.build(CacheRegion.TEACHER_PROFILE, ("teacher", int(teacher_id)))


def class_roster_key(school_id: int, standard: Optional[str], section: Optional[str]) -> CacheKey:
    return CacheKey.build(
        CacheRegion.CLASS_ROSTER, ("school", int(school_id)), ("standard", standard), ("section", section)
    )


def school_classes_key(school_id: int) -> CacheKey:
    return CacheKey.build(CacheRegion.SCHOOL_CLASSES, ("school", int(school_id)))

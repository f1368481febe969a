from __future__ import annotations

from typing import Optional, Sequence

from ..cache import keys
from ..cache.service import AttendanceCache
from .model import ClassInfo, Student, Teacher
from .repository import RosterProvider


class CachedRosterProvider(RosterProvider):
    """Roster lookups served from the long-TTL profile and class regions.

    Missing students/teachers are not cached, so a newly enrolled student
    resolves on the next call.
    """

    def __init__(self, roster: RosterProvider, cache: AttendanceCache):
        self._roster = roster
        self._cache = cache

    def get_student(self, student_id: int) -> Optional[Student]:
        return self._cache.get_or_compute(
            keys.student_profile_key(student_id),
            lambda: self._roster.get_student(student_id),
        )

    def get_teacher(self, teacher_id: int) -> Optional[Teacher]:
        return self._cache.get_or_compute(
            keys.teacher_profile_key(teacher_id),
            lambda: self._roster.get_teacher(teacher_id),
        )

    def list_active_students(
        self,
        school_id: int,
        standard: Optional[str] = None,
        section: Optional[str] = None,
    ) -> Sequence[Student]:
        return self._cache.get_or_compute(
            keys.class_roster_key(school_id, standard, section),
            lambda: list(self._roster.list_active_students(school_id, standard, section)),
        )

    def list_classes(self, school_id: int) -> Sequence[ClassInfo]:
        return self._cache.get_or_compute(
            keys.school_classes_key(school_id),
            lambda: list(self._roster.list_classes(school_id)),
        )

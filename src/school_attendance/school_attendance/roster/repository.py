from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import ClassInfo, Student, Teacher


class RosterProvider(Protocol):
    """Read-only directory of schools, students and teachers."""

    def get_student(self, student_id: int) -> Optional[Student]:
        raise NotImplementedError

    def get_teacher(self, teacher_id: int) -> Optional[Teacher]:
        raise NotImplementedError

    def list_active_students(
        self,
        school_id: int,
        standard: Optional[str] = None,
        section: Optional[str] = None,
    ) -> Sequence[Student]:
        """Active students of a school, optionally narrowed by standard and section.

        A ``None`` filter matches every value. Ordered by standard, section,
        then student id.
        """

        raise NotImplementedError

    def list_classes(self, school_id: int) -> Sequence[ClassInfo]:
        raise NotImplementedError

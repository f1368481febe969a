from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


def class_key(standard: str, section: Optional[str]) -> str:
    """Grouping key ``standard-section``; section may be absent."""

    return f"{standard}-{section or ''}"


@dataclass(frozen=True)
class Student:
    student_id: int
    school_id: int
    standard: str
    section: Optional[str]
    is_active: bool = True
    full_name: str = ""

    @property
    def class_key(self) -> str:
        return class_key(self.standard, self.section)

    @property
    def class_name(self) -> str:
        return self.standard + (f"-{self.section}" if self.section else "")


@dataclass(frozen=True)
class Teacher:
    teacher_id: int
    school_id: int
    is_active: bool = True
    full_name: str = ""


@dataclass(frozen=True)
class ClassInfo:
    school_id: int
    standard: str
    section: Optional[str]
    student_count: int = 0

    @property
    def class_key(self) -> str:
        return class_key(self.standard, self.section)

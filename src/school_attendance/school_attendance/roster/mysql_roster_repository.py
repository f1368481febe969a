from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone
from .model import ClassInfo, Student, Teacher
from .repository import RosterProvider

_STUDENT_COLUMNS = "student_id, school_id, standard, section, is_active, full_name"


def _to_student(r: dict) -> Student:
    return Student(
        student_id=int(r["student_id"]),
        school_id=int(r["school_id"]),
        standard=str(r["standard"]),
        section=r.get("section"),
        is_active=as_bool(r.get("is_active")),
        full_name=r.get("full_name") or "",
    )


class MySQLRosterRepository(RosterProvider):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_student(self, student_id: int) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_STUDENT_COLUMNS} FROM students WHERE student_id=%s", (int(student_id),))
            r = fetchone(cur)
            return _to_student(r) if r else None

    def get_teacher(self, teacher_id: int) -> Optional[Teacher]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT teacher_id, school_id, is_active, full_name FROM teachers WHERE teacher_id=%s",
                (int(teacher_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Teacher(
                teacher_id=int(r["teacher_id"]),
                school_id=int(r["school_id"]),
                is_active=as_bool(r.get("is_active")),
                full_name=r.get("full_name") or "",
            )

    def list_active_students(
        self,
        school_id: int,
        standard: Optional[str] = None,
        section: Optional[str] = None,
    ) -> Sequence[Student]:
        clauses = ["school_id=%s", "is_active=1"]
        params: list[object] = [int(school_id)]

        if standard is not None:
            clauses.append("standard=%s")
            params.append(standard)
        if section is not None:
            clauses.append("section=%s")
            params.append(section)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_STUDENT_COLUMNS}
                FROM students
                WHERE {where}
                ORDER BY standard ASC, section ASC, student_id ASC
                """,
                tuple(params),
            )
            return [_to_student(r) for r in fetchall(cur)]

    def list_classes(self, school_id: int) -> Sequence[ClassInfo]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT standard, section, COUNT(*) AS student_count
                FROM students
                WHERE school_id=%s AND is_active=1
                GROUP BY standard, section
                ORDER BY standard ASC, section ASC
                """,
                (int(school_id),),
            )
            return [
                ClassInfo(
                    school_id=int(school_id),
                    standard=str(r["standard"]),
                    section=r.get("section"),
                    student_count=int(r["student_count"]),
                )
                for r in fetchall(cur)
            ]

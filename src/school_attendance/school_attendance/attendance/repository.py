from __future__ import annotations

from datetime import date
from typing import Iterator, Optional, Protocol

from ..core.enums import AttendanceStatus, SortOrder
from .model import AttendanceFact, Page
from .specifications import AttendanceFilter


class AttendanceLedger(Protocol):
    """Authoritative store of one attendance fact per (student, date).

    Implementations must enforce natural-key uniqueness in storage and make
    ``upsert`` / ``insert_if_absent`` / ``replace`` atomic with respect to
    the existence check. The ledger never talks to the cache.
    """

    def upsert(
        self,
        *,
        student_id: int,
        work_date: date,
        status: AttendanceStatus,
        note: Optional[str] = None,
        marked_by: Optional[int] = None,
        is_holiday: bool = False,
    ) -> AttendanceFact:
        """Create the fact for the key or overwrite it in place.

        Raises ``NotFoundError`` when the student or ``marked_by`` teacher
        does not exist.
        """

        raise NotImplementedError

    def insert_if_absent(
        self,
        *,
        student_id: int,
        work_date: date,
        status: AttendanceStatus,
        note: Optional[str] = None,
        marked_by: Optional[int] = None,
        is_holiday: bool = False,
    ) -> Optional[AttendanceFact]:
        """Create the fact only if the key is free; ``None`` when it was taken."""

        raise NotImplementedError

    def replace(
        self,
        fact_id: int,
        *,
        student_id: int,
        work_date: date,
        status: AttendanceStatus,
        note: Optional[str] = None,
        marked_by: Optional[int] = None,
        is_holiday: bool = False,
    ) -> AttendanceFact:
        """Atomically correct an existing fact; ``NotFoundError`` if the id is unknown."""

        raise NotImplementedError

    def get(self, student_id: int, work_date: date) -> Optional[AttendanceFact]:
        raise NotImplementedError

    def get_by_id(self, fact_id: int) -> Optional[AttendanceFact]:
        raise NotImplementedError

    def delete(self, fact_id: int) -> None:
        raise NotImplementedError

    def query(self, spec: AttendanceFilter, *, order: SortOrder = SortOrder.DESC) -> Iterator[AttendanceFact]:
        """Lazily yield matching facts ordered by date (then id)."""

        raise NotImplementedError

    def page(self, spec: AttendanceFilter, *, page: int, size: int) -> Page[AttendanceFact]:
        raise NotImplementedError

    def exists_for_student_on_date(self, student_id: int, work_date: date) -> bool:
        raise NotImplementedError

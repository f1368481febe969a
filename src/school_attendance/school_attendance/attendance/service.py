from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Optional, Sequence

from ..cache.service import AttendanceCache
from ..common.validators import clean_note, require_date_range, require_page
from ..core.constants import DEFAULT_PAGE_SIZE, HOLIDAY_NOTE
from ..core.enums import AttendanceStatus
from ..core.exceptions import DomainError, NotFoundError, TransientStoreError, ValidationError
from ..roster.model import Student, Teacher
from ..roster.repository import RosterProvider
from ..statistics.calendar import WorkingCalendar
from .model import AttendanceFact, BatchItemError, BatchResult, BulkMarkRequest, DailyMarkResult, Page
from .repository import AttendanceLedger
from .specifications import AttendanceFilter, for_student_summary

logger = logging.getLogger(__name__)

# Per-item failures a batch records and moves past.
_ITEM_ERRORS = (DomainError, TransientStoreError)


class AttendanceService:
    """Marking engine: every write goes to the ledger, then evicts the cache.

    Invalidation happens before a write method returns, so a caller that saw
    success never reads an aggregate older than its own write from the cache.
    """

    def __init__(
        self,
        ledger: AttendanceLedger,
        roster: RosterProvider,
        cache: Optional[AttendanceCache] = None,
        *,
        calendar: Optional[WorkingCalendar] = None,
    ):
        self._ledger = ledger
        self._roster = roster
        self._cache = cache
        self._calendar = calendar or WorkingCalendar()

    def _require_student(self, student_id: int) -> Student:
        student = self._roster.get_student(int(student_id))
        if not student:
            raise ValidationError(f"Student with ID {student_id} not found")
        return student

    def _require_teacher(self, teacher_id: Optional[int]) -> Optional[Teacher]:
        if teacher_id is None:
            return None
        teacher = self._roster.get_teacher(int(teacher_id))
        if not teacher:
            raise ValidationError(f"Teacher with ID {teacher_id} not found")
        return teacher

    def _invalidate(self, fact: AttendanceFact) -> None:
        if self._cache:
            self._cache.invalidate_for_write(student_id=fact.student_id, work_date=fact.date)

    def _invalidate_batch(self, dates: Iterable[date]) -> None:
        if self._cache:
            self._cache.invalidate_for_batch(dates=dates)

    def _upsert(
        self,
        student_id: int,
        work_date: date,
        status: AttendanceStatus,
        note: Optional[str],
        teacher_id: Optional[int],
    ) -> AttendanceFact:
        self._require_student(student_id)
        return self._ledger.upsert(
            student_id=int(student_id),
            work_date=work_date,
            status=status,
            note=clean_note(note),
            marked_by=teacher_id,
            is_holiday=status == AttendanceStatus.HOLIDAY,
        )

    def mark_one(
        self,
        student_id: int,
        work_date: date,
        status: AttendanceStatus,
        note: Optional[str] = None,
        teacher_id: Optional[int] = None,
    ) -> AttendanceFact:
        logger.info("Marking attendance for student %s on %s with status %s", student_id, work_date, status.value)
        self._require_teacher(teacher_id)

        fact = self._upsert(student_id, work_date, status, note, teacher_id)
        self._invalidate(fact)
        logger.info("Saved attendance record %s for student %s", fact.fact_id, student_id)
        return fact

    def bulk_mark(self, requests: Sequence[BulkMarkRequest], teacher_id: Optional[int] = None) -> BatchResult:
        logger.info("Bulk marking attendance for %d students", len(requests))
        self._require_teacher(teacher_id)

        facts: list[AttendanceFact] = []
        errors: list[BatchItemError] = []
        try:
            for req in requests:
                try:
                    facts.append(self._upsert(req.student_id, req.date, req.status, req.note, teacher_id))
                except _ITEM_ERRORS as exc:
                    logger.warning("Failed to mark attendance for student %s - %s", req.student_id, exc)
                    errors.append(BatchItemError(student_id=req.student_id, message=str(exc)))
        finally:
            if facts:
                self._invalidate_batch({f.date for f in facts})
        logger.info("Marked attendance for %d out of %d students", len(facts), len(requests))
        return BatchResult(
            total=len(requests),
            succeeded=len(facts),
            failed=len(errors),
            facts=tuple(facts),
            errors=tuple(errors),
        )

    def mark_daily_roster(
        self,
        school_id: int,
        work_date: date,
        absent_student_ids: Iterable[int] = (),
        is_holiday: bool = False,
        teacher_id: Optional[int] = None,
    ) -> DailyMarkResult:
        """Mark every active student of a school; only absentees need listing."""

        logger.info("Marking daily attendance for school %s on %s", school_id, work_date)
        self._calendar.ensure_markable(work_date)
        self._require_teacher(teacher_id)

        students = self._roster.list_active_students(int(school_id))
        absent = {int(i) for i in (absent_student_ids or ())}
        unknown = absent - {s.student_id for s in students}
        if unknown:
            logger.warning("Absent ids not on the active roster of school %s: %s", school_id, sorted(unknown))

        facts: list[AttendanceFact] = []
        errors: list[BatchItemError] = []
        try:
            for student in students:
                if is_holiday:
                    status, note = AttendanceStatus.HOLIDAY, HOLIDAY_NOTE
                elif student.student_id in absent:
                    status, note = AttendanceStatus.ABSENT, None
                else:
                    status, note = AttendanceStatus.PRESENT, None

                try:
                    facts.append(
                        self._ledger.upsert(
                            student_id=student.student_id,
                            work_date=work_date,
                            status=status,
                            note=note,
                            marked_by=teacher_id,
                            is_holiday=is_holiday,
                        )
                    )
                except _ITEM_ERRORS as exc:
                    logger.warning("Failed to mark attendance for student %s - %s", student.student_id, exc)
                    errors.append(BatchItemError(student_id=student.student_id, message=str(exc)))
        finally:
            if facts:
                self._invalidate_batch([work_date])
        logger.info(
            "Daily attendance marked: %d successful, %d failed for %d students",
            len(facts),
            len(errors),
            len(students),
        )
        return DailyMarkResult(
            total_students=len(students),
            success_count=len(facts),
            failure_count=len(errors),
            facts=tuple(facts),
            date=work_date,
            is_holiday=is_holiday,
            errors=tuple(errors),
        )

    def mark_holiday(self, school_id: int, work_date: date, reason: Optional[str] = None) -> BatchResult:
        """Create HOLIDAY facts for students not yet marked; existing marks are kept."""

        logger.info("Marking holiday for school %s on %s", school_id, work_date)
        note = clean_note(reason) or HOLIDAY_NOTE
        students = self._roster.list_active_students(int(school_id))

        facts: list[AttendanceFact] = []
        errors: list[BatchItemError] = []
        skipped = 0
        try:
            for student in students:
                try:
                    fact = self._ledger.insert_if_absent(
                        student_id=student.student_id,
                        work_date=work_date,
                        status=AttendanceStatus.HOLIDAY,
                        note=note,
                        is_holiday=True,
                    )
                except _ITEM_ERRORS as exc:
                    logger.warning("Failed to mark holiday for student %s - %s", student.student_id, exc)
                    errors.append(BatchItemError(student_id=student.student_id, message=str(exc)))
                    continue
                if fact is None:
                    skipped += 1
                else:
                    facts.append(fact)
        finally:
            if facts:
                self._invalidate_batch([work_date])
        logger.info("Marked holiday for %d students (%d already marked)", len(facts), skipped)
        return BatchResult(
            total=len(students),
            succeeded=len(facts),
            failed=len(errors),
            skipped=skipped,
            facts=tuple(facts),
            errors=tuple(errors),
        )

    def delete_fact(self, fact_id: int) -> None:
        logger.info("Deleting attendance record %s", fact_id)
        existing = self._ledger.get_by_id(int(fact_id))
        if not existing:
            raise NotFoundError(f"Attendance record with ID {fact_id} not found")

        self._ledger.delete(int(fact_id))
        self._invalidate(existing)
        logger.info("Deleted attendance record %s", fact_id)

    def delete_and_remark(
        self,
        fact_id: int,
        *,
        student_id: int,
        work_date: date,
        status: AttendanceStatus,
        note: Optional[str] = None,
        teacher_id: Optional[int] = None,
    ) -> AttendanceFact:
        """Correct a fact in one atomic ledger call.

        The surrogate id survives when the natural key is unchanged; moving the
        fact to another student or date yields the id of the target key.
        """

        logger.info("Correcting attendance record %s", fact_id)
        self._require_student(student_id)
        self._require_teacher(teacher_id)
        existing = self._ledger.get_by_id(int(fact_id))
        if not existing:
            raise NotFoundError(f"Attendance record with ID {fact_id} not found")

        fact = self._ledger.replace(
            int(fact_id),
            student_id=int(student_id),
            work_date=work_date,
            status=status,
            note=clean_note(note),
            marked_by=teacher_id,
            is_holiday=status == AttendanceStatus.HOLIDAY,
        )
        self._invalidate(existing)
        if fact.natural_key != existing.natural_key:
            self._invalidate(fact)
        return fact

    def get_fact(self, student_id: int, work_date: date) -> Optional[AttendanceFact]:
        return self._ledger.get(int(student_id), work_date)

    def record_exists(self, student_id: int, work_date: date) -> bool:
        return self._ledger.exists_for_student_on_date(int(student_id), work_date)

    def list_facts(
        self,
        start: Optional[date],
        end: Optional[date],
        page: int = 0,
        size: int = DEFAULT_PAGE_SIZE,
    ) -> Page[AttendanceFact]:
        page, size = require_page(page, size)
        return self._ledger.page(AttendanceFilter(start=start, end=end), page=page, size=size)

    def student_history(self, student_id: int, start: date, end: date) -> list[AttendanceFact]:
        start, end = require_date_range(start, end)
        return list(self._ledger.query(for_student_summary(student_id, start, end)))

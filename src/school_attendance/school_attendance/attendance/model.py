from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Generic, Optional, Sequence, TypeVar

from ..core.enums import AttendanceStatus

T = TypeVar("T")


@dataclass(frozen=True)
class AttendanceFact:
    """Domain entity: one attendance outcome for one student on one date.

    ``(student_id, date)`` is the natural key; ``fact_id`` is the surrogate id
    assigned by the ledger on creation.
    """

    fact_id: int
    student_id: int
    date: date
    status: AttendanceStatus
    marked_at: datetime
    note: Optional[str] = None
    is_holiday: bool = False
    marked_by: Optional[int] = None

    @property
    def natural_key(self) -> tuple[int, date]:
        return self.student_id, self.date


@dataclass(frozen=True)
class Page(Generic[T]):
    items: Sequence[T]
    page: int
    size: int
    total_items: int

    @property
    def total_pages(self) -> int:
        if self.size <= 0:
            return 0
        return math.ceil(self.total_items / self.size)

    @property
    def has_next(self) -> bool:
        return self.page + 1 < self.total_pages


@dataclass(frozen=True)
class BulkMarkRequest:
    student_id: int
    date: date
    status: AttendanceStatus
    note: Optional[str] = None


@dataclass(frozen=True)
class BatchItemError:
    student_id: int
    message: str


@dataclass(frozen=True)
class BatchResult:
    """Outcome of a batch write; failed items never abort the batch."""

    total: int
    succeeded: int
    failed: int
    skipped: int = 0
    facts: Sequence[AttendanceFact] = field(default_factory=tuple)
    errors: Sequence[BatchItemError] = field(default_factory=tuple)


@dataclass(frozen=True)
class DailyMarkResult:
    total_students: int
    success_count: int
    failure_count: int
    facts: Sequence[AttendanceFact]
    date: date
    is_holiday: bool
    errors: Sequence[BatchItemError] = field(default_factory=tuple)

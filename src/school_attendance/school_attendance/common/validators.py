from __future__ import annotations

from datetime import date
from typing import Optional

from ..core.constants import MAX_NOTE_LENGTH, MAX_PAGE_SIZE
from ..core.exceptions import ValidationError


def require_date_range(start: Optional[date], end: Optional[date]) -> tuple[date, date]:
    if start is None or end is None:
        raise ValidationError("Start date and end date are required")
    if start > end:
        raise ValidationError(f"Start date {start} is after end date {end}")
    return start, end


def require_page(page: int, size: int) -> tuple[int, int]:
    if page < 0:
        raise ValidationError("Page number must not be negative")
    if size < 1 or size > MAX_PAGE_SIZE:
        raise ValidationError(f"Page size must be between 1 and {MAX_PAGE_SIZE}")
    return int(page), int(size)


def clean_note(note: Optional[str]) -> Optional[str]:
    if note is None:
        return None
    note = note.strip()
    if not note:
        return None
    if len(note) > MAX_NOTE_LENGTH:
        raise ValidationError(f"Note must not exceed {MAX_NOTE_LENGTH} characters")
    return note

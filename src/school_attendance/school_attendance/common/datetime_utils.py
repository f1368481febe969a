from __future__ import annotations

import calendar
from datetime import date, datetime


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch it easily.
    """
    return datetime.now()


def month_bounds(year: int, month: int) -> tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)

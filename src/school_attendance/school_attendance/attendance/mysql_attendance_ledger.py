from __future__ import annotations

from datetime import date, datetime
from typing import Callable, Iterator, Optional

from mysql.connector import errors as mysql_errors

from ..common.datetime_utils import now_local
from ..common.validators import require_page
from ..core.constants import DEFAULT_QUERY_FETCH_SIZE, MYSQL_ER_DUP_ENTRY
from ..core.enums import AttendanceStatus, SortOrder
from ..core.exceptions import NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone
from .model import AttendanceFact, Page
from .repository import AttendanceLedger
from .specifications import AttendanceFilter

_COLUMNS = "ar.fact_id, ar.student_id, ar.work_date, ar.status, ar.note, ar.marked_at, ar.is_holiday, ar.marked_by"

_UPSERT_SQL = """
    INSERT INTO attendance_records(student_id, work_date, status, note, marked_at, is_holiday, marked_by)
    VALUES(%s,%s,%s,%s,%s,%s,%s) AS new
    ON DUPLICATE KEY UPDATE
        status=new.status,
        note=new.note,
        marked_at=new.marked_at,
        is_holiday=new.is_holiday,
        marked_by=new.marked_by
"""

_INSERT_SQL = """
    INSERT INTO attendance_records(student_id, work_date, status, note, marked_at, is_holiday, marked_by)
    VALUES(%s,%s,%s,%s,%s,%s,%s)
"""


def _to_fact(r: dict) -> AttendanceFact:
    marked_by = r.get("marked_by")
    return AttendanceFact(
        fact_id=int(r["fact_id"]),
        student_id=int(r["student_id"]),
        date=r["work_date"],
        status=AttendanceStatus(r["status"]),
        marked_at=r["marked_at"],
        note=r.get("note"),
        is_holiday=as_bool(r.get("is_holiday")),
        marked_by=int(marked_by) if marked_by is not None else None,
    )


class MySQLAttendanceLedger(AttendanceLedger):
    """Ledger backed by the ``attendance_records`` table.

    Natural-key uniqueness is the ``uq_attendance_date_student`` constraint;
    upserts are a single ``INSERT ... ON DUPLICATE KEY UPDATE`` statement so
    concurrent marks of one key serialize inside MySQL.
    """

    def __init__(
        self,
        conn_factory: DatabaseConnection,
        *,
        clock: Callable[[], datetime] = now_local,
        fetch_size: int = DEFAULT_QUERY_FETCH_SIZE,
    ):
        self._conn_factory = conn_factory
        self._clock = clock
        self._fetch_size = int(fetch_size)

    @staticmethod
    def _select_by_key(cur, student_id: int, work_date: date) -> Optional[AttendanceFact]:
        cur.execute(
            f"SELECT {_COLUMNS} FROM attendance_records ar WHERE ar.student_id=%s AND ar.work_date=%s",
            (int(student_id), work_date),
        )
        r = fetchone(cur)
        return _to_fact(r) if r else None

    def _row_params(self, student_id, work_date, status, note, marked_by, is_holiday) -> tuple:
        return (
            int(student_id),
            work_date,
            status.value,
            note,
            self._clock(),
            1 if is_holiday else 0,
            int(marked_by) if marked_by is not None else None,
        )

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_UPSERT_SQL, self._row_params(student_id, work_date, status, note, marked_by, is_holiday))
            return self._select_by_key(cur, student_id, work_date)

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
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(_INSERT_SQL, self._row_params(student_id, work_date, status, note, marked_by, is_holiday))
            except mysql_errors.IntegrityError as exc:
                if exc.errno == MYSQL_ER_DUP_ENTRY:
                    return None
                raise
            return self._select_by_key(cur, student_id, work_date)

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records ar WHERE ar.fact_id=%s FOR UPDATE",
                (int(fact_id),),
            )
            r = fetchone(cur)
            if not r:
                raise NotFoundError(f"Attendance record with ID {fact_id} not found")
            existing = _to_fact(r)

            if existing.natural_key == (int(student_id), work_date):
                cur.execute(
                    """
                    UPDATE attendance_records
                    SET status=%s, note=%s, marked_at=%s, is_holiday=%s, marked_by=%s
                    WHERE fact_id=%s
                    """,
                    (
                        status.value,
                        note,
                        self._clock(),
                        1 if is_holiday else 0,
                        int(marked_by) if marked_by is not None else None,
                        int(fact_id),
                    ),
                )
            else:
                cur.execute("DELETE FROM attendance_records WHERE fact_id=%s", (int(fact_id),))
                cur.execute(_UPSERT_SQL, self._row_params(student_id, work_date, status, note, marked_by, is_holiday))
            return self._select_by_key(cur, student_id, work_date)

    def get(self, student_id: int, work_date: date) -> Optional[AttendanceFact]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._select_by_key(cur, student_id, work_date)

    def get_by_id(self, fact_id: int) -> Optional[AttendanceFact]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records ar WHERE ar.fact_id=%s", (int(fact_id),))
            r = fetchone(cur)
            return _to_fact(r) if r else None

    def delete(self, fact_id: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_records WHERE fact_id=%s", (int(fact_id),))
            if cur.rowcount == 0:
                raise NotFoundError(f"Attendance record with ID {fact_id} not found")

    @staticmethod
    def _from_clause(spec: AttendanceFilter) -> str:
        if spec.needs_student_join:
            return "attendance_records ar JOIN students s ON s.student_id = ar.student_id"
        return "attendance_records ar"

    def query(self, spec: AttendanceFilter, *, order: SortOrder = SortOrder.DESC) -> Iterator[AttendanceFact]:
        # Keyset pagination; each chunk is its own short transaction and no
        # connection is held between chunks.
        where, params = spec.to_sql()
        direction = "DESC" if order == SortOrder.DESC else "ASC"
        comparator = "<" if order == SortOrder.DESC else ">"
        last: Optional[tuple[date, int]] = None

        while True:
            chunk_where = where
            chunk_params = list(params)
            if last is not None:
                chunk_where += f" AND (ar.work_date, ar.fact_id) {comparator} (%s, %s)"
                chunk_params.extend(last)

            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    f"""
                    SELECT {_COLUMNS}
                    FROM {self._from_clause(spec)}
                    WHERE {chunk_where}
                    ORDER BY ar.work_date {direction}, ar.fact_id {direction}
                    LIMIT %s
                    """,
                    tuple(chunk_params) + (self._fetch_size,),
                )
                facts = [_to_fact(r) for r in fetchall(cur)]

            yield from facts
            if len(facts) < self._fetch_size:
                return
            last = (facts[-1].date, facts[-1].fact_id)

    def page(self, spec: AttendanceFilter, *, page: int, size: int) -> Page[AttendanceFact]:
        page, size = require_page(page, size)
        where, params = spec.to_sql()
        from_clause = self._from_clause(spec)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM {from_clause} WHERE {where}", tuple(params))
            total = int(fetchone(cur)["total"])
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM {from_clause}
                WHERE {where}
                ORDER BY ar.work_date DESC, ar.fact_id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params) + (size, page * size),
            )
            items = [_to_fact(r) for r in fetchall(cur)]

        return Page(items=items, page=page, size=size, total_items=total)

    def exists_for_student_on_date(self, student_id: int, work_date: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT 1 AS found FROM attendance_records WHERE student_id=%s AND work_date=%s LIMIT 1",
                (int(student_id), work_date),
            )
            return fetchone(cur) is not None

from __future__ import annotations

from datetime import date, datetime
from typing import Optional


class FakeCursor:
    def __init__(self, conn: "FakeConnection"):
        self._conn = conn
        self._rows: list[dict] = []
        self.rowcount = 0
        self.closed = False

    def execute(self, sql: str, params=()):
        self._conn.factory.executed.append((" ".join(sql.split()), tuple(params)))
        outcomes = self._conn.factory.outcomes
        outcome = outcomes.pop(0) if outcomes else []
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, int):
            self._rows, self.rowcount = [], outcome
        else:
            self._rows, self.rowcount = list(outcome), len(outcome)

    def fetchone(self):
        return self._rows.pop(0) if self._rows else None

    def fetchall(self):
        rows, self._rows = self._rows, []
        return rows

    def close(self):
        self.closed = True


class FakeConnection:
    def __init__(self, factory: "FakeConnectionFactory"):
        self.factory = factory
        self.committed = False
        self.rolled_back = False
        self.closed = False

    def cursor(self, dictionary: bool = False):
        return FakeCursor(self)

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


class FakeConnectionFactory:
    """Stands in for ``DatabaseConnection``; every ``execute`` consumes one scripted outcome.

    An outcome is a list of row dicts, an int rowcount, or an exception to raise.
    """

    def __init__(self, outcomes=None, *, connect_error: Optional[Exception] = None):
        self.outcomes = list(outcomes or [])
        self.connect_error = connect_error
        self.executed: list[tuple[str, tuple]] = []
        self.connections: list[FakeConnection] = []

    def connect(self, *, with_database: bool = True):
        if self.connect_error is not None:
            raise self.connect_error
        conn = FakeConnection(self)
        self.connections.append(conn)
        return conn


def fact_row(fact_id: int, student_id: int, work_date: date, status: str, *, is_holiday: int = 0, marked_by=None):
    return {
        "fact_id": fact_id,
        "student_id": student_id,
        "work_date": work_date,
        "status": status,
        "note": None,
        "marked_at": datetime(2024, 3, 4, 8, 0, 0),
        "is_holiday": is_holiday,
        "marked_by": marked_by,
    }

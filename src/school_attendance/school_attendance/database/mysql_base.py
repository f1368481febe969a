from __future__ import annotations

from contextlib import contextmanager, suppress
from typing import Any, Dict, List, Optional

import mysql.connector
from mysql.connector import errors as mysql_errors

from ..core.constants import MYSQL_ER_LOCK_DEADLOCK, MYSQL_ER_LOCK_WAIT_TIMEOUT, MYSQL_ER_NO_REFERENCED_ROW
from ..core.exceptions import NotFoundError, TransientStoreError
from .connection import DatabaseConnection

_TRANSIENT_ERRORS = (mysql_errors.OperationalError, mysql_errors.InterfaceError, mysql_errors.PoolError)

# Server errors that abort only the current transaction; retrying can succeed.
_TRANSIENT_ERRNOS = frozenset({MYSQL_ER_LOCK_WAIT_TIMEOUT, MYSQL_ER_LOCK_DEADLOCK})


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, _TRANSIENT_ERRORS):
        return True
    return isinstance(exc, mysql_errors.DatabaseError) and exc.errno in _TRANSIENT_ERRNOS


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Yield ``(conn, cursor)`` inside one transaction.

    Commits on success and rolls back on any error. Connection loss,
    timeouts, deadlocks and lock-wait timeouts are re-raised as
    :class:`TransientStoreError`; a foreign key miss is re-raised as
    :class:`NotFoundError`.
    """

    try:
        conn = conn_factory.connect()
    except _TRANSIENT_ERRORS as exc:
        raise TransientStoreError(f"Database unavailable: {exc}") from exc

    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as exc:
        with suppress(mysql.connector.Error):
            conn.rollback()
        if _is_transient(exc):
            raise TransientStoreError(f"Database operation failed: {exc}") from exc
        if isinstance(exc, mysql_errors.IntegrityError) and exc.errno == MYSQL_ER_NO_REFERENCED_ROW:
            raise NotFoundError(f"Referenced student or teacher does not exist: {exc.msg}") from exc
        raise
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def as_bool(value: Any) -> bool:
    """MySQL returns TINYINT(1) columns as ints."""

    if value is None:
        return False
    return bool(int(value))

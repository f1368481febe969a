from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, Optional

from .connection import DBConfig, DatabaseConnection

logger = logging.getLogger(__name__)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql compatible regardless of DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _strip_line_comments(sql: str) -> str:
    return re.sub(r"(?m)^\s*--.*$", "", sql)


def iter_sql_statements(sql: str) -> Iterable[str]:
    """Split a schema file on ``;`` outside of quoted literals."""

    buf: list[str] = []
    quote: Optional[str] = None
    escape = False

    for ch in sql:
        buf.append(ch)
        if escape:
            escape = False
            continue
        if ch == "\\":
            escape = True
            continue
        if ch in ("'", '"'):
            if quote is None:
                quote = ch
            elif quote == ch:
                quote = None
            continue
        if ch == ";" and quote is None:
            stmt = "".join(buf[:-1]).strip()
            buf.clear()
            if stmt:
                yield stmt

    tail = "".join(buf).strip()
    if tail:
        yield tail


def ensure_database_exists(config: DBConfig) -> None:
    conn = DatabaseConnection(config).connect(with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{config.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(config: DBConfig, *, schema_path: str | Path) -> None:
    ensure_database_exists(config)

    schema_path = Path(schema_path)
    sql = _strip_line_comments(_strip_create_db_and_use(schema_path.read_text(encoding="utf-8")))

    conn = DatabaseConnection(config).connect()
    try:
        cur = conn.cursor()
        count = 0
        for stmt in iter_sql_statements(sql):
            cur.execute(stmt)
            count += 1
        conn.commit()
    finally:
        conn.close()
    logger.info("Applied %d schema statements from %s to %s", count, schema_path.name, config.database)


def list_tables(config: DBConfig) -> list[str]:
    conn = DatabaseConnection(config).connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()

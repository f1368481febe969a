from __future__ import annotations

from pathlib import Path

from src.school_attendance.school_attendance.database import bootstrap
from src.school_attendance.school_attendance.database.connection import DBConfig

from tests.database.fake_mysql import FakeConnectionFactory

SCHEMA = Path(__file__).resolve().parents[2] / "database" / "schema.sql"


def test_split_ignores_semicolons_inside_literals():
    sql = "INSERT INTO t VALUES ('a;b');\nINSERT INTO t VALUES ('it\\'s;');  SELECT 1"

    assert list(bootstrap.iter_sql_statements(sql)) == [
        "INSERT INTO t VALUES ('a;b')",
        "INSERT INTO t VALUES ('it\\'s;')",
        "SELECT 1",
    ]


def test_apply_schema_creates_database_then_tables(monkeypatch):
    factory = FakeConnectionFactory()
    monkeypatch.setattr(bootstrap, "DatabaseConnection", lambda config: factory)
    config = DBConfig(host="db", port=3306, user="u", password="p", database="att_test")

    bootstrap.apply_schema(config, schema_path=SCHEMA)

    statements = [sql for sql, _ in factory.executed]
    assert statements[0].startswith("CREATE DATABASE IF NOT EXISTS `att_test`")
    assert not any(s.startswith("USE ") for s in statements)
    assert any("CREATE TABLE IF NOT EXISTS attendance_records" in s for s in statements)
    assert all(conn.committed and conn.closed for conn in factory.connections)

from __future__ import annotations

from dataclasses import dataclass

import mysql.connector

from ..core.constants import DEFAULT_STORE_TIMEOUT_SECONDS


@dataclass(frozen=True)
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    timeout_seconds: int = DEFAULT_STORE_TIMEOUT_SECONDS

    @classmethod
    def from_dict(cls, db_config: dict, *, timeout_seconds: int = DEFAULT_STORE_TIMEOUT_SECONDS) -> "DBConfig":
        return cls(
            host=str(db_config.get("host", "localhost")),
            port=int(db_config.get("port", 3306)),
            user=str(db_config.get("user", "root")),
            password=str(db_config.get("password", "")),
            database=str(db_config.get("database", "school_attendance")),
            timeout_seconds=int(db_config.get("timeout_seconds", timeout_seconds)),
        )


class DatabaseConnection:
    """DB connection factory.

    Note: We create short-lived connections per operation; every connection
    carries a bounded connect timeout so a dead server surfaces as a
    retryable error instead of a hung request.
    """

    def __init__(self, config: DBConfig):
        self._config = config

    @property
    def config(self) -> DBConfig:
        return self._config

    def connect(self, *, with_database: bool = True):
        params = dict(
            host=self._config.host,
            port=int(self._config.port),
            user=self._config.user,
            password=self._config.password,
            connection_timeout=int(self._config.timeout_seconds),
            use_pure=True,
        )
        if with_database:
            params["database"] = self._config.database
        return mysql.connector.connect(**params)

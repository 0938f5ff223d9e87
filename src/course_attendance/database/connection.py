from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import mysql.connector


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    connection_timeout: Optional[int] = None

    @classmethod
    def from_dict(cls, db_config: dict) -> "DBConfig":
        timeout = db_config.get("connection_timeout")
        return cls(
            host=str(db_config.get("host", "localhost")),
            port=int(db_config.get("port", 3306)),
            user=str(db_config.get("user", "root")),
            password=str(db_config.get("password", "")),
            database=str(db_config.get("database", "course_attendance")),
            connection_timeout=int(timeout) if timeout else None,
        )


class DatabaseConnection:
    """DB connection factory handed to every repository at construction.

    Note: We create short-lived connections per operation (safe for simple Flask apps).
    One instance is built per application in `build_container`; there is no
    process-wide instance, so tests and scripts control its lifetime.
    """

    def __init__(self, config: DBConfig):
        self._config = config

    @property
    def config(self) -> DBConfig:
        return self._config

    def connect(self):
        kwargs = dict(
            host=self._config.host,
            port=int(self._config.port),
            user=self._config.user,
            password=self._config.password,
            database=self._config.database,
        )
        if self._config.connection_timeout:
            kwargs["connection_timeout"] = int(self._config.connection_timeout)
        return mysql.connector.connect(**kwargs)

    def describe(self) -> str:
        c = self._config
        return f"{c.user}@{c.host}:{c.port}/{c.database}"

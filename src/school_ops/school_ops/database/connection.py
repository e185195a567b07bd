from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

import mysql.connector


@dataclass(frozen=True)
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str

    @classmethod
    def from_mapping(cls, data: Mapping) -> "DBConfig":
        """Build from a settings ``DB_CONFIG`` dict; only ``host`` is required."""
        if not data or not data.get("host"):
            raise ValueError("DB_CONFIG needs at least a host")
        return cls(
            host=str(data["host"]),
            port=int(data.get("port") or 3306),
            user=str(data.get("user") or "root"),
            password=str(data.get("password") or ""),
            database=str(data.get("database") or "school_ops"),
        )


class DatabaseConnection:
    """Process-wide factory for short-lived MySQL connections.

    Every repository call opens its own connection through ``db_cursor`` and
    runs as one transaction on it, so row locks taken with ``FOR UPDATE`` or an
    upsert are held until that call commits or rolls back.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self._config = config

    @property
    def config(self) -> DBConfig:
        return self._config

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        # A different config (e.g. another APP_ENV in the same process) replaces the factory.
        if cls._instance is None or cls._instance.config != config:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    def connect(self):
        return mysql.connector.connect(
            host=self._config.host,
            port=self._config.port,
            user=self._config.user,
            password=self._config.password,
            database=self._config.database,
            autocommit=False,
        )

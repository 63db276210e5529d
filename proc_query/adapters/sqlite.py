"""SQLite adapter using stdlib sqlite3.

SQLite has no stored procedures: text commands only.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Sequence
from typing import Any

from proc_query.core.connection import ConnectionConfig
from proc_query.core.exceptions import UnsupportedCommandError
from proc_query.core.params import Parameter


class SqliteAdapter:
    """SQLite adapter using stdlib sqlite3."""

    @property
    def paramstyle(self) -> str:
        return "named"

    def connect(self, config: ConnectionConfig) -> sqlite3.Connection:
        """Open a connection in autocommit mode (isolation_level=None)."""
        kwargs: dict[str, Any] = {"isolation_level": None}
        if config.connect_timeout is not None:
            kwargs["timeout"] = config.connect_timeout
        conn = sqlite3.connect(config.database, **kwargs)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def close(self, connection: sqlite3.Connection) -> None:
        connection.close()

    def begin(self, connection: sqlite3.Connection) -> None:
        connection.execute("BEGIN")

    def commit(self, connection: sqlite3.Connection) -> None:
        connection.execute("COMMIT")

    def rollback(self, connection: sqlite3.Connection) -> None:
        connection.execute("ROLLBACK")

    def execute(
        self,
        connection: sqlite3.Connection,
        sql: str,
        params: dict[str, Any] | None = None,
    ) -> sqlite3.Cursor:
        """Execute SQL and return a cursor."""
        return connection.execute(sql, params or {})

    def call_procedure(
        self,
        connection: sqlite3.Connection,
        name: str,
        parameters: Sequence[Parameter],
    ) -> Any:
        raise UnsupportedCommandError("sqlite", "stored procedures are not supported")

    def derive_parameters(self, connection: sqlite3.Connection, name: str) -> list[Parameter]:
        raise UnsupportedCommandError("sqlite", "stored procedures are not supported")

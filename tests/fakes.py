"""Test doubles for stored-procedure backends."""

from __future__ import annotations

import sqlite3
import threading
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from proc_query.adapters.cursors import return_value_slot
from proc_query.adapters.sqlite import SqliteAdapter
from proc_query.core.connection import ConnectionConfig
from proc_query.core.enums import ParameterDirection
from proc_query.core.exceptions import ProcedureNotFoundError
from proc_query.core.params import Parameter, clone_parameters, to_bind_mapping


@dataclass
class FakeProcedure:
    body: str
    parameters: list[Parameter] = field(default_factory=list)


class ProcedureSqliteAdapter(SqliteAdapter):
    """SQLite adapter with an in-process stored procedure catalogue.

    A procedure is a SQL body run with the bound parameters. Output
    parameters take their values from the matching columns of the first row.
    Connection and discovery activity is counted for assertions.
    """

    def __init__(self) -> None:
        self.procedures: dict[str, FakeProcedure] = {}
        self.discovery_calls = 0
        self.discovery_delay = 0.0
        self.opened = 0
        self.closed = 0
        self.last_parameters: list[tuple[str, Any]] | None = None
        self._lock = threading.Lock()

    def define(self, name: str, body: str, *parameters: Parameter) -> None:
        self.procedures[name.lower()] = FakeProcedure(body, list(parameters))

    @property
    def open_connections(self) -> int:
        return self.opened - self.closed

    def connect(self, config: ConnectionConfig) -> sqlite3.Connection:
        with self._lock:
            self.opened += 1
        return super().connect(config)

    def close(self, connection: sqlite3.Connection) -> None:
        with self._lock:
            self.closed += 1
        super().close(connection)

    def call_procedure(
        self,
        connection: sqlite3.Connection,
        name: str,
        parameters: Sequence[Parameter],
    ) -> Any:
        procedure = self.procedures.get(name.lower())
        if procedure is None:
            raise sqlite3.OperationalError(f"no such procedure: {name}")
        self.last_parameters = [(p.name, p.value) for p in parameters]
        cursor = connection.execute(procedure.body, to_bind_mapping(parameters))

        outputs = [
            p
            for p in parameters
            if p.is_output and p.direction is not ParameterDirection.RETURN_VALUE
        ]
        if outputs and cursor.description is not None:
            row = cursor.fetchone()
            if row is not None:
                for parameter in outputs:
                    if parameter.bind_name in row.keys():
                        parameter.value = row[parameter.bind_name]
        return cursor

    def derive_parameters(self, connection: sqlite3.Connection, name: str) -> list[Parameter]:
        with self._lock:
            self.discovery_calls += 1
        if self.discovery_delay:
            time.sleep(self.discovery_delay)
        procedure = self.procedures.get(name.lower())
        if procedure is None:
            raise ProcedureNotFoundError(name)
        return [return_value_slot("int"), *clone_parameters(procedure.parameters)]

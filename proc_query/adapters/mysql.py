"""MySQL adapter using mysql-connector-python.

Stored procedures go through ``cursor.callproc``; their result sets are
exposed as one cursor chain. Parameter metadata comes from
information_schema.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from proc_query.adapters.cursors import CursorChain, return_value_slot
from proc_query.core.connection import ConnectionConfig
from proc_query.core.enums import ParameterDirection
from proc_query.core.exceptions import ProcedureNotFoundError
from proc_query.core.params import PARAMETER_MARKER, Parameter, bound_value

_DERIVE_PARAMETERS = """
SELECT r.ROUTINE_TYPE,
       r.DATA_TYPE AS RETURN_TYPE,
       p.PARAMETER_NAME,
       p.PARAMETER_MODE,
       p.ORDINAL_POSITION,
       p.DATA_TYPE,
       p.CHARACTER_MAXIMUM_LENGTH,
       p.NUMERIC_PRECISION,
       p.NUMERIC_SCALE
FROM information_schema.ROUTINES r
LEFT JOIN information_schema.PARAMETERS p
       ON p.SPECIFIC_SCHEMA = r.ROUTINE_SCHEMA
      AND p.SPECIFIC_NAME = r.SPECIFIC_NAME
WHERE r.ROUTINE_SCHEMA = COALESCE(%(schema)s, DATABASE())
  AND r.ROUTINE_NAME = %(name)s
ORDER BY p.ORDINAL_POSITION
"""

_MODES: dict[str, ParameterDirection] = {
    "IN": ParameterDirection.INPUT,
    "OUT": ParameterDirection.OUTPUT,
    "INOUT": ParameterDirection.INPUT_OUTPUT,
}


class MysqlAdapter:
    """MySQL adapter using mysql-connector-python."""

    @property
    def paramstyle(self) -> str:
        return "pyformat"

    def connect(self, config: ConnectionConfig) -> Any:
        import mysql.connector

        kwargs: dict[str, Any] = dict(config.extra)
        if config.connect_timeout is not None:
            kwargs["connection_timeout"] = config.connect_timeout
        return mysql.connector.connect(
            host=config.host,
            port=config.port,
            user=config.user,
            password=config.password,
            database=config.database,
            autocommit=True,
            **kwargs,
        )

    def close(self, connection: Any) -> None:
        connection.close()

    def begin(self, connection: Any) -> None:
        connection.start_transaction()

    def commit(self, connection: Any) -> None:
        connection.commit()

    def rollback(self, connection: Any) -> None:
        connection.rollback()

    def execute(
        self,
        connection: Any,
        sql: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Execute SQL and return a cursor with dictionary results."""
        cursor = connection.cursor(dictionary=True)
        cursor.execute(sql, params or {})
        return cursor

    def call_procedure(
        self,
        connection: Any,
        name: str,
        parameters: Sequence[Parameter],
    ) -> Any:
        arguments = [p for p in parameters if p.direction is not ParameterDirection.RETURN_VALUE]
        cursor = connection.cursor()
        result_args = cursor.callproc(name, [bound_value(p) for p in arguments])
        for parameter, value in zip(arguments, result_args, strict=True):
            if parameter.is_output:
                parameter.value = value
        return CursorChain(list(cursor.stored_results()), rowcount=cursor.rowcount, owner=cursor)

    def derive_parameters(self, connection: Any, name: str) -> list[Parameter]:
        schema, _, routine = name.rpartition(".")
        cursor = connection.cursor(dictionary=True)
        try:
            cursor.execute(_DERIVE_PARAMETERS, {"schema": schema or None, "name": routine})
            rows = cursor.fetchall()
        finally:
            cursor.close()
        if not rows:
            raise ProcedureNotFoundError(name)

        parameters: list[Parameter] = []
        for row in rows:
            if row["ORDINAL_POSITION"] == 0:
                # Function return value
                parameters.append(return_value_slot(row["DATA_TYPE"]))
            elif row["PARAMETER_NAME"] is not None:
                parameters.append(
                    Parameter(
                        PARAMETER_MARKER + row["PARAMETER_NAME"],
                        value=None,
                        direction=_MODES.get(row["PARAMETER_MODE"], ParameterDirection.INPUT),
                        db_type=row["DATA_TYPE"],
                        size=row["CHARACTER_MAXIMUM_LENGTH"],
                        precision=row["NUMERIC_PRECISION"],
                        scale=row["NUMERIC_SCALE"],
                    )
                )
        if not parameters or parameters[0].direction is not ParameterDirection.RETURN_VALUE:
            parameters.insert(0, return_value_slot(rows[0]["RETURN_TYPE"]))
        return parameters

"""Oracle adapter using oracledb.

Stored procedures go through ``cursor.callproc`` with bind variables for
output parameters; implicit result sets are exposed as one cursor chain.
Parameter metadata comes from ALL_ARGUMENTS.
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
SELECT argument_name, position, in_out, data_type, data_length, data_precision, data_scale
FROM all_arguments
WHERE object_name = UPPER(:name)
  AND owner = COALESCE(UPPER(:owner), SYS_CONTEXT('USERENV', 'CURRENT_SCHEMA'))
  AND package_name IS NULL
  AND data_level = 0
ORDER BY position
"""

_MODES: dict[str, ParameterDirection] = {
    "IN": ParameterDirection.INPUT,
    "OUT": ParameterDirection.OUTPUT,
    "IN/OUT": ParameterDirection.INPUT_OUTPUT,
}


def _build_dsn(config: ConnectionConfig) -> str:
    """Build an Oracle DSN string from config fields (host:port/database)."""
    return f"{config.host}:{config.port}/{config.database}"


def _make_row_factory(cursor: Any) -> Any:
    """Create a row factory that converts tuples to dicts using column names."""
    columns = [col[0].lower() for col in cursor.description]

    def factory(*args: Any) -> dict[str, Any]:
        return dict(zip(columns, args, strict=True))

    return factory


class _LowerCaseCursor:
    """Cursor proxy reporting column names in lower case, like its rows."""

    def __init__(self, cursor: Any) -> None:
        self._cursor = cursor
        cursor.rowfactory = _make_row_factory(cursor)

    @property
    def description(self) -> Any:
        description = self._cursor.description
        if description is None:
            return None
        return [(col[0].lower(), *col[1:]) for col in description]

    def __getattr__(self, name: str) -> Any:
        return getattr(self._cursor, name)


def _output_var(cursor: Any, parameter: Parameter) -> Any:
    """Create a bind variable sized for an output parameter."""
    import oracledb

    db_type = (parameter.db_type or "").upper()
    if db_type in ("NUMBER", "INTEGER", "FLOAT", "BINARY_INTEGER", "PLS_INTEGER"):
        var = cursor.var(oracledb.DB_TYPE_NUMBER)
    elif db_type == "DATE":
        var = cursor.var(oracledb.DB_TYPE_DATE)
    elif db_type.startswith("TIMESTAMP"):
        var = cursor.var(oracledb.DB_TYPE_TIMESTAMP)
    elif db_type == "CLOB":
        var = cursor.var(oracledb.DB_TYPE_CLOB)
    else:
        var = cursor.var(oracledb.DB_TYPE_VARCHAR, parameter.size or 4000)
    if parameter.direction is ParameterDirection.INPUT_OUTPUT:
        var.setvalue(0, bound_value(parameter))
    return var


class OracleAdapter:
    """Oracle adapter using oracledb."""

    @property
    def paramstyle(self) -> str:
        return "named"

    def connect(self, config: ConnectionConfig) -> Any:
        import oracledb

        kwargs: dict[str, Any] = {}
        if config.connect_timeout is not None:
            kwargs["tcp_connect_timeout"] = config.connect_timeout
        conn = oracledb.connect(
            user=config.user, password=config.password, dsn=_build_dsn(config), **kwargs
        )
        conn.autocommit = True
        return conn

    def close(self, connection: Any) -> None:
        connection.close()

    def begin(self, connection: Any) -> None:
        connection.autocommit = False

    def commit(self, connection: Any) -> None:
        connection.commit()
        connection.autocommit = True

    def rollback(self, connection: Any) -> None:
        connection.rollback()
        connection.autocommit = True

    def execute(
        self,
        connection: Any,
        sql: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Execute SQL and return a cursor with dict rows keyed by lower-case column."""
        cursor = connection.cursor()
        cursor.execute(sql, params or {})
        if cursor.description is not None:
            return _LowerCaseCursor(cursor)
        return cursor

    def call_procedure(
        self,
        connection: Any,
        name: str,
        parameters: Sequence[Parameter],
    ) -> Any:
        arguments = [p for p in parameters if p.direction is not ParameterDirection.RETURN_VALUE]
        cursor = connection.cursor()
        bind = [
            _output_var(cursor, p) if p.is_output else bound_value(p) for p in arguments
        ]
        cursor.callproc(name, bind)
        for parameter, value in zip(arguments, bind, strict=True):
            if parameter.is_output:
                parameter.value = value.getvalue()

        implicit = cursor.getimplicitresults()
        if not implicit:
            return cursor
        results = [
            _LowerCaseCursor(result) if result.description is not None else result
            for result in implicit
        ]
        return CursorChain(results, rowcount=cursor.rowcount, owner=cursor)

    def derive_parameters(self, connection: Any, name: str) -> list[Parameter]:
        owner, _, routine = name.rpartition(".")
        cursor = connection.cursor()
        try:
            cursor.execute(_DERIVE_PARAMETERS, {"name": routine, "owner": owner or None})
            rows = cursor.fetchall()
        finally:
            cursor.close()
        if not rows:
            raise ProcedureNotFoundError(name)

        parameters: list[Parameter] = []
        for argument_name, position, in_out, data_type, length, precision, scale in rows:
            if position == 0:
                # Function return value
                parameters.append(return_value_slot(data_type))
            elif argument_name is not None:
                parameters.append(
                    Parameter(
                        PARAMETER_MARKER + argument_name.lower(),
                        value=None,
                        direction=_MODES.get(in_out, ParameterDirection.INPUT),
                        db_type=data_type,
                        size=length,
                        precision=precision,
                        scale=scale,
                    )
                )
        if not parameters or parameters[0].direction is not ParameterDirection.RETURN_VALUE:
            parameters.insert(0, return_value_slot())
        return parameters

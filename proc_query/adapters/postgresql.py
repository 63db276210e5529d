"""PostgreSQL adapter using psycopg (v3+).

Stored procedures are invoked with ``CALL``; OUT and INOUT values come back
as the single row CALL returns. Parameter metadata is read from
information_schema.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from proc_query.adapters.cursors import return_value_slot
from proc_query.core.connection import ConnectionConfig
from proc_query.core.enums import ParameterDirection
from proc_query.core.exceptions import ProcedureNotFoundError
from proc_query.core.params import PARAMETER_MARKER, Parameter, bound_value

_DERIVE_PARAMETERS = """
SELECT r.specific_name,
       r.data_type AS return_type,
       p.parameter_name,
       p.parameter_mode,
       p.data_type,
       p.character_maximum_length,
       p.numeric_precision,
       p.numeric_scale
FROM information_schema.routines r
LEFT JOIN information_schema.parameters p
       ON p.specific_schema = r.specific_schema
      AND p.specific_name = r.specific_name
WHERE r.routine_schema = COALESCE(%(schema)s, current_schema())
  AND r.routine_name = %(name)s
ORDER BY r.specific_name, p.ordinal_position
"""

_MODES: dict[str, ParameterDirection] = {
    "IN": ParameterDirection.INPUT,
    "OUT": ParameterDirection.OUTPUT,
    "INOUT": ParameterDirection.INPUT_OUTPUT,
}


def _build_conninfo(config: ConnectionConfig) -> str:
    """Build a libpq connection string from config fields."""
    parts: list[str] = []
    if config.host is not None:
        parts.append(f"host={config.host}")
    if config.port is not None:
        parts.append(f"port={config.port}")
    if config.user is not None:
        parts.append(f"user={config.user}")
    if config.password is not None:
        parts.append(f"password={config.password}")
    if config.connect_timeout is not None:
        parts.append(f"connect_timeout={config.connect_timeout}")
    parts.append(f"dbname={config.database}")
    return " ".join(parts)


def _split_name(name: str) -> tuple[str | None, str]:
    schema, _, routine = name.rpartition(".")
    return (schema or None), routine


class PostgresqlAdapter:
    """PostgreSQL adapter using psycopg (v3+)."""

    @property
    def paramstyle(self) -> str:
        return "pyformat"

    def connect(self, config: ConnectionConfig) -> Any:
        import psycopg
        import psycopg.rows

        return psycopg.connect(
            _build_conninfo(config), row_factory=psycopg.rows.dict_row, autocommit=True
        )

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
        return connection.execute(sql, params)

    def call_procedure(
        self,
        connection: Any,
        name: str,
        parameters: Sequence[Parameter],
    ) -> Any:
        from psycopg import sql

        arguments = [p for p in parameters if p.direction is not ParameterDirection.RETURN_VALUE]
        query = sql.SQL("CALL {}({})").format(
            sql.Identifier(*name.split(".")),
            sql.SQL(", ").join(sql.Placeholder() * len(arguments)),
        )
        cursor = connection.execute(query, [bound_value(p) for p in arguments])

        outputs = [p for p in arguments if p.is_output]
        if outputs and cursor.description is not None:
            row = cursor.fetchone()
            if row is not None:
                for parameter in outputs:
                    if parameter.bind_name in row:
                        parameter.value = row[parameter.bind_name]
        return cursor

    def derive_parameters(self, connection: Any, name: str) -> list[Parameter]:
        schema, routine = _split_name(name)
        cursor = connection.execute(_DERIVE_PARAMETERS, {"schema": schema, "name": routine})
        rows = cursor.fetchall()
        if not rows:
            raise ProcedureNotFoundError(name)

        # Overloaded routines: the first specific_name wins
        specific_name = rows[0]["specific_name"]
        parameters = [return_value_slot(rows[0]["return_type"])]
        for row in rows:
            if row["specific_name"] != specific_name or row["parameter_name"] is None:
                continue
            parameters.append(
                Parameter(
                    PARAMETER_MARKER + row["parameter_name"],
                    value=None,
                    direction=_MODES.get(row["parameter_mode"], ParameterDirection.INPUT),
                    db_type=row["data_type"],
                    size=row["character_maximum_length"],
                    precision=row["numeric_precision"],
                    scale=row["numeric_scale"],
                )
            )
        return parameters

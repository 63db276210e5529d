"""Command execution.

The Executor prepares a command against an execution context, runs it, and
returns one of five result shapes. All convenience methods funnel into
Executor.execute, which owns the connection lifetime rules:

* a connection string yields a connection opened and closed by the call
  (or, for readers, closed when the reader is closed);
* a caller's open connection or transaction is never closed, committed or
  rolled back.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from proc_query.core.cache import ParameterCache, parameter_cache
from proc_query.core.command import Command
from proc_query.core.connection import ConnectionConfig, as_config
from proc_query.core.context import (
    ConnectionStringContext,
    ContextSource,
    ExecutionContext,
    as_context,
    discovery_source,
    resolve_context,
)
from proc_query.core.enums import CommandType, ResultMode
from proc_query.core.exceptions import InvalidArgumentError
from proc_query.core.params import (
    Parameter,
    assign_parameter_values,
    assign_row_values,
    validate_parameter_names,
)
from proc_query.core.results import DataReader, DataSet, XmlReader, fill_dataset, scalar_value

logger = logging.getLogger(__name__)

_STREAMING_MODES = (ResultMode.READER, ResultMode.XML_READER)


class Executor:
    """Runs commands against connection strings, connections or transactions.

    Args:
        config: Default connection used when a call passes ``context=None``.
        cache: Parameter cache for procedure calls by positional values.
            Defaults to the process-wide cache.
        suppress_scalar_errors: When True (the default), a failing scalar
            command returns ``0`` instead of raising. This keeps the legacy
            contract; pass False to get the driver error like every other
            result mode.
    """

    def __init__(
        self,
        config: ConnectionConfig | str | None = None,
        *,
        cache: ParameterCache | None = None,
        suppress_scalar_errors: bool = True,
    ) -> None:
        self._config = as_config(config) if config is not None else None
        self._cache = cache if cache is not None else parameter_cache
        self._suppress_scalar_errors = suppress_scalar_errors

    @classmethod
    def from_config(cls, config: ConnectionConfig | str, **kwargs: Any) -> Executor:
        """Create an Executor whose default context is *config*."""
        return cls(config, **kwargs)

    @classmethod
    def from_env(cls, **kwargs: Any) -> Executor:
        """Create an Executor from the PROCQUERY_DATABASE_URL environment variable."""
        return cls(ConnectionConfig.from_env(), **kwargs)

    @property
    def cache(self) -> ParameterCache:
        return self._cache

    @property
    def suppress_scalar_errors(self) -> bool:
        return self._suppress_scalar_errors

    def _context(self, context: ContextSource | None) -> ExecutionContext:
        if context is None:
            if self._config is None:
                raise InvalidArgumentError(
                    "context", "No execution context given and no default connection configured"
                )
            return ConnectionStringContext(self._config)
        return as_context(context)

    def execute(
        self,
        context: ContextSource | None,
        command_type: CommandType,
        command_text: str,
        parameters: Sequence[Parameter] | None = None,
        mode: ResultMode = ResultMode.NON_QUERY,
        *,
        dataset: DataSet | None = None,
    ) -> Any:
        """Run a command and return the result for *mode*.

        Args:
            context: Connection string, ConnectionConfig, Connection,
                Transaction or an ExecutionContext. None uses the default
                connection.
            command_type: TEXT or STORED_PROCEDURE.
            command_text: SQL text or procedure name.
            parameters: Descriptors bound in order.
            mode: Result shape.
            dataset: DATASET mode only: container to fill.

        Returns:
            Affected row count, DataSet, DataReader, scalar value or XmlReader.

        Raises:
            InvalidArgumentError: For empty command text, malformed parameter
                names, or a finalized transaction. Raised before any
                connection is opened.
        """
        ctx = self._context(context)
        if not command_text:
            raise InvalidArgumentError("command_text")
        parameters = list(parameters) if parameters is not None else []
        validate_parameter_names(parameters)

        resolved = resolve_context(ctx)
        connection = resolved.connection
        logger.debug(
            "Executing %s %r (mode=%s, owns_connection=%s)",
            command_type.value,
            command_text,
            mode.value,
            resolved.owns_connection,
        )
        try:
            command = Command(
                command_type,
                command_text,
                connection,
                parameters,
                transaction=resolved.transaction,
            )
            result = self._run(command, mode, dataset, resolved.owns_connection)
        except Exception:
            if resolved.owns_connection:
                connection.close()
            if mode is ResultMode.SCALAR and self._suppress_scalar_errors:
                logger.warning(
                    "Scalar command %r failed; returning 0", command_text, exc_info=True
                )
                return 0
            raise

        if resolved.owns_connection and mode not in _STREAMING_MODES:
            connection.close()
        return result

    def _run(
        self,
        command: Command,
        mode: ResultMode,
        dataset: DataSet | None,
        owns_connection: bool,
    ) -> Any:
        cursor = command.execute()

        if mode is ResultMode.READER:
            # Output values may only be complete once the reader is consumed
            if not command.has_output_parameters:
                command.detach_parameters()
            return DataReader(
                cursor, command.connection, close_connection=owns_connection, command=command
            )

        if mode is ResultMode.XML_READER:
            command.detach_parameters()
            return XmlReader(cursor, command.connection, close_connection=owns_connection)

        try:
            if mode is ResultMode.NON_QUERY:
                result: Any = int(cursor.rowcount)
            elif mode is ResultMode.DATASET:
                result = fill_dataset(cursor, dataset if dataset is not None else DataSet())
            elif mode is ResultMode.SCALAR:
                result = scalar_value(cursor)
            else:
                raise InvalidArgumentError("mode", f"Unknown result mode: {mode!r}")
        finally:
            cursor.close()
        command.detach_parameters()
        return result

    # --- Result-mode shortcuts ---

    def execute_non_query(
        self,
        context: ContextSource | None,
        command_type: CommandType,
        command_text: str,
        parameters: Sequence[Parameter] | None = None,
    ) -> int:
        """Run a command that returns no rows. Returns the affected row count."""
        return int(
            self.execute(context, command_type, command_text, parameters, ResultMode.NON_QUERY)
        )

    def execute_dataset(
        self,
        context: ContextSource | None,
        command_type: CommandType,
        command_text: str,
        parameters: Sequence[Parameter] | None = None,
        *,
        dataset: DataSet | None = None,
    ) -> DataSet:
        """Run a command and buffer every result set into a DataSet."""
        result: DataSet = self.execute(
            context, command_type, command_text, parameters, ResultMode.DATASET, dataset=dataset
        )
        return result

    def execute_reader(
        self,
        context: ContextSource | None,
        command_type: CommandType,
        command_text: str,
        parameters: Sequence[Parameter] | None = None,
    ) -> DataReader:
        """Run a command and return a forward-only reader. The caller must close it."""
        result: DataReader = self.execute(
            context, command_type, command_text, parameters, ResultMode.READER
        )
        return result

    def execute_scalar(
        self,
        context: ContextSource | None,
        command_type: CommandType,
        command_text: str,
        parameters: Sequence[Parameter] | None = None,
    ) -> Any:
        """Run a command and return the first column of the first row."""
        return self.execute(context, command_type, command_text, parameters, ResultMode.SCALAR)

    def execute_xml_reader(
        self,
        context: ContextSource | None,
        command_type: CommandType,
        command_text: str,
        parameters: Sequence[Parameter] | None = None,
    ) -> XmlReader:
        """Run a command producing XML text and return a lazy reader. The caller must close it."""
        result: XmlReader = self.execute(
            context, command_type, command_text, parameters, ResultMode.XML_READER
        )
        return result

    # --- Stored procedures with discovered parameters ---

    def discover_parameters(
        self,
        context: ContextSource | None,
        procedure: str,
        include_return_value: bool = False,
    ) -> list[Parameter]:
        """Fresh copies of *procedure*'s parameters, from the cache or the database."""
        ctx = self._context(context)
        if not procedure:
            raise InvalidArgumentError("procedure")
        return self._cache.get_parameter_set(discovery_source(ctx), procedure, include_return_value)

    def execute_procedure(
        self,
        context: ContextSource | None,
        procedure: str,
        *values: Any,
        mode: ResultMode = ResultMode.NON_QUERY,
        dataset: DataSet | None = None,
    ) -> Any:
        """Call *procedure* with *values* bound to its parameters in declaration order.

        The parameter shape is discovered from the database the first time a
        procedure is called and cached afterwards. Output and return values
        are not available through this path.

        Raises:
            ParameterCountMismatchError: If the number of values differs from
                the number of procedure parameters.
        """
        ctx = self._context(context)
        if not procedure:
            raise InvalidArgumentError("procedure")
        if not values:
            return self.execute(
                ctx, CommandType.STORED_PROCEDURE, procedure, None, mode, dataset=dataset
            )
        parameters = self._cache.get_parameter_set(discovery_source(ctx), procedure)
        assign_parameter_values(parameters, values)
        return self.execute(
            ctx, CommandType.STORED_PROCEDURE, procedure, parameters, mode, dataset=dataset
        )

    def execute_procedure_row(
        self,
        context: ContextSource | None,
        procedure: str,
        row: Mapping[str, Any],
        *,
        mode: ResultMode = ResultMode.NON_QUERY,
        dataset: DataSet | None = None,
    ) -> Any:
        """Call *procedure* taking parameter values from the matching keys of *row*.

        A parameter ``@customer_id`` takes ``row["customer_id"]``; parameters
        without a matching key are sent as NULL.
        """
        ctx = self._context(context)
        if not procedure:
            raise InvalidArgumentError("procedure")
        parameters = self._cache.get_parameter_set(discovery_source(ctx), procedure)
        assign_row_values(parameters, row)
        return self.execute(
            ctx, CommandType.STORED_PROCEDURE, procedure, parameters, mode, dataset=dataset
        )

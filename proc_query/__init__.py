"""ProcQuery - command execution and stored-procedure parameter discovery."""

from __future__ import annotations

from proc_query.core.cache import (
    ParameterCache,
    get_cached_parameter_set,
    get_parameter_set,
    parameter_cache,
    set_parameter_set,
)
from proc_query.core.command import Command
from proc_query.core.connection import Connection, ConnectionConfig, register_adapter
from proc_query.core.context import (
    ConnectionContext,
    ConnectionStringContext,
    ExecutionContext,
    TransactionContext,
    as_context,
)
from proc_query.core.enums import CommandType, DatabaseBackend, ParameterDirection, ResultMode
from proc_query.core.exceptions import (
    AdapterError,
    ConnectionError,  # noqa: A004
    DiscoveryError,
    InvalidArgumentError,
    InvalidParameterNameError,
    ParameterCountMismatchError,
    ProcedureNotFoundError,
    ProcQueryError,
    TransactionError,
    TransactionFinalizedError,
    TransactionStateError,
    UnsupportedCommandError,
)
from proc_query.core.executor import Executor
from proc_query.core.params import (
    UNSET,
    Parameter,
    assign_parameter_values,
    assign_row_values,
)
from proc_query.core.results import DataReader, DataSet, DataTable, XmlReader
from proc_query.core.transaction import Transaction

__all__ = [
    # Connection
    "ConnectionConfig",
    "Connection",
    "register_adapter",
    # Transaction
    "Transaction",
    # Context
    "ExecutionContext",
    "ConnectionStringContext",
    "ConnectionContext",
    "TransactionContext",
    "as_context",
    # Executor
    "Executor",
    "Command",
    # Parameters
    "Parameter",
    "UNSET",
    "assign_parameter_values",
    "assign_row_values",
    # Parameter cache
    "ParameterCache",
    "parameter_cache",
    "get_parameter_set",
    "set_parameter_set",
    "get_cached_parameter_set",
    # Results
    "DataSet",
    "DataTable",
    "DataReader",
    "XmlReader",
    # Enums
    "CommandType",
    "DatabaseBackend",
    "ParameterDirection",
    "ResultMode",
    # Exceptions
    "ProcQueryError",
    "InvalidArgumentError",
    "TransactionFinalizedError",
    "ParameterCountMismatchError",
    "InvalidParameterNameError",
    "DiscoveryError",
    "ProcedureNotFoundError",
    "TransactionError",
    "TransactionStateError",
    "AdapterError",
    "ConnectionError",
    "UnsupportedCommandError",
]

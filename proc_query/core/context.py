"""Execution contexts.

A command runs against exactly one of: a connection string (the executor
opens and owns a fresh connection), an open connection, or an open
transaction (both owned by the caller).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from proc_query.core.connection import Connection, ConnectionConfig, as_config
from proc_query.core.exceptions import InvalidArgumentError, TransactionFinalizedError
from proc_query.core.transaction import Transaction


@dataclass(frozen=True)
class ConnectionStringContext:
    config: ConnectionConfig


@dataclass(frozen=True)
class ConnectionContext:
    connection: Connection


@dataclass(frozen=True)
class TransactionContext:
    transaction: Transaction


ExecutionContext = Union[ConnectionStringContext, ConnectionContext, TransactionContext]

ContextSource = Union[ExecutionContext, ConnectionConfig, Connection, Transaction, str]


def as_context(source: ContextSource) -> ExecutionContext:
    """Coerce a connection string, config, connection or transaction into a context.

    Raises:
        InvalidArgumentError: If *source* is None, empty or of an unknown type.
        TransactionFinalizedError: If *source* is a committed or rolled-back
            transaction.
    """
    if isinstance(source, (ConnectionStringContext, ConnectionContext, TransactionContext)):
        context: ExecutionContext = source
    elif isinstance(source, Transaction):
        context = TransactionContext(source)
    elif isinstance(source, Connection):
        context = ConnectionContext(source)
    elif isinstance(source, (ConnectionConfig, str)):
        context = ConnectionStringContext(as_config(source))
    elif source is None:
        raise InvalidArgumentError("context")
    else:
        raise InvalidArgumentError(
            "context", f"Unsupported execution context type: {type(source).__name__}"
        )
    if isinstance(context, TransactionContext) and context.transaction.connection is None:
        raise TransactionFinalizedError()
    return context


def discovery_source(context: ExecutionContext) -> ConnectionConfig | Connection:
    """What parameter discovery should open its own connection from.

    A caller's connection is returned as is so discovery reuses its adapter.
    """
    if isinstance(context, ConnectionStringContext):
        return context.config
    if isinstance(context, ConnectionContext):
        return context.connection
    connection = context.transaction.connection
    if connection is None:
        raise TransactionFinalizedError()
    return connection


@dataclass(frozen=True)
class ResolvedContext:
    """A live connection plus whether this call must close it."""

    connection: Connection
    transaction: Transaction | None
    owns_connection: bool


def resolve_context(context: ExecutionContext) -> ResolvedContext:
    """Produce a live connection for *context*.

    A connection string yields a newly opened, internally owned connection.
    A caller's connection that is not open is opened here and, like the
    connection-string case, closed again by the executor.
    """
    if isinstance(context, ConnectionStringContext):
        return ResolvedContext(Connection.open_new(context.config), None, True)
    if isinstance(context, ConnectionContext):
        connection = context.connection
        if connection.is_open:
            return ResolvedContext(connection, None, False)
        connection.open()
        return ResolvedContext(connection, None, True)
    connection = context.transaction.connection
    if connection is None:
        raise TransactionFinalizedError()
    return ResolvedContext(connection, context.transaction, False)

"""Database adapter protocol.

Every adapter module MUST implement this protocol so the executor can treat
all backends alike.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from proc_query.core.connection import ConnectionConfig
from proc_query.core.params import Parameter


@runtime_checkable
class Adapter(Protocol):
    """Synchronous database adapter protocol."""

    @property
    def paramstyle(self) -> str:
        """Parameter binding style: 'named' (:name) or 'pyformat' (%(name)s)."""
        ...

    def connect(self, config: ConnectionConfig) -> Any:
        """Open a raw connection in autocommit mode."""
        ...

    def close(self, connection: Any) -> None:
        """Close a raw connection."""
        ...

    def begin(self, connection: Any) -> None:
        """Leave autocommit mode and start a transaction."""
        ...

    def commit(self, connection: Any) -> None:
        """Commit the transaction and return to autocommit mode."""
        ...

    def rollback(self, connection: Any) -> None:
        """Roll back the transaction and return to autocommit mode."""
        ...

    def execute(
        self,
        connection: Any,
        sql: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Execute SQL text and return a cursor-like object."""
        ...

    def call_procedure(
        self,
        connection: Any,
        name: str,
        parameters: Sequence[Parameter],
    ) -> Any:
        """Call a stored procedure and return a cursor-like object.

        Output values are written back onto the output-capable descriptors.
        """
        ...

    def derive_parameters(self, connection: Any, name: str) -> list[Parameter]:
        """Query the procedure's parameter metadata.

        The first element is always the return-value slot, followed by the
        declared parameters in order.
        """
        ...

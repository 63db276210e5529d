"""Prepared database commands."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from proc_query.core.connection import Connection
from proc_query.core.enums import CommandType
from proc_query.core.exceptions import InvalidArgumentError
from proc_query.core.params import (
    Parameter,
    normalize_params,
    prepare_for_binding,
    to_bind_mapping,
    validate_parameter_names,
)
from proc_query.core.transaction import Transaction


class Command:
    """A command bound to a connection and, optionally, a transaction.

    Args:
        command_type: TEXT or STORED_PROCEDURE.
        command_text: SQL text or procedure name.
        connection: Open connection to run on.
        parameters: Descriptors to attach, in order.
        transaction: Active transaction on *connection*, if any.

    Raises:
        InvalidArgumentError: If the command text is empty or the
            transaction belongs to another connection.
        InvalidParameterNameError: If a parameter name is malformed.
    """

    def __init__(
        self,
        command_type: CommandType,
        command_text: str,
        connection: Connection,
        parameters: Sequence[Parameter] | None = None,
        transaction: Transaction | None = None,
    ) -> None:
        if not command_text:
            raise InvalidArgumentError("command_text")
        if transaction is not None and transaction.connection is not connection:
            raise InvalidArgumentError(
                "transaction", "The transaction does not belong to the command's connection"
            )
        self.command_type = command_type
        self.command_text = command_text
        self.connection = connection
        self.transaction = transaction
        self.parameters: list[Parameter] = []
        if parameters:
            self.attach(parameters)

    def attach(self, parameters: Sequence[Parameter]) -> None:
        """Attach parameters, giving unset input-output parameters an explicit NULL."""
        validate_parameter_names(parameters)
        prepare_for_binding(parameters)
        self.parameters.extend(parameters)

    def detach_parameters(self) -> None:
        """Release the attached descriptors so they can be used by another command."""
        self.parameters.clear()

    @property
    def has_output_parameters(self) -> bool:
        return any(parameter.is_output for parameter in self.parameters)

    def execute(self) -> Any:
        """Run the command and return the driver cursor."""
        adapter = self.connection.adapter
        raw = self.connection.raw
        if self.command_type is CommandType.STORED_PROCEDURE:
            return adapter.call_procedure(raw, self.command_text, self.parameters)
        sql = normalize_params(self.command_text, adapter.paramstyle)
        return adapter.execute(raw, sql, to_bind_mapping(self.parameters) or None)

    def __repr__(self) -> str:
        return (
            f"<Command {self.command_type.value} {self.command_text!r} "
            f"params={len(self.parameters)}>"
        )

"""ProcQuery exception hierarchy.

Validation failures are raised as ProcQuery exceptions before any database
access. Errors reported by the database driver itself are never wrapped:
callers see the driver's own exception.
"""

from __future__ import annotations


class ProcQueryError(Exception):
    """Base exception for all ProcQuery errors."""


# --- Arguments ---


class InvalidArgumentError(ProcQueryError, ValueError):
    """Raised when a required argument is missing, empty or malformed."""

    def __init__(self, argument: str, detail: str | None = None) -> None:
        self.argument = argument
        message = detail if detail is not None else f"'{argument}' must not be empty"
        super().__init__(message)


class TransactionFinalizedError(InvalidArgumentError):
    """Raised when a committed or rolled-back transaction is supplied."""

    def __init__(self) -> None:
        super().__init__(
            "transaction",
            "The transaction was rolled back or committed, please provide an open transaction.",
        )


class ParameterCountMismatchError(InvalidArgumentError):
    """Raised when positional values do not match the parameter count."""

    def __init__(self, parameter_count: int, value_count: int) -> None:
        self.parameter_count = parameter_count
        self.value_count = value_count
        super().__init__(
            "parameter_values",
            f"Parameter count ({parameter_count}) does not match "
            f"parameter value count ({value_count})",
        )


class InvalidParameterNameError(InvalidArgumentError):
    """Raised when a parameter name lacks the marker or is too short."""

    def __init__(self, position: int, name: str | None) -> None:
        self.position = position
        self.name = name
        super().__init__(
            "parameter_name",
            f"Please provide a valid parameter name on the parameter #{position}, "
            f"the name has the following value: '{name}'",
        )


# --- Discovery ---


class DiscoveryError(ProcQueryError):
    """Base for stored-procedure parameter discovery errors."""


class ProcedureNotFoundError(DiscoveryError):
    """Raised when the database reports no metadata for a procedure."""

    def __init__(self, procedure: str) -> None:
        self.procedure = procedure
        super().__init__(f"Stored procedure not found: '{procedure}'")


# --- Transaction ---


class TransactionError(ProcQueryError):
    """Base for transaction errors."""


class TransactionStateError(TransactionError):
    """Raised on invalid transaction state transitions."""

    def __init__(self, current_state: str, attempted_action: str) -> None:
        self.current_state = current_state
        self.attempted_action = attempted_action
        super().__init__(f"Cannot {attempted_action} transaction in state '{current_state}'")


# --- Adapter ---


class AdapterError(ProcQueryError):
    """Base for adapter errors."""


class ConnectionError(AdapterError):  # noqa: A001
    """Raised when a connection cannot be used."""


class UnsupportedCommandError(AdapterError):
    """Raised when a backend cannot run the requested kind of command."""

    def __init__(self, backend: str, detail: str) -> None:
        self.backend = backend
        super().__init__(f"{backend} adapter: {detail}")

"""Transaction management.

A Transaction is started with Connection.begin(). It auto-commits on
successful exit from a ``with`` block and auto-rolls-back on exception.
Once committed or rolled back its ``connection`` is None, which is how
the executor recognizes a finalized transaction.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

from proc_query.core.exceptions import TransactionStateError

if TYPE_CHECKING:
    from proc_query.core.connection import Connection


class _TxState(Enum):
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class Transaction:
    """An explicit transaction on one Connection."""

    def __init__(self, connection: Connection) -> None:
        self._connection: Connection | None = connection
        self._state = _TxState.ACTIVE

    @property
    def connection(self) -> Connection | None:
        """The owning connection, or None once the transaction is finalized."""
        return self._connection

    @property
    def state(self) -> str:
        return self._state.value

    @property
    def is_active(self) -> bool:
        return self._state == _TxState.ACTIVE and self._connection is not None

    def __enter__(self) -> Transaction:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        if self.is_active:
            if exc_type is not None:
                self.rollback()
            else:
                self.commit()

    def commit(self) -> None:
        """Explicitly commit the transaction."""
        if self._state == _TxState.ROLLED_BACK:
            raise TransactionStateError("rolled_back", "commit")
        if self._state == _TxState.COMMITTED:
            raise TransactionStateError("committed", "commit")
        connection = self._require_connection("commit")
        connection._end_transaction(self, commit=True)
        self._state = _TxState.COMMITTED
        self._connection = None

    def rollback(self) -> None:
        """Explicitly rollback the transaction. Rolling back twice is a no-op."""
        if self._state == _TxState.COMMITTED:
            raise TransactionStateError("committed", "rollback")
        if self._state == _TxState.ROLLED_BACK:
            return
        connection = self._require_connection("rollback")
        connection._end_transaction(self, commit=False)
        self._state = _TxState.ROLLED_BACK
        self._connection = None

    def _require_connection(self, action: str) -> Connection:
        if self._connection is None:
            raise TransactionStateError("detached", action)
        return self._connection

    def _detach(self) -> None:
        """Called when the owning connection closes under an active transaction."""
        self._connection = None
        self._state = _TxState.ROLLED_BACK

    def __repr__(self) -> str:
        return f"<Transaction {self.state}>"

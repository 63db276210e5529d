"""Cursor helpers shared by adapters."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from proc_query.core.enums import ParameterDirection
from proc_query.core.params import Parameter

RETURN_VALUE_NAME = "@RETURN_VALUE"


def return_value_slot(db_type: str | None = None) -> Parameter:
    """The descriptor placed first in every derived parameter list."""
    return Parameter(
        RETURN_VALUE_NAME,
        value=None,
        direction=ParameterDirection.RETURN_VALUE,
        db_type=db_type,
    )


class CursorChain:
    """Presents several result cursors as one cursor with nextset().

    Drivers such as mysql-connector and oracledb hand back the result sets
    of a procedure call as separate cursors.
    """

    def __init__(self, cursors: Sequence[Any], *, rowcount: int = -1, owner: Any = None) -> None:
        self._cursors = list(cursors)
        self._index = 0
        self._owner = owner
        self.rowcount = rowcount

    @property
    def _current(self) -> Any:
        if self._index < len(self._cursors):
            return self._cursors[self._index]
        return None

    @property
    def description(self) -> Any:
        current = self._current
        return current.description if current is not None else None

    def fetchone(self) -> Any:
        current = self._current
        return current.fetchone() if current is not None else None

    def fetchall(self) -> list[Any]:
        current = self._current
        return list(current.fetchall()) if current is not None else []

    def nextset(self) -> bool | None:
        if self._index + 1 < len(self._cursors):
            self._index += 1
            return True
        self._index = len(self._cursors)
        return None

    def close(self) -> None:
        for cursor in self._cursors:
            cursor.close()
        if self._owner is not None:
            self._owner.close()

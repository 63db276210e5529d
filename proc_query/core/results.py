"""Result shapes returned by the executor.

DataSet/DataTable hold fully buffered rows. DataReader and XmlReader stream
from an open cursor; when the executor opened the connection itself, closing
the reader also closes the connection.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any
from xml.etree import ElementTree

if TYPE_CHECKING:
    from proc_query.core.command import Command
    from proc_query.core.connection import Connection
    from proc_query.core.params import Parameter


def _columns(cursor: Any) -> list[str]:
    if cursor.description is None:
        return []
    return [desc[0] for desc in cursor.description]


def _to_dict(row: Any, columns: list[str]) -> dict[str, Any]:
    # Already dict-like (e.g. psycopg dict_row, MySQL dictionary cursor)
    if isinstance(row, dict):
        return dict(row)
    return dict(zip(columns, row, strict=True))


def _rows_to_dicts(cursor: Any) -> list[dict[str, Any]]:
    """Convert the current result set to a list of dicts.

    Handles both tuple-like rows and dict-like rows from different adapters.
    """
    if cursor.description is None:
        return []
    columns = _columns(cursor)
    return [_to_dict(row, columns) for row in cursor.fetchall()]


def _advance(cursor: Any) -> bool:
    """Move *cursor* to its next result set, if the driver supports several."""
    nextset = getattr(cursor, "nextset", None)
    if nextset is None:
        return False
    try:
        return bool(nextset())
    except NotImplementedError:
        return False


def scalar_value(cursor: Any) -> Any:
    """First column of the first row, or None if there are no rows."""
    if cursor.description is None:
        return None
    row = cursor.fetchone()
    if row is None:
        return None
    if isinstance(row, dict):
        return next(iter(row.values()))
    return row[0]


@dataclass
class DataTable:
    """Buffered rows of one result set."""

    name: str = "Table"
    columns: list[str] = field(default_factory=list)
    rows: list[dict[str, Any]] = field(default_factory=list)

    def load(self, columns: Sequence[str], rows: Sequence[dict[str, Any]]) -> None:
        """Append *rows*, adding any columns the table does not have yet."""
        for column in columns:
            if column not in self.columns:
                self.columns.append(column)
        self.rows.extend(rows)

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[dict[str, Any]]:
        return iter(self.rows)


@dataclass
class DataSet:
    """An ordered collection of DataTables."""

    tables: list[DataTable] = field(default_factory=list)

    @property
    def first_table(self) -> DataTable | None:
        return self.tables[0] if self.tables else None

    def add_table(self, name: str | None = None) -> DataTable:
        """Append a new table named Table, Table1, Table2, ... unless *name* is given."""
        if name is None:
            index = len(self.tables)
            name = "Table" if index == 0 else f"Table{index}"
        table = DataTable(name=name)
        self.tables.append(table)
        return table

    def __getitem__(self, key: int | str) -> DataTable:
        if isinstance(key, int):
            return self.tables[key]
        for table in self.tables:
            if table.name == key:
                return table
        raise KeyError(key)

    def __len__(self) -> int:
        return len(self.tables)

    def __iter__(self) -> Iterator[DataTable]:
        return iter(self.tables)


def fill_dataset(cursor: Any, dataset: DataSet) -> DataSet:
    """Load the results of *cursor* into *dataset*.

    If *dataset* already has a table, the first result set is loaded into
    it in place. Otherwise every result set becomes a new table.
    """
    existing = dataset.first_table
    if existing is not None:
        existing.load(_columns(cursor), _rows_to_dicts(cursor))
        return dataset

    while True:
        if cursor.description is not None:
            dataset.add_table().load(_columns(cursor), _rows_to_dicts(cursor))
        if not _advance(cursor):
            break
    return dataset


class _OwnedCursor:
    """A cursor plus the connection it may have to close with it."""

    def __init__(self, cursor: Any, connection: Connection, close_connection: bool) -> None:
        self._cursor = cursor
        self._connection = connection
        self._close_connection = close_connection
        self._closed = False

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def close_connection(self) -> bool:
        return self._close_connection

    def close(self) -> None:
        """Close the cursor and, if owned, the connection. Idempotent."""
        if self._closed:
            return
        self._closed = True
        try:
            self._cursor.close()
        finally:
            if self._close_connection:
                self._connection.close()


class DataReader(_OwnedCursor):
    """Forward-only reader over a command's result sets.

    Rows are returned as dicts. Use as a context manager or call close().
    """

    def __init__(
        self,
        cursor: Any,
        connection: Connection,
        *,
        close_connection: bool,
        command: Command,
    ) -> None:
        super().__init__(cursor, connection, close_connection)
        self._command = command
        self._columns = _columns(cursor)

    @property
    def columns(self) -> list[str]:
        return list(self._columns)

    @property
    def records_affected(self) -> int:
        return int(self._cursor.rowcount)

    @property
    def parameters(self) -> list[Parameter]:
        """Parameters still attached to the command (output-capable calls only)."""
        return list(self._command.parameters)

    def read(self) -> dict[str, Any] | None:
        """Return the next row, or None at the end of the current result set."""
        if self._closed or self._cursor.description is None:
            return None
        row = self._cursor.fetchone()
        if row is None:
            return None
        return _to_dict(row, self._columns)

    def fetchall(self) -> list[dict[str, Any]]:
        """Return all remaining rows of the current result set."""
        return list(self)

    def next_result(self) -> bool:
        """Advance to the next result set. Returns False when there is none."""
        if self._closed or not _advance(self._cursor):
            return False
        self._columns = _columns(self._cursor)
        return True

    def __iter__(self) -> Iterator[dict[str, Any]]:
        while True:
            row = self.read()
            if row is None:
                return
            yield row

    def __enter__(self) -> DataReader:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        self.close()


class XmlReader(_OwnedCursor):
    """Lazy reader over XML produced by a command.

    The first column of every row is treated as a piece of XML text; the
    pieces are concatenated and parsed incrementally. Top-level fragments
    need not share a root, so they are parsed inside a synthetic *root_tag*
    element.
    """

    def __init__(
        self,
        cursor: Any,
        connection: Connection,
        *,
        close_connection: bool,
        root_tag: str = "root",
    ) -> None:
        super().__init__(cursor, connection, close_connection)
        self._root_tag = root_tag
        self._consumed = False

    def _chunks(self) -> Iterator[str]:
        if self._consumed:
            raise RuntimeError("XmlReader can only be read once")
        self._consumed = True
        if self._cursor.description is None:
            return
        while True:
            row = self._cursor.fetchone()
            if row is None:
                return
            value = next(iter(row.values())) if isinstance(row, dict) else row[0]
            if value is None:
                continue
            yield value.decode("utf-8") if isinstance(value, bytes) else str(value)

    def iter_elements(self) -> Iterator[ElementTree.Element]:
        """Yield each top-level element as soon as it has been fully parsed."""
        parser = ElementTree.XMLPullParser(events=("start", "end"))
        parser.feed(f"<{self._root_tag}>")
        depth = 0
        root: ElementTree.Element | None = None

        def drain() -> Iterator[ElementTree.Element]:
            nonlocal depth, root
            for event, element in parser.read_events():
                if event == "start":
                    depth += 1
                    if depth == 1:
                        root = element
                    continue
                depth -= 1
                if depth == 1 and root is not None:
                    root.remove(element)
                    yield element

        for chunk in self._chunks():
            parser.feed(chunk)
            yield from drain()
        parser.feed(f"</{self._root_tag}>")
        parser.close()
        yield from drain()

    def read_element(self) -> ElementTree.Element:
        """Parse everything into one element named *root_tag*."""
        root = ElementTree.Element(self._root_tag)
        root.extend(self.iter_elements())
        return root

    def read_text(self) -> str:
        """Return the raw XML text without parsing it."""
        return "".join(self._chunks())

    def __iter__(self) -> Iterator[ElementTree.Element]:
        return self.iter_elements()

    def __enter__(self) -> XmlReader:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        self.close()

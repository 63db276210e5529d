"""Unit tests for DataSet, DataReader and XmlReader."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator

import pytest

from proc_query.adapters.cursors import CursorChain
from proc_query.core.command import Command
from proc_query.core.connection import Connection, ConnectionConfig
from proc_query.core.enums import CommandType
from proc_query.core.results import (
    DataReader,
    DataSet,
    DataTable,
    XmlReader,
    fill_dataset,
    scalar_value,
)


@pytest.fixture
def conn(sqlite_config: ConnectionConfig) -> Iterator[Connection]:
    with Connection(sqlite_config) as connection:
        yield connection


def _cursor(conn: Connection, sql: str) -> sqlite3.Cursor:
    return conn.raw.execute(sql)


def _chain(conn: Connection, *sqls: str) -> CursorChain:
    return CursorChain([_cursor(conn, sql) for sql in sqls])


class TestDataSet:
    def test_table_names(self) -> None:
        ds = DataSet()
        assert ds.first_table is None
        assert [ds.add_table().name for _ in range(3)] == ["Table", "Table1", "Table2"]

    def test_lookup(self) -> None:
        ds = DataSet()
        table = ds.add_table("Orders")
        assert ds[0] is table
        assert ds["Orders"] is table
        with pytest.raises(KeyError):
            ds["Missing"]

    def test_load_merges_columns(self) -> None:
        table = DataTable()
        table.load(["id"], [{"id": 1}])
        table.load(["id", "name"], [{"id": 2, "name": "b"}])
        assert table.columns == ["id", "name"]
        assert len(table) == 2


class TestFillDataset:
    def test_each_result_set_becomes_a_table(self, conn: Connection) -> None:
        cursor = _chain(
            conn,
            "SELECT id FROM orders WHERE customer_id = 36 ORDER BY id",
            "SELECT COUNT(*) AS n FROM orders",
        )
        ds = fill_dataset(cursor, DataSet())
        assert [t.name for t in ds] == ["Table", "Table1"]
        assert len(ds[0]) == 2
        assert ds["Table1"].rows == [{"n": 9}]

    def test_existing_table_takes_first_result_only(self, conn: Connection) -> None:
        ds = DataSet()
        ds.add_table("Orders").load(["id"], [{"id": 0}])
        cursor = _chain(
            conn,
            "SELECT id FROM orders WHERE customer_id = 36 ORDER BY id",
            "SELECT COUNT(*) AS n FROM orders",
        )
        fill_dataset(cursor, ds)
        assert len(ds) == 1
        assert len(ds["Orders"]) == 3

    def test_statement_without_rows(self, conn: Connection) -> None:
        cursor = _cursor(conn, "UPDATE orders SET published = 1 WHERE id = 1")
        assert len(fill_dataset(cursor, DataSet())) == 0


class TestScalarValue:
    def test_first_column_of_first_row(self, conn: Connection) -> None:
        assert scalar_value(_cursor(conn, "SELECT id, amount FROM orders ORDER BY id")) == 1

    def test_dict_rows(self) -> None:
        class DictCursor:
            description = [("n",)]

            def fetchone(self) -> dict[str, int]:
                return {"n": 5}

        assert scalar_value(DictCursor()) == 5


class TestDataReader:
    def _reader(self, conn: Connection, cursor: object) -> DataReader:
        command = Command(CommandType.TEXT, "SELECT 1", conn)
        return DataReader(cursor, conn, close_connection=False, command=command)

    def test_next_result(self, conn: Connection) -> None:
        reader = self._reader(
            conn,
            _chain(
                conn,
                "SELECT id FROM orders WHERE customer_id = 36",
                "SELECT COUNT(*) AS n FROM orders",
            ),
        )
        assert len(reader.fetchall()) == 2
        assert reader.next_result()
        assert reader.columns == ["n"]
        assert reader.read() == {"n": 9}
        assert not reader.next_result()
        reader.close()
        assert conn.is_open

    def test_read_after_close(self, conn: Connection) -> None:
        reader = self._reader(conn, _cursor(conn, "SELECT id FROM orders"))
        reader.close()
        assert reader.read() is None
        assert not reader.next_result()

    def test_records_affected(self, conn: Connection) -> None:
        reader = self._reader(conn, _cursor(conn, "UPDATE orders SET published = 1"))
        assert reader.records_affected == 9
        assert reader.read() is None


class TestXmlReader:
    def _reader(self, conn: Connection, sql: str) -> XmlReader:
        return XmlReader(_cursor(conn, sql), conn, close_connection=False)

    def test_fragments_split_across_rows(self, conn: Connection) -> None:
        reader = self._reader(
            conn,
            "SELECT '<order id=\"1\"><item sku=\"a\"/>' UNION ALL "
            "SELECT '</order><order id=\"2\"/>'",
        )
        elements = list(reader.iter_elements())
        assert [e.get("id") for e in elements] == ["1", "2"]
        assert elements[0][0].get("sku") == "a"

    def test_read_element_wraps_in_root(self, conn: Connection) -> None:
        reader = self._reader(conn, "SELECT '<a/>' UNION ALL SELECT '<b/>'")
        root = reader.read_element()
        assert root.tag == "root"
        assert [child.tag for child in root] == ["a", "b"]

    def test_custom_root_tag(self, conn: Connection) -> None:
        reader = XmlReader(
            _cursor(conn, "SELECT '<a/>'"), conn, close_connection=False, root_tag="orders"
        )
        assert reader.read_element().tag == "orders"

    def test_read_text(self, conn: Connection) -> None:
        reader = self._reader(conn, "SELECT '<a>' UNION ALL SELECT NULL UNION ALL SELECT '</a>'")
        assert reader.read_text() == "<a></a>"

    def test_can_only_be_read_once(self, conn: Connection) -> None:
        reader = self._reader(conn, "SELECT '<a/>'")
        reader.read_text()
        with pytest.raises(RuntimeError):
            reader.read_text()

    def test_empty_result(self, conn: Connection) -> None:
        reader = self._reader(conn, "SELECT id FROM orders WHERE id < 0")
        assert list(reader) == []

    def test_close_leaves_borrowed_connection_open(self, conn: Connection) -> None:
        with self._reader(conn, "SELECT '<a/>'") as reader:
            pass
        assert reader.is_closed
        assert conn.is_open

"""Shared test fixtures."""

from __future__ import annotations

import sqlite3
from contextlib import closing
from pathlib import Path

import pytest

from proc_query.core.cache import ParameterCache
from proc_query.core.connection import ConnectionConfig, register_adapter
from proc_query.core.enums import ParameterDirection
from proc_query.core.executor import Executor
from proc_query.core.params import Parameter
from tests.fakes import ProcedureSqliteAdapter

PROC_DRIVER = "sqlite-proc"

CUSTOMER_ID = 24


def _seed(database: Path) -> None:
    with closing(sqlite3.connect(database)) as conn:
        conn.execute(
            "CREATE TABLE orders (id INTEGER PRIMARY KEY AUTOINCREMENT, "
            "customer_id INTEGER NOT NULL, amount REAL NOT NULL, "
            "published INTEGER NOT NULL DEFAULT 0)"
        )
        conn.executemany(
            "INSERT INTO orders (customer_id, amount) VALUES (?, ?)",
            [(CUSTOMER_ID, 10.0 * n) for n in range(1, 8)] + [(36, 5.0), (36, 7.5)],
        )
        conn.commit()


@pytest.fixture
def database_path(tmp_path: Path) -> Path:
    """A seeded SQLite database file with an orders table."""
    path = tmp_path / "app.db"
    _seed(path)
    return path


@pytest.fixture
def sqlite_config(database_path: Path) -> ConnectionConfig:
    """Plain SQLite config (text commands only)."""
    return ConnectionConfig(driver="sqlite", database=str(database_path))


@pytest.fixture
def proc_adapter() -> ProcedureSqliteAdapter:
    """A fresh procedure-capable adapter registered under PROC_DRIVER."""
    adapter = ProcedureSqliteAdapter()
    adapter.define(
        "GetOrderCount",
        "SELECT COUNT(*) AS order_count FROM orders WHERE customer_id = :customer_id",
        Parameter("@customer_id", db_type="int"),
    )
    adapter.define(
        "GetOrders",
        "SELECT id, customer_id, amount FROM orders WHERE customer_id = :customer_id ORDER BY id",
        Parameter("@customer_id", db_type="int"),
    )
    adapter.define(
        "PublishOrders",
        "UPDATE orders SET published = 1 WHERE customer_id = :customer_id",
        Parameter("@customer_id", db_type="int"),
    )
    adapter.define(
        "GetOrderTotal",
        "SELECT SUM(amount) AS total FROM orders WHERE customer_id = :customer_id",
        Parameter("@customer_id", db_type="int"),
        Parameter("@total", direction=ParameterDirection.INPUT_OUTPUT, db_type="money"),
    )
    adapter.define(
        "GetOrdersXml",
        "SELECT '<order id=\"' || id || '\" amount=\"' || amount || '\"/>' "
        "FROM orders WHERE customer_id = :customer_id ORDER BY id",
        Parameter("@customer_id", db_type="int"),
    )
    adapter.define("CountAllOrders", "SELECT COUNT(*) FROM orders")
    register_adapter(PROC_DRIVER, lambda: adapter)
    return adapter


@pytest.fixture
def proc_config(proc_adapter: ProcedureSqliteAdapter, database_path: Path) -> ConnectionConfig:
    """Config for the procedure-capable test adapter over the seeded database."""
    return ConnectionConfig(driver=PROC_DRIVER, database=str(database_path))


@pytest.fixture
def unregistered_config(database_path: Path) -> ConnectionConfig:
    """Config for a driver with no registered adapter; needs an explicit one."""
    return ConnectionConfig(driver="unregistered-proc", database=str(database_path))


@pytest.fixture
def cache() -> ParameterCache:
    return ParameterCache()


@pytest.fixture
def executor(proc_config: ConnectionConfig, cache: ParameterCache) -> Executor:
    """Executor with the test adapter as default context and a private cache."""
    return Executor(proc_config, cache=cache)

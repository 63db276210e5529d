"""
Example 01: Basic Commands

This example demonstrates text commands with ProcQuery's Executor in each result mode.
"""

from proc_query import CommandType, Executor, Parameter
import tempfile
import sqlite3
from pathlib import Path


def main():
    # Create a temporary database
    db_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    db_path = db_file.name
    db_file.close()

    conn = sqlite3.connect(db_path)
    conn.execute("""
        CREATE TABLE orders (
            id INTEGER PRIMARY KEY,
            customer_id INTEGER NOT NULL,
            amount REAL NOT NULL
        )
    """)
    conn.execute("INSERT INTO orders (customer_id, amount) VALUES (24, 10.0)")
    conn.execute("INSERT INTO orders (customer_id, amount) VALUES (24, 32.5)")
    conn.execute("INSERT INTO orders (customer_id, amount) VALUES (36, 7.0)")
    conn.commit()
    conn.close()

    # The connection string is the default execution context
    executor = Executor(f"sqlite:///{db_path}")
    by_customer = [Parameter("@customer_id", 24)]

    print("=== Basic Commands ===\n")

    # Scalar: first column of the first row
    count = executor.execute_scalar(
        None,
        CommandType.TEXT,
        "SELECT COUNT(*) FROM orders WHERE customer_id = :customer_id",
        by_customer,
    )
    print(f"execute_scalar result: {count} orders\n")

    # DataSet: every row buffered, connection already closed
    ds = executor.execute_dataset(
        None, CommandType.TEXT, "SELECT * FROM orders WHERE customer_id = :customer_id", by_customer
    )
    print(f"execute_dataset result ({len(ds[0])} rows in {ds[0].name}):")
    for row in ds[0]:
        print(f"  - order {row['id']}: {row['amount']}")
    print()

    # Reader: streams rows; closing it closes the connection
    by_amount = "SELECT * FROM orders ORDER BY amount"
    with executor.execute_reader(None, CommandType.TEXT, by_amount) as reader:
        print("execute_reader rows:")
        for row in reader:
            print(f"  - {row}")
    print()

    # Non-query: affected row count
    affected = executor.execute_non_query(
        None,
        CommandType.TEXT,
        "UPDATE orders SET amount = amount * 2 WHERE customer_id = :customer_id",
        by_customer,
    )
    print(f"execute_non_query result: {affected} rows updated\n")

    # Clean up
    Path(db_path).unlink()


if __name__ == "__main__":
    main()

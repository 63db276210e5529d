"""
Example 02: Transactions

This example demonstrates running commands inside a caller-owned transaction.
The executor never commits or rolls back; the transaction's owner decides.
"""

from proc_query import CommandType, Connection, Executor, Parameter, TransactionFinalizedError
import tempfile
import sqlite3
from pathlib import Path


def main():
    # Set up database
    db_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    db_path = db_file.name
    db_file.close()

    conn = sqlite3.connect(db_path)
    conn.execute("""
        CREATE TABLE users (
            id INTEGER PRIMARY KEY,
            name TEXT NOT NULL,
            email TEXT NOT NULL UNIQUE
        )
    """)
    conn.commit()
    conn.close()

    url = f"sqlite:///{db_path}"
    executor = Executor(url)
    insert = "INSERT INTO users (name, email) VALUES (:name, :email)"

    def add_user(context, name, email):
        params = [Parameter("@name", name), Parameter("@email", email)]
        return executor.execute_non_query(context, CommandType.TEXT, insert, params)

    count_users = "SELECT COUNT(*) FROM users"

    print("=== Transactions ===\n")

    with Connection(url) as connection:
        # Example 1: Successful transaction
        print("1. Successful transaction:")
        with connection.begin() as tx:
            add_user(tx, "Alice", "alice@example.com")
            # Commits automatically on exit
        count = executor.execute_scalar(connection, CommandType.TEXT, count_users)
        print(f"   Users after commit: {count}\n")

        # Example 2: Error inside the transaction
        print("2. Transaction with error (automatic rollback):")
        try:
            with connection.begin() as tx:
                add_user(tx, "Bob", "bob@example.com")
                # Duplicate email
                add_user(tx, "Charlie", "alice@example.com")
        except sqlite3.IntegrityError as e:
            print(f"   Error occurred: {type(e).__name__}")
        count = executor.execute_scalar(connection, CommandType.TEXT, count_users)
        print(f"   Users after rollback: {count} (Bob was not added)\n")

        # Example 3: A finished transaction is rejected before anything runs
        print("3. Finalized transaction:")
        try:
            add_user(tx, "Dave", "dave@example.com")
        except TransactionFinalizedError as e:
            print(f"   {e}\n")

    # Clean up
    Path(db_path).unlink()


if __name__ == "__main__":
    main()

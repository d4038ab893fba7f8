"""Database connection management."""

import os
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, Optional

# Global connection cache
_connection: Optional[sqlite3.Connection] = None
_db_path: Optional[str] = None

# One lock per lot id, shared by every writer in this process
_lot_locks: Dict[str, threading.Lock] = {}
_lot_locks_guard = threading.Lock()


def get_db_path(override: Optional[str] = None) -> str:
    """
    Get the database path.

    Priority:
    1. Explicit override parameter
    2. CARDLOTS_DB environment variable
    3. Default: <CARDLOTS_HOME or $HOME/.cardlots>/lots.sqlite
    """
    if override:
        return override

    env_path = os.environ.get("CARDLOTS_DB")
    if env_path:
        return env_path

    from card_lots.utils import get_cardlots_home
    return str(get_cardlots_home() / "lots.sqlite")


def get_connection(db_path: Optional[str] = None) -> sqlite3.Connection:
    """
    Get or create a database connection.

    Uses a cached connection for the same path.
    """
    global _connection, _db_path

    path = get_db_path(db_path)

    # Return cached connection if path matches
    if _connection is not None and _db_path == path:
        return _connection

    # Close existing connection if path changed
    if _connection is not None:
        _connection.close()

    # Ensure directory exists
    db_dir = Path(path).parent
    db_dir.mkdir(parents=True, exist_ok=True)

    # Create new connection
    _connection = sqlite3.connect(path, check_same_thread=False)
    _connection.row_factory = sqlite3.Row
    _connection.execute("PRAGMA foreign_keys = ON")
    _db_path = path

    return _connection


def close_connection():
    """Close the cached connection if one exists."""
    global _connection, _db_path

    if _connection is not None:
        _connection.close()
        _connection = None
        _db_path = None


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """
    Run a block as one unit of work: commit on success, roll back on error.

    Takes the sqlite write lock up front (BEGIN IMMEDIATE). When a transaction
    is already open the block runs inside a savepoint instead, so nested use
    rolls back only its own writes.
    """
    if conn.in_transaction:
        conn.execute("SAVEPOINT unit_of_work")
        try:
            yield conn
        except BaseException:
            conn.execute("ROLLBACK TO SAVEPOINT unit_of_work")
            conn.execute("RELEASE SAVEPOINT unit_of_work")
            raise
        conn.execute("RELEASE SAVEPOINT unit_of_work")
        return

    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
    except BaseException:
        conn.rollback()
        raise
    conn.commit()


def lot_lock(lot_id: str) -> threading.Lock:
    """Return the process-wide lock that serializes bulk writes to one lot."""
    with _lot_locks_guard:
        lock = _lot_locks.get(lot_id)
        if lock is None:
            lock = _lot_locks[lot_id] = threading.Lock()
        return lock


def discard_lot_lock(lot_id: str) -> None:
    """Drop the lock entry of a deleted lot."""
    with _lot_locks_guard:
        _lot_locks.pop(lot_id, None)

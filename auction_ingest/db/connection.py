"""
SQLite connection management.

``open_connection()`` returns a configured, long-lived connection. Lambda
handlers open one per process and reuse it across invocations through
``AuctionDatabase``; the CLI opens one per command the same way. Callers
own transactions (``AuctionDatabase`` wraps each gateway call in
``with conn:``).

Every connection enables foreign keys, sets a busy timeout, optionally
switches to WAL, and uses ``sqlite3.Row`` so rows behave like dicts.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)


def open_connection(
    db_path: str,
    wal_mode: bool = True,
    busy_timeout_ms: int = 5000,
) -> sqlite3.Connection:
    """Open and configure a SQLite connection.

    The database file (and any parent directories) are created if they do
    not already exist.

    Args:
        db_path: Path to the SQLite database file, or ``":memory:"``.
        wal_mode: If ``True``, enable WAL journal mode.
        busy_timeout_ms: Milliseconds to wait on a locked database before
            raising ``OperationalError``.

    Raises:
        sqlite3.Error: If the database cannot be opened or configured.
    """
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path, timeout=busy_timeout_ms / 1000)
    conn.row_factory = sqlite3.Row

    try:
        # These pragmas must be set before any DML/DDL
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.execute(f"PRAGMA busy_timeout = {int(busy_timeout_ms)};")
        if wal_mode and db_path != ":memory:":
            conn.execute("PRAGMA journal_mode = WAL;")
    except sqlite3.Error:
        conn.close()
        raise

    logger.debug("Opened SQLite connection: %s", db_path)
    return conn

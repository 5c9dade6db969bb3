"""
Base repository for the auction tables.

Each repository is bound to one table (``table`` class attribute) and a
``sqlite3.Connection`` supplied by the caller. Repositories never commit:
``AuctionDatabase`` wraps every gateway call in ``with conn:`` (the CLI goes
through ``AuctionDatabase`` too), so a multi-statement write such as the
current-auctions swap lands atomically.

All SQL is explicit and parameterised; only the table and column names,
which come from module constants, are interpolated.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Iterable, Optional, Sequence

logger = logging.getLogger(__name__)


class BaseRepository:
    """Shared SQL helpers for a single-table repository.

    Attributes:
        table: Table this repository reads and writes. Set by subclasses.
        conn: The active ``sqlite3.Connection``.
    """

    table: str

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def execute(self, sql: str, params: Sequence[Any] = ()) -> sqlite3.Cursor:
        logger.debug("SQL: %s | params: %s", " ".join(sql.split()), params)
        return self.conn.execute(sql, params)

    def executemany(self, sql: str, params_list: list[Sequence[Any]]) -> sqlite3.Cursor:
        logger.debug("SQL (many): %s | rows: %d", " ".join(sql.split()), len(params_list))
        return self.conn.executemany(sql, params_list)

    def fetchone(self, sql: str, params: Sequence[Any] = ()) -> Optional[sqlite3.Row]:
        return self.execute(sql, params).fetchone()

    def fetchall(self, sql: str, params: Sequence[Any] = ()) -> list[sqlite3.Row]:
        return self.execute(sql, params).fetchall()

    def insert_many(
        self,
        columns: Sequence[str],
        rows: Iterable[Sequence[Any]],
        ignore_conflicts: bool = False,
    ) -> int:
        """Insert ``rows`` into :attr:`table` with one ``executemany`` call.

        Args:
            columns: Column names, in the order values appear in each row.
            rows: Value tuples.
            ignore_conflicts: Use ``INSERT OR IGNORE`` so rows whose key
                already exists are skipped instead of raising.

        Returns:
            Number of rows actually inserted.
        """
        params = list(rows)
        if not params:
            return 0
        verb = "INSERT OR IGNORE" if ignore_conflicts else "INSERT"
        placeholders = ", ".join("?" for _ in columns)
        before = self.conn.total_changes
        self.executemany(
            f"{verb} INTO {self.table} ({', '.join(columns)}) VALUES ({placeholders});",
            params,
        )
        return self.conn.total_changes - before

    def count(self) -> int:
        """Number of rows in :attr:`table`."""
        row = self.fetchone(f"SELECT COUNT(*) AS n FROM {self.table};")
        return int(row["n"]) if row is not None else 0

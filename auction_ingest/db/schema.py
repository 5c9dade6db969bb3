"""
SQLite schema for auction-ingest.

Every statement is ``CREATE ... IF NOT EXISTS``, so ``apply_schema()`` can
run on each Lambda cold start and from ``auction-ingest init-db`` without a
migration step.

Tables:
  items             item ids known to the enrichment services
  auction_history   append-only snapshots; keyed so a re-delivered file is a no-op
  current_auctions  latest live snapshot per realm / auction house / item

``auction_history`` and ``current_auctions`` share the ``AUCTION_COLUMNS``
layout and differ only in their primary key.
"""

from __future__ import annotations

import logging
import sqlite3

from auction_ingest.models.auction import AUCTION_COLUMNS

logger = logging.getLogger(__name__)

HISTORY_KEY: tuple[str, ...] = ("realm_id", "auction_house_id", "item_id", "interval", "timestamp")
CURRENT_KEY: tuple[str, ...] = ("realm_id", "auction_house_id", "item_id")


def _auction_table(name: str, primary_key: tuple[str, ...]) -> str:
    columns = ",\n".join(f"    {column:<18}INTEGER NOT NULL" for column in AUCTION_COLUMNS)
    return (
        f"CREATE TABLE IF NOT EXISTS {name} (\n"
        f"{columns},\n"
        f"    PRIMARY KEY ({', '.join(primary_key)})\n"
        ")"
    )


_STATEMENTS: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS items (
        item_id     INTEGER PRIMARY KEY,
        name        TEXT,
        created_at  TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
    )
    """,
    _auction_table("auction_history", HISTORY_KEY),
    """
    CREATE INDEX IF NOT EXISTS idx_auction_history_item_ts
        ON auction_history (item_id, timestamp)
    """,
    _auction_table("current_auctions", CURRENT_KEY),
)

ALL_TABLE_NAMES: tuple[str, ...] = ("items", "auction_history", "current_auctions")


def apply_schema(conn: sqlite3.Connection) -> None:
    """Create any missing tables and indexes, then commit."""
    for statement in _STATEMENTS:
        conn.execute(statement)
    conn.commit()
    logger.debug("Schema verified: %s", ", ".join(ALL_TABLE_NAMES))


def get_existing_tables(conn: sqlite3.Connection) -> list[str]:
    """Names of all tables in the database, sorted."""
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type = 'table' ORDER BY name;"
    ).fetchall()
    return [row[0] for row in rows]

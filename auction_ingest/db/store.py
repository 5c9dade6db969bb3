"""
Persistence gateway used by the ingestion stages.

``AuctionStore`` is the contract stages depend on; ``AuctionDatabase`` is the
SQLite implementation. Each gateway call runs in its own transaction and
either applies fully or raises :class:`~auction_ingest.errors.TransportError`.

``AuctionDatabase.connect`` opens the connection and applies the schema immediately, so a Lambda cold
start with a bad ``DB_CONNECTION_STRING`` fails before the first event.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Protocol, Sequence

from auction_ingest.config import DatabaseConfig
from auction_ingest.db.connection import open_connection
from auction_ingest.db.repositories.auction_repo import (
    AuctionHistoryRepository,
    CurrentAuctionRepository,
)
from auction_ingest.db.repositories.item_repo import ItemRepository
from auction_ingest.db.schema import apply_schema
from auction_ingest.errors import TransportError
from auction_ingest.models.auction import AuctionRecord

logger = logging.getLogger(__name__)


class AuctionStore(Protocol):
    """Persistence operations needed by ingestion."""

    def get_item_ids(self) -> set[int]: ...

    def insert_auctions(self, records: Sequence[AuctionRecord]) -> int: ...

    def replace_current_auctions(self, records: Sequence[AuctionRecord]) -> int: ...


class AuctionDatabase:
    """SQLite-backed :class:`AuctionStore`.

    Holds one long-lived connection; safe to reuse across sequential
    invocations in the same process.

    Attributes:
        conn: The open ``sqlite3.Connection``.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    @classmethod
    def connect(
        cls,
        db_path: str,
        wal_mode: bool = True,
        busy_timeout_ms: int = 5000,
    ) -> "AuctionDatabase":
        """Open ``db_path``, apply the schema, and return a ready gateway.

        Raises:
            TransportError: If the database cannot be opened or initialized.
        """
        try:
            conn = open_connection(db_path, wal_mode=wal_mode, busy_timeout_ms=busy_timeout_ms)
        except (sqlite3.Error, OSError) as exc:
            raise TransportError(f"could not open database '{db_path}': {exc}") from exc
        try:
            apply_schema(conn)
        except sqlite3.Error as exc:
            conn.close()
            raise TransportError(f"could not initialize database '{db_path}': {exc}") from exc
        logger.info("Connected to auction database at %s", db_path)
        return cls(conn)

    @classmethod
    def from_config(cls, config: DatabaseConfig) -> "AuctionDatabase":
        return cls.connect(
            config.db_path,
            wal_mode=config.wal_mode,
            busy_timeout_ms=config.busy_timeout_ms,
        )

    def get_item_ids(self) -> set[int]:
        try:
            return ItemRepository(self.conn).get_all_item_ids()
        except sqlite3.Error as exc:
            raise TransportError(f"error while querying item ids: {exc}") from exc

    def insert_auctions(self, records: Sequence[AuctionRecord]) -> int:
        """Append ``records`` to ``auction_history``; returns rows inserted."""
        try:
            with self.conn:
                return AuctionHistoryRepository(self.conn).insert_batch(records)
        except sqlite3.Error as exc:
            raise TransportError(f"error writing auction history: {exc}") from exc

    def replace_current_auctions(self, records: Sequence[AuctionRecord]) -> int:
        """Swap in ``records`` as the current snapshot of their auction houses."""
        try:
            with self.conn:
                return CurrentAuctionRepository(self.conn).replace_for_houses(records)
        except sqlite3.Error as exc:
            raise TransportError(f"error writing current auctions: {exc}") from exc

    def close(self) -> None:
        self.conn.close()

"""
Repositories for ``auction_history`` and ``current_auctions``.

Both tables share the ``AUCTION_COLUMNS`` layout, so records round-trip
through :meth:`AuctionRecord.as_row` and :func:`_row_to_record`.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Sequence

from auction_ingest.db.repositories.base import BaseRepository
from auction_ingest.models.auction import AUCTION_COLUMNS, AuctionRecord

logger = logging.getLogger(__name__)


class AuctionHistoryRepository(BaseRepository):
    """Append-only access to ``auction_history``."""

    table = "auction_history"

    def insert_batch(self, records: Sequence[AuctionRecord]) -> int:
        """Append records, skipping any whose primary key is already stored.

        Re-delivering the same file therefore leaves history unchanged.

        Returns:
            Number of rows actually inserted.
        """
        return self.insert_many(
            AUCTION_COLUMNS, (r.as_row() for r in records), ignore_conflicts=True
        )

    def get_for_item(self, item_id: int, limit: int = 500) -> list[AuctionRecord]:
        """History for one item across all houses, most recent first."""
        rows = self.fetchall(
            """
            SELECT * FROM auction_history
            WHERE item_id = ?
            ORDER BY timestamp DESC LIMIT ?;
            """,
            (item_id, limit),
        )
        return [_row_to_record(r) for r in rows]


class CurrentAuctionRepository(BaseRepository):
    """Per-house latest snapshot in ``current_auctions``."""

    table = "current_auctions"

    def replace_for_houses(self, records: Sequence[AuctionRecord]) -> int:
        """Replace the snapshot of every realm/auction house present in ``records``.

        Pairs absent from ``records`` keep their rows. The delete and the
        insert must share the caller's transaction.

        Returns:
            Number of rows written.
        """
        if not records:
            return 0
        houses = sorted({(r.realm_id, r.auction_house_id) for r in records})
        self.executemany(
            "DELETE FROM current_auctions WHERE realm_id = ? AND auction_house_id = ?;",
            houses,
        )
        # A file may repeat an item; the last row for a key wins.
        latest = {r.current_key: r for r in records}
        written = self.insert_many(AUCTION_COLUMNS, (r.as_row() for r in latest.values()))
        logger.debug("Replaced current auctions for %d house(s)", len(houses))
        return written

    def get_for_house(self, realm_id: int, auction_house_id: int) -> list[AuctionRecord]:
        rows = self.fetchall(
            """
            SELECT * FROM current_auctions
            WHERE realm_id = ? AND auction_house_id = ?
            ORDER BY item_id;
            """,
            (realm_id, auction_house_id),
        )
        return [_row_to_record(r) for r in rows]


def _row_to_record(row: sqlite3.Row) -> AuctionRecord:
    return AuctionRecord(**{name: row[name] for name in AUCTION_COLUMNS})

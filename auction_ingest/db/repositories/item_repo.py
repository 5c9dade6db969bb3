"""
Repository for the known-items registry.

Rows are created by the enrichment services that consume the new-item queue;
ingestion only reads the id set. ``insert_ids`` exists for seeding and tests.
"""

from __future__ import annotations

from typing import Iterable

from auction_ingest.db.repositories.base import BaseRepository


class ItemRepository(BaseRepository):
    """Read/write access to the ``items`` table."""

    table = "items"

    def get_all_item_ids(self) -> set[int]:
        """Every item id in the registry, loaded in one query."""
        rows = self.fetchall("SELECT item_id FROM items;")
        return {int(row["item_id"]) for row in rows}

    def insert_ids(self, item_ids: Iterable[int]) -> int:
        """Register ids without names, skipping ones already present.

        Returns:
            Number of ids newly inserted.
        """
        return self.insert_many(
            ("item_id",), ((item_id,) for item_id in item_ids), ignore_conflicts=True
        )

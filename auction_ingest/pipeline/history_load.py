"""
HistoryLoadStage — bulk historical load triggered directly by S3 events.

Each object key carries its snapshot hour and interval::

    exports/interval=4/year=2024/month=1/day=15/hour=9/realm-4395.csv

Every row in the file gets that timestamp and interval. Records go to
``auction_history`` only; the current-auctions snapshot and the new-item
queue belong to live ingest.
"""

from __future__ import annotations

import logging
from functools import partial
from typing import Any

from auction_ingest.ingestion.events import decode_s3_event
from auction_ingest.ingestion.partition_key import parse_partition_key
from auction_ingest.ingestion.row_mapper import map_history_row
from auction_ingest.models.events import S3ObjectRef
from auction_ingest.models.meta import InvocationSummary
from auction_ingest.pipeline.base import IngestionStage

logger = logging.getLogger(__name__)


class HistoryLoadStage(IngestionStage):
    """Load partitioned history CSVs into ``auction_history``."""

    stage_name = "history_load"

    def _decode(self, event: Any) -> list[S3ObjectRef]:
        return decode_s3_event(event)

    def _process_object(self, ref: S3ObjectRef, summary: InvocationSummary) -> None:
        # Fails before the download when the key has no usable partition.
        partition = parse_partition_key(ref.key)
        logger.info(
            "partition interval=%d snapshot_at=%s",
            partition.interval, partition.snapshot_at.isoformat(),
        )

        records = self._read_records(ref, partial(map_history_row, partition=partition))

        logger.info("writing %d auctions to auction history", len(records))
        self.database.insert_auctions(records)
        summary.records_written += len(records)

"""
LiveIngestStage — per-scan ingest triggered through the SNS fan-out topic.

Per file:
  1. Load the known item-id set (one snapshot for the whole file).
  2. Download and map every row; each row carries its own RFC 3339 timestamp
     and all records get ``config.ingest.live_interval``.
  3. Append to ``auction_history`` and replace the current-auctions snapshot.
  4. Publish item ids not yet in the registry to the new-item queue, in
     batches of ``config.queue.batch_size``.
"""

from __future__ import annotations

import logging
from functools import partial
from typing import Any

from auction_ingest.config import AppConfig
from auction_ingest.db.store import AuctionStore
from auction_ingest.gateways.queue import ItemIdPublisher
from auction_ingest.gateways.storage import ObjectStore
from auction_ingest.ingestion.events import decode_sns_event
from auction_ingest.ingestion.item_differ import find_new_item_ids
from auction_ingest.ingestion.row_mapper import map_live_row
from auction_ingest.models.events import S3ObjectRef
from auction_ingest.models.meta import InvocationSummary
from auction_ingest.pipeline.base import IngestionStage

logger = logging.getLogger(__name__)


class LiveIngestStage(IngestionStage):
    """Ingest live snapshot CSVs and fan out newly seen item ids.

    Attributes:
        publisher: Queue gateway for new item ids.
    """

    stage_name = "live_ingest"

    def __init__(
        self,
        config: AppConfig,
        database: AuctionStore,
        storage: ObjectStore,
        publisher: ItemIdPublisher,
    ) -> None:
        super().__init__(config=config, database=database, storage=storage)
        self.publisher = publisher

    def _decode(self, event: Any) -> list[S3ObjectRef]:
        return decode_sns_event(event)

    def _process_object(self, ref: S3ObjectRef, summary: InvocationSummary) -> None:
        logger.info("querying item ids from database")
        known_item_ids = self.database.get_item_ids()

        records = self._read_records(
            ref, partial(map_live_row, interval=self.config.ingest.live_interval)
        )

        logger.info("comparing item ids in file against %d ids in database", len(known_item_ids))
        new_item_ids = sorted(
            find_new_item_ids(known_item_ids, (r.item_id for r in records))
        )

        logger.info("writing %d auctions to auction history", len(records))
        self.database.insert_auctions(records)
        summary.records_written += len(records)

        logger.info("writing %d auctions to current auctions", len(records))
        self.database.replace_current_auctions(records)

        logger.info("found %d item ids to update, writing to queue..", len(new_item_ids))
        self.publisher.publish_item_ids(new_item_ids)
        summary.new_item_ids.extend(new_item_ids)

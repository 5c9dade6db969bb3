"""
Abstract base class for the ingestion stages.

Every stage follows the same contract:
  1. Receive ``AppConfig`` and its collaborators (database, object store,
     publisher) at construction — nothing is looked up globally.
  2. ``run(event)`` is the sole public API.
  3. ``run()`` creates an ``InvocationSummary``, decodes the event into
     ``S3ObjectRef``s, and calls ``_process_object()`` for each one in order.
  4. The first exception aborts the invocation: the summary is marked
     ``failed``, the error is logged, and the exception is re-raised so the
     Lambda runtime applies its retry / dead-letter policy.

Usage::

    stage = HistoryLoadStage(config=cfg, database=db, storage=S3ObjectStore())
    summary = stage.run(event)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional
from uuid import uuid4

from auction_ingest.config import AppConfig
from auction_ingest.db.store import AuctionStore
from auction_ingest.errors import ParseError
from auction_ingest.gateways.storage import ObjectStore
from auction_ingest.ingestion.csv_reader import ParseFailure, RowMapper, read_auction_csv
from auction_ingest.models.auction import AuctionRecord
from auction_ingest.models.events import S3ObjectRef
from auction_ingest.models.meta import InvocationSummary
from auction_ingest.utils.logging import bind_invocation
from auction_ingest.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


class IngestionStage(ABC):
    """Abstract base for the live-ingest and history-load stages.

    Subclasses must:
      1. Set ``stage_name`` class variable.
      2. Implement ``_decode(event) -> list[S3ObjectRef]``.
      3. Implement ``_process_object(ref, summary)``.

    Attributes:
        stage_name: Identifier matching a valid ``InvocationSummary.stage``.
        config: The application configuration.
        database: Persistence gateway.
        storage: Object store gateway.
    """

    stage_name: str  # Override in subclass

    def __init__(
        self,
        config: AppConfig,
        database: AuctionStore,
        storage: ObjectStore,
    ) -> None:
        self.config = config
        self.database = database
        self.storage = storage

    def run(self, event: Any, invocation_id: Optional[str] = None) -> InvocationSummary:
        """Process every file referenced by ``event``, strictly in order.

        Args:
            event: Raw Lambda event dict.
            invocation_id: Correlation id for logs; defaults to a new UUID4.

        Returns:
            ``InvocationSummary`` with ``status='success'``.

        Raises:
            IngestError: Any decode, transport or parse failure, after the
                summary has been marked ``failed`` and logged.
        """
        summary = InvocationSummary(
            invocation_id=invocation_id or str(uuid4()),
            stage=self.stage_name,
            started_at=utcnow(),
        )

        with bind_invocation(summary.invocation_id):
            logger.info("Stage [%s] starting", self.stage_name)
            try:
                for ref in self._decode(event):
                    self._process_object(ref, summary)
                    summary.files_processed += 1
            except Exception as exc:
                summary.status = "failed"
                summary.error_message = str(exc)
                summary.finished_at = utcnow()
                logger.error("Stage [%s] FAILED: %s", self.stage_name, exc)
                raise

            summary.status = "success"
            summary.finished_at = utcnow()
            logger.info(
                "Stage [%s] completed | files=%d records=%d new_items=%d",
                self.stage_name,
                summary.files_processed,
                summary.records_written,
                len(summary.new_item_ids),
            )
        return summary

    @abstractmethod
    def _decode(self, event: Any) -> list[S3ObjectRef]:
        """Turn the raw trigger event into object references."""
        ...

    @abstractmethod
    def _process_object(self, ref: S3ObjectRef, summary: InvocationSummary) -> None:
        """Download, map and persist one file, updating ``summary``."""
        ...

    def _read_records(self, ref: S3ObjectRef, map_row: RowMapper) -> list[AuctionRecord]:
        """Download ``ref`` and map every row, failing on the first bad line.

        Raises:
            TransportError: If the download fails.
            ParseError: If the header is missing or any row is malformed.
        """
        logger.info("downloading file %s", ref.key)
        with self.storage.open_text(ref) as lines:
            logger.info("reading auctions from file..")
            outcome = read_auction_csv(lines, map_row)

        if isinstance(outcome, ParseFailure):
            raise ParseError(f"{ref.uri} {outcome.describe()}")

        logger.info("read %d auctions from %s", len(outcome.records), ref.key)
        return outcome.records

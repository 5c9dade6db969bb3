"""
AWS Lambda entry points.

Configure the functions with:

  live ingest   → ``auction_ingest.handlers.live_ingest_handler``  (SNS trigger)
  history load  → ``auction_ingest.handlers.history_load_handler`` (S3 trigger)

Config, logging and the database connection are built on the first
invocation and reused while the execution environment stays warm. A bad
``DB_CONNECTION_STRING`` therefore fails the very first invocation instead
of surfacing halfway through a file.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

from auction_ingest.config import AppConfig, load_config
from auction_ingest.db.store import AuctionDatabase
from auction_ingest.gateways.queue import SqsItemIdPublisher
from auction_ingest.gateways.storage import S3ObjectStore
from auction_ingest.pipeline.history_load import HistoryLoadStage
from auction_ingest.pipeline.live_ingest import LiveIngestStage
from auction_ingest.utils.logging import configure_logging

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _app_config() -> AppConfig:
    config = load_config()
    configure_logging(config.logging)
    return config


@lru_cache(maxsize=1)
def _database() -> AuctionDatabase:
    return AuctionDatabase.from_config(_app_config().database)


@lru_cache(maxsize=1)
def _live_stage() -> LiveIngestStage:
    config = _app_config()
    return LiveIngestStage(
        config=config,
        database=_database(),
        storage=S3ObjectStore(region=config.aws.region, encoding=config.ingest.csv_encoding),
        publisher=SqsItemIdPublisher(
            queue_url=config.queue.queue_url,
            region=config.aws.region,
            batch_size=config.queue.batch_size,
        ),
    )


@lru_cache(maxsize=1)
def _history_stage() -> HistoryLoadStage:
    config = _app_config()
    return HistoryLoadStage(
        config=config,
        database=_database(),
        storage=S3ObjectStore(region=config.aws.region, encoding=config.ingest.csv_encoding),
    )


def live_ingest_handler(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    """SNS-triggered live ingest."""
    summary = _live_stage().run(event, invocation_id=_request_id(context))
    return summary.model_dump(mode="json")


def history_load_handler(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    """S3-triggered history load."""
    summary = _history_stage().run(event, invocation_id=_request_id(context))
    return summary.model_dump(mode="json")


def _request_id(context: Any) -> str | None:
    return getattr(context, "aws_request_id", None)

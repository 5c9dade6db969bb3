"""Tests for the Lambda entry points."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from auction_ingest import handlers
from auction_ingest.errors import DecodeError
from auction_ingest.gateways.queue import SqsItemIdPublisher
from auction_ingest.gateways.storage import S3ObjectStore
from auction_ingest.pipeline.history_load import HistoryLoadStage
from auction_ingest.pipeline.live_ingest import LiveIngestStage

KEY = "data/interval=4/year=2024/month=1/day=15/hour=9/export.csv"
HISTORY_CSV = (
    "realmId,auctionHouseId,itemId,quantity,min,max,p05,p10,p25,p50,p75,p90\n"
    "5281,2,100,42,1500,98000,1600,1700,2100,2500,3100,4400\n"
)


@pytest.fixture
def history_stage(app_config, database, fake_s3, monkeypatch):
    stage = HistoryLoadStage(config=app_config, database=database, storage=S3ObjectStore(client=fake_s3))
    monkeypatch.setattr(handlers, "_history_stage", lambda: stage)
    return stage


@pytest.fixture
def live_stage(app_config, database, fake_s3, fake_sqs, monkeypatch):
    stage = LiveIngestStage(
        config=app_config,
        database=database,
        storage=S3ObjectStore(client=fake_s3),
        publisher=SqsItemIdPublisher(app_config.queue.queue_url, client=fake_sqs),
    )
    monkeypatch.setattr(handlers, "_live_stage", lambda: stage)
    return stage


def test_history_handler_returns_summary(history_stage, fake_s3, make_s3_event):
    fake_s3.put("auction-exports", KEY, HISTORY_CSV)
    context = SimpleNamespace(aws_request_id="req-42")

    result = handlers.history_load_handler(make_s3_event(KEY), context)

    assert result["status"] == "success"
    assert result["invocation_id"] == "req-42"
    assert result["records_written"] == 1
    assert isinstance(result["started_at"], str)


def test_history_handler_propagates_errors(history_stage):
    with pytest.raises(DecodeError):
        handlers.history_load_handler({"Records": []}, None)


def test_live_handler_without_context(live_stage):
    result = handlers.live_ingest_handler({"Records": []})
    assert result["stage"] == "live_ingest"
    assert result["files_processed"] == 0
    assert len(result["invocation_id"]) == 36

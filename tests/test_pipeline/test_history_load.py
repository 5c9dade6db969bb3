"""
End-to-end tests for HistoryLoadStage with a fake S3 client and an
in-memory database.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from auction_ingest.db.repositories.auction_repo import AuctionHistoryRepository
from auction_ingest.errors import DecodeError, ParseError, TransportError
from auction_ingest.gateways.storage import S3ObjectStore
from auction_ingest.pipeline.history_load import HistoryLoadStage

BUCKET = "auction-exports"
KEY = "data/interval=4/year=2024/month=1/day=15/hour=9/export.csv"
HEADER = "realmId,auctionHouseId,itemId,quantity,min,max,p05,p10,p25,p50,p75,p90\n"
ROWS = (
    "5281,2,100,42,1500,98000,1600,1700,2100,2500,3100,4400\n"
    "5281,2,200,3,10,30,11,12,15,20,25,28\n"
)


@pytest.fixture
def stage(app_config, database, fake_s3):
    return HistoryLoadStage(config=app_config, database=database, storage=S3ObjectStore(client=fake_s3))


def test_loads_partitioned_file(stage, database, fake_s3, make_s3_event):
    fake_s3.put(BUCKET, KEY, HEADER + ROWS)

    summary = stage.run(make_s3_event(KEY), invocation_id="inv-1")

    assert summary.status == "success"
    assert summary.stage == "history_load"
    assert summary.invocation_id == "inv-1"
    assert summary.files_processed == 1
    assert summary.records_written == 2

    repo = AuctionHistoryRepository(database.conn)
    (first,) = repo.get_for_item(100)
    assert first.interval == 4
    assert first.timestamp == 1705309200
    assert first.p90 == 4400
    assert repo.count() == 2


def test_does_not_touch_current_auctions(stage, database, fake_s3, make_s3_event):
    fake_s3.put(BUCKET, KEY, HEADER + ROWS)
    stage.run(make_s3_event(KEY))
    assert database.conn.execute("SELECT COUNT(*) FROM current_auctions;").fetchone()[0] == 0


def test_escaped_key_is_decoded(stage, fake_s3, make_s3_event):
    fake_s3.put(BUCKET, KEY, HEADER + ROWS)
    escaped = KEY.replace("=", "%3D")
    assert stage.run(make_s3_event(escaped)).records_written == 2


def test_redelivery_is_idempotent(stage, database, fake_s3, make_s3_event):
    fake_s3.put(BUCKET, KEY, HEADER + ROWS)
    stage.run(make_s3_event(KEY))
    stage.run(make_s3_event(KEY))
    assert AuctionHistoryRepository(database.conn).count() == 2


def test_bad_key_fails_before_download(stage, fake_s3, make_s3_event):
    with pytest.raises(ParseError, match="missing partition field"):
        stage.run(make_s3_event("data/interval=4/year=2024/export.csv"))
    assert fake_s3.requests == []


def test_missing_header_persists_nothing(stage, database, fake_s3, make_s3_event):
    fake_s3.put(BUCKET, KEY, ROWS)
    with pytest.raises(ParseError, match="header"):
        stage.run(make_s3_event(KEY))
    assert AuctionHistoryRepository(database.conn).count() == 0


def test_malformed_row_persists_nothing(stage, database, fake_s3, make_s3_event):
    fake_s3.put(BUCKET, KEY, HEADER + ROWS + "5281,2,300,x,1,1,1,1,1,1,1,1\n")
    with pytest.raises(ParseError, match="line 4"):
        stage.run(make_s3_event(KEY))
    assert AuctionHistoryRepository(database.conn).count() == 0


def test_missing_object_raises_transport_error(stage, make_s3_event):
    with pytest.raises(TransportError, match="NoSuchKey"):
        stage.run(make_s3_event(KEY))


def test_records_processed_in_order_first_failure_aborts(stage, database, fake_s3, make_s3_event):
    other = KEY.replace("hour=9", "hour=10")
    fake_s3.put(BUCKET, KEY, HEADER + ROWS)
    # ``other`` was never uploaded; the third object must not be requested.
    third = KEY.replace("hour=9", "hour=11")
    fake_s3.put(BUCKET, third, HEADER + ROWS)

    with pytest.raises(TransportError):
        stage.run(make_s3_event(KEY, other, third))

    assert [key for _, key in fake_s3.requests] == [KEY, other]
    assert AuctionHistoryRepository(database.conn).count() == 2


def test_undecodable_event(stage):
    with pytest.raises(DecodeError):
        stage.run({"not": "an event"})


def test_database_failure_propagates(app_config, fake_s3, make_s3_event):
    fake_s3.put(BUCKET, KEY, HEADER + ROWS)
    db = MagicMock()
    db.insert_auctions.side_effect = TransportError("error writing auction history: disk full")
    stage = HistoryLoadStage(config=app_config, database=db, storage=S3ObjectStore(client=fake_s3))

    with pytest.raises(TransportError, match="disk full"):
        stage.run(make_s3_event(KEY))
    db.replace_current_auctions.assert_not_called()

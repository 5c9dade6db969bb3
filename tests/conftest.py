"""
Shared pytest fixtures for the auction-ingest test suite.

Provides:
  - ``in_memory_db``: A fresh in-memory SQLite connection with the schema applied.
  - ``database``: An ``AuctionDatabase`` gateway over an in-memory database.
  - ``fake_s3`` / ``fake_sqs``: Stand-in boto3 clients recording every call.
  - Sample records and event builders used across test modules.
"""

from __future__ import annotations

import io
import json
import sqlite3
from typing import Generator

import pytest
from botocore.exceptions import ClientError

from auction_ingest.config import AppConfig, QueueConfig
from auction_ingest.db.schema import apply_schema
from auction_ingest.db.store import AuctionDatabase
from auction_ingest.models.auction import AuctionRecord

QUEUE_URL = "https://sqs.us-east-1.amazonaws.com/000000000000/item-ids"


# ── Database fixtures ─────────────────────────────────────────────────────────

@pytest.fixture
def in_memory_db() -> Generator[sqlite3.Connection, None, None]:
    """Yield a fresh in-memory SQLite connection with the schema applied."""
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    apply_schema(conn)
    yield conn
    conn.close()


@pytest.fixture
def database() -> Generator[AuctionDatabase, None, None]:
    """Yield an ``AuctionDatabase`` backed by ``:memory:``."""
    db = AuctionDatabase.connect(":memory:")
    yield db
    db.close()


# ── Fake AWS clients ──────────────────────────────────────────────────────────

class _TrackedBody(io.BytesIO):
    """BytesIO that remembers whether it was closed after the fixture returns it."""

    def __init__(self, data: bytes, registry: list) -> None:
        super().__init__(data)
        registry.append(self)
        self.was_closed = False

    def close(self) -> None:
        self.was_closed = True
        super().close()


class FakeS3Client:
    """Serves objects from an in-memory dict, mimicking ``get_object``."""

    def __init__(self) -> None:
        self.objects: dict[tuple[str, str], bytes] = {}
        self.bodies: list[_TrackedBody] = []
        self.requests: list[tuple[str, str]] = []

    def put(self, bucket: str, key: str, content: str) -> None:
        self.objects[(bucket, key)] = content.encode("utf-8")

    def get_object(self, Bucket: str, Key: str) -> dict:
        self.requests.append((Bucket, Key))
        try:
            data = self.objects[(Bucket, Key)]
        except KeyError:
            raise ClientError(
                {"Error": {"Code": "NoSuchKey", "Message": "The specified key does not exist."}},
                "GetObject",
            )
        return {"Body": _TrackedBody(data, self.bodies), "ContentLength": len(data)}


class FakeSqsClient:
    """Records ``send_message_batch`` calls; can be told to fail."""

    def __init__(self) -> None:
        self.calls: list[dict] = []
        self.fail_on_call: int | None = None
        self.reject_entries = False

    def send_message_batch(self, QueueUrl: str, Entries: list[dict]) -> dict:
        self.calls.append({"QueueUrl": QueueUrl, "Entries": Entries})
        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            raise ClientError(
                {"Error": {"Code": "AWS.SimpleQueueService.NonExistentQueue", "Message": "gone"}},
                "SendMessageBatch",
            )
        if self.reject_entries:
            return {
                "Successful": [],
                "Failed": [
                    {"Id": e["Id"], "SenderFault": True, "Code": "InvalidMessageContents"}
                    for e in Entries
                ],
            }
        return {
            "Successful": [{"Id": e["Id"], "MessageId": f"m-{e['Id']}"} for e in Entries],
            "Failed": [],
        }

    @property
    def sent_batches(self) -> list[list[str]]:
        return [[e["MessageBody"] for e in call["Entries"]] for call in self.calls]


@pytest.fixture
def fake_s3() -> FakeS3Client:
    return FakeS3Client()


@pytest.fixture
def fake_sqs() -> FakeSqsClient:
    return FakeSqsClient()


# ── Config ────────────────────────────────────────────────────────────────────

@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig(queue=QueueConfig(queue_url=QUEUE_URL))


# ── Sample domain objects ─────────────────────────────────────────────────────

@pytest.fixture
def sample_record() -> AuctionRecord:
    """A valid live ``AuctionRecord`` for testing."""
    return AuctionRecord(
        realm_id=5281,
        auction_house_id=2,
        item_id=191528,
        interval=1,
        timestamp=1726401600,  # 2024-09-15T12:00:00Z
        quantity=42,
        min=1500,
        max=98000,
        p05=1600,
        p10=1700,
        p25=2100,
        p50=2500,
        p75=3100,
        p90=4400,
    )


# ── Event builders ────────────────────────────────────────────────────────────

def s3_event(*keys: str, bucket: str = "auction-exports") -> dict:
    """Build a minimal S3 ObjectCreated notification for ``keys``."""
    return {
        "Records": [
            {
                "eventName": "ObjectCreated:Put",
                "s3": {"bucket": {"name": bucket}, "object": {"key": key, "size": 1}},
            }
            for key in keys
        ]
    }


def sns_event(*keys: str, bucket: str = "auction-scans") -> dict:
    """Wrap one S3 notification per key in an SNS envelope."""
    return {
        "Records": [
            {"Sns": {"TopicArn": "arn:aws:sns:us-east-1:000000000000:scans",
                     "Message": json.dumps(s3_event(key, bucket=bucket))}}
            for key in keys
        ]
    }


@pytest.fixture
def make_s3_event():
    return s3_event


@pytest.fixture
def make_sns_event():
    return sns_event

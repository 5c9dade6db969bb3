"""
Trigger event models.

Only the fields ingestion reads are modelled; everything else in the AWS
payloads is ignored (``extra="ignore"``).

S3 event (history-load trigger, and the inner payload of the SNS trigger)::

    {"Records": [{"s3": {"bucket": {"name": "..."}, "object": {"key": "..."}}}]}

SNS event (live-ingest trigger)::

    {"Records": [{"Sns": {"Message": "<JSON-encoded S3 event>"}}]}
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _EventModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class S3Bucket(_EventModel):
    name: str


class S3Object(_EventModel):
    key: str


class S3Entity(_EventModel):
    bucket: S3Bucket
    object: S3Object


class S3EventRecord(_EventModel):
    s3: S3Entity


class S3Event(_EventModel):
    records: list[S3EventRecord] = Field(alias="Records")


class SnsMessage(_EventModel):
    message: str = Field(alias="Message")


class SnsEventRecord(_EventModel):
    sns: SnsMessage = Field(alias="Sns")


class SnsEvent(_EventModel):
    records: list[SnsEventRecord] = Field(alias="Records")


class S3ObjectRef(_EventModel):
    """One decoded file-change record: bucket plus unescaped object key."""

    bucket: str
    key: str

    @property
    def uri(self) -> str:
        return f"s3://{self.bucket}/{self.key}"

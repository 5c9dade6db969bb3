"""
Partition metadata encoded in history-load object keys.

Keys follow the Hive-style layout written by the export job::

    exports/interval=4/year=2024/month=1/day=15/hour=9/realm-4395.csv

Only the five fields below are ever consulted; every other segment is
ignored.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from auction_ingest.utils.time_utils import to_epoch_seconds

# Segment names, all required.
PARTITION_FIELDS: tuple[str, ...] = ("interval", "year", "month", "day", "hour")


class PartitionKey(BaseModel):
    """Snapshot interval and hour decoded from an object key.

    Attributes:
        interval: Sampling cadence / batch tag (signed 16-bit).
        year: Calendar year of the snapshot.
        month: Calendar month (1-12).
        day: Day of month.
        hour: Hour of day (0-23), UTC.
    """

    model_config = ConfigDict(frozen=True, strict=True)

    interval: int
    year: int
    month: int
    day: int
    hour: int

    @field_validator("interval")
    @classmethod
    def validate_interval(cls, v: int) -> int:
        if not -(2**15) <= v < 2**15:
            raise ValueError(f"interval={v} does not fit in a signed 16-bit integer.")
        return v

    @model_validator(mode="after")
    def validate_calendar(self) -> "PartitionKey":
        # month=13, hour=24, Feb 30 and post-2038 years all raise ValueError here.
        to_epoch_seconds(self.snapshot_at)
        return self

    @property
    def snapshot_at(self) -> datetime:
        """UTC datetime at the top of the partition's hour."""
        return datetime(self.year, self.month, self.day, self.hour, tzinfo=timezone.utc)

    @property
    def timestamp(self) -> int:
        """Epoch seconds of :attr:`snapshot_at`."""
        return to_epoch_seconds(self.snapshot_at)

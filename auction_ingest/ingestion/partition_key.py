"""
Object-key partition parser for history-load files.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from auction_ingest.errors import ParseError
from auction_ingest.ingestion.row_mapper import parse_int
from auction_ingest.models.partition import PARTITION_FIELDS, PartitionKey

logger = logging.getLogger(__name__)


def parse_partition_key(key: str) -> PartitionKey:
    """Decode ``interval``/``year``/``month``/``day``/``hour`` from an object key.

    The key is split on ``/`` and each segment on ``=``; segments that do not
    split into exactly two parts are ignored, as are names outside
    ``PARTITION_FIELDS``. When a name repeats, the last segment wins.

    Args:
        key: Already percent-decoded object key.

    Returns:
        Validated :class:`PartitionKey`.

    Raises:
        ParseError: If a field is missing, non-numeric, or the resulting
            date/hour does not exist.
    """
    segments: dict[str, str] = {}
    for component in key.split("/"):
        parts = component.split("=")
        if len(parts) == 2 and parts[0] in PARTITION_FIELDS:
            segments[parts[0]] = parts[1]

    missing = [name for name in PARTITION_FIELDS if name not in segments]
    if missing:
        raise ParseError(f"object key '{key}' is missing partition field(s): {missing}")

    values = {name: parse_int(segments[name], 64, name) for name in PARTITION_FIELDS}
    try:
        partition = PartitionKey(**values)
    except (ValidationError, ValueError, OverflowError) as exc:
        raise ParseError(f"object key '{key}' has invalid partition values: {exc}") from exc

    logger.debug(
        "Partition for %s: interval=%d snapshot_at=%s",
        key, partition.interval, partition.snapshot_at.isoformat(),
    )
    return partition

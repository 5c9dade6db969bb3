"""
CSV row → ``AuctionRecord`` mapping.

Two positional schemas exist, one per trigger:

Live ingest (13 columns)::

    timestamp, realmId, auctionHouseId, itemId,
    quantity, min, max, p05, p10, p25, p50, p75, p90

History load (12 columns, timestamp/interval come from the object key)::

    realmId, auctionHouseId, itemId,
    quantity, min, max, p05, p10, p25, p50, p75, p90

Parsing is strict: integers are plain base-10 with an optional sign and must
fit the column's declared width; timestamps must be RFC 3339. Any violation
raises :class:`~auction_ingest.errors.ParseError`, and the caller aborts the
whole file. Column count is not validated here beyond a short row failing
on the first missing column.
"""

from __future__ import annotations

import re
from typing import Sequence

from pydantic import ValidationError

from auction_ingest.errors import ParseError
from auction_ingest.models.auction import INT_BOUNDS, STAT_FIELDS, AuctionRecord
from auction_ingest.models.partition import PartitionKey
from auction_ingest.utils.time_utils import parse_rfc3339, to_epoch_seconds

LIVE_COLUMNS: tuple[str, ...] = (
    "timestamp", "realmId", "auctionHouseId", "itemId",
    "quantity", "min", "max", "p05", "p10", "p25", "p50", "p75", "p90",
)
HISTORY_COLUMNS: tuple[str, ...] = LIVE_COLUMNS[1:]

_DECIMAL_RE = re.compile(r"[+-]?[0-9]+")


def parse_int(value: str, bits: int, column: str) -> int:
    """Parse a base-10 integer that must fit in a signed ``bits``-wide field.

    Leading/trailing whitespace, underscores, decimal points and exponents
    are all rejected.

    Args:
        value: Raw CSV field.
        bits: Signed width (16, 32 or 64).
        column: Column name, used in the error message.

    Returns:
        The parsed integer.

    Raises:
        ParseError: If ``value`` is not a decimal integer or is out of range.
    """
    if not _DECIMAL_RE.fullmatch(value):
        raise ParseError(f"could not parse integer '{value}' for column '{column}'")
    result = int(value)
    low, high = INT_BOUNDS[bits]
    if not low <= result <= high:
        raise ParseError(
            f"value {result} for column '{column}' does not fit in {bits} bits"
        )
    return result


def parse_timestamp(value: str, column: str = "timestamp") -> int:
    """Parse an RFC 3339 date-time into 32-bit UTC epoch seconds.

    Raises:
        ParseError: On malformed text, impossible dates, or 32-bit overflow.
    """
    try:
        return to_epoch_seconds(parse_rfc3339(value))
    except ValueError as exc:
        raise ParseError(f"could not parse {column} '{value}': {exc}") from exc


def map_live_row(row: Sequence[str], interval: int = 1) -> AuctionRecord:
    """Map one live-ingest row (timestamp in column 0) to an ``AuctionRecord``.

    Args:
        row: CSV fields in ``LIVE_COLUMNS`` order.
        interval: Interval tag stamped on every live record.

    Raises:
        ParseError: If any column is missing or malformed.
    """
    timestamp = parse_timestamp(_column(row, 0, LIVE_COLUMNS))
    return _build_record(row, offset=1, columns=LIVE_COLUMNS, interval=interval, timestamp=timestamp)


def map_history_row(row: Sequence[str], partition: PartitionKey) -> AuctionRecord:
    """Map one history-load row using the file's partition timestamp/interval.

    Raises:
        ParseError: If any column is missing or malformed.
    """
    return _build_record(
        row,
        offset=0,
        columns=HISTORY_COLUMNS,
        interval=partition.interval,
        timestamp=partition.timestamp,
    )


# ── Private helpers ────────────────────────────────────────────────────────────

def _column(row: Sequence[str], index: int, columns: tuple[str, ...]) -> str:
    try:
        return row[index]
    except IndexError:
        raise ParseError(
            f"row has {len(row)} column(s); missing '{columns[index]}' at position {index}"
        ) from None


def _build_record(
    row: Sequence[str],
    offset: int,
    columns: tuple[str, ...],
    interval: int,
    timestamp: int,
) -> AuctionRecord:
    def field(index: int, bits: int) -> int:
        position = offset + index
        return parse_int(_column(row, position, columns), bits, columns[position])

    # Parse left to right so the reported error is the first bad column.
    realm_id = field(0, 16)
    auction_house_id = field(1, 16)
    item_id = field(2, 64)
    stats = {name: field(3 + i, 32) for i, name in enumerate(STAT_FIELDS)}
    try:
        return AuctionRecord(
            realm_id=realm_id,
            auction_house_id=auction_house_id,
            item_id=item_id,
            interval=interval,
            timestamp=timestamp,
            **stats,
        )
    except ValidationError as exc:
        raise ParseError(f"invalid auction record: {exc}") from exc

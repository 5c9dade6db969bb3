"""
Auction CSV file reader.

Reads a header line followed by data rows from any text stream (an S3
streaming body wrapped in a decoder, or a local file), maps each row with a
caller-supplied row mapper, and stops at the first failure.

The outcome is an explicit per-file result rather than an exception so the
orchestrator decides what to do with a failed file::

    outcome = read_auction_csv(stream, map_live_row)
    if isinstance(outcome, ParseFailure):
        raise ParseError(outcome.describe())
    records = outcome.records

Row handling:
  - The first line is the header and is discarded. A first line that the
    row mapper accepts is a data row, which means the header is missing.
  - Blank lines are skipped.
  - Every data row must have the same number of fields as the header.
  - The first row that fails the mapper ends reading; later rows are never
    consumed.
"""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Sequence, Union

from auction_ingest.errors import ParseError
from auction_ingest.models.auction import AuctionRecord

logger = logging.getLogger(__name__)

RowMapper = Callable[[Sequence[str]], AuctionRecord]


@dataclass(frozen=True)
class ParseSuccess:
    """Every data row mapped cleanly.

    Attributes:
        records: Mapped records in file order.
        header: Column names from the discarded header line.
    """

    records: list[AuctionRecord]
    header: list[str] = field(default_factory=list)

    @property
    def item_ids(self) -> list[int]:
        """Item id of every record, duplicates included."""
        return [record.item_id for record in self.records]


@dataclass(frozen=True)
class ParseFailure:
    """Reading stopped at the first bad line.

    Attributes:
        reason: Human-readable cause.
        line_no: 1-based physical line number where reading failed
            (``1`` is the header).
        rows_mapped: Rows successfully mapped before the failure; these are
            discarded, never persisted.
    """

    reason: str
    line_no: int
    rows_mapped: int = 0

    def describe(self) -> str:
        return f"line {self.line_no}: {self.reason}"


ParseOutcome = Union[ParseSuccess, ParseFailure]


def read_auction_csv(lines: Iterable[str], map_row: RowMapper) -> ParseOutcome:
    """Read a header plus data rows and map every row.

    Args:
        lines: Text lines (file object, decoded stream, or list of strings).
        map_row: Row mapper, e.g. ``map_live_row`` or a
            ``functools.partial`` of ``map_history_row``.

    Returns:
        :class:`ParseSuccess` with all records, or :class:`ParseFailure`
        describing the first problem.
    """
    reader = csv.reader(lines, strict=True)

    try:
        header = _next_non_blank(reader)
    except (csv.Error, UnicodeDecodeError) as exc:
        return ParseFailure(reason=f"failed to read CSV header: {exc}", line_no=reader.line_num)
    if header is None:
        return ParseFailure(reason="failed to read CSV header: file is empty", line_no=1)
    if _is_data_row(header, map_row):
        return ParseFailure(
            reason="failed to read CSV header: first line is a data row",
            line_no=reader.line_num,
        )

    records: list[AuctionRecord] = []
    while True:
        try:
            row = _next_non_blank(reader)
        except (csv.Error, UnicodeDecodeError) as exc:
            return ParseFailure(
                reason=f"error reading CSV file: {exc}",
                line_no=reader.line_num,
                rows_mapped=len(records),
            )
        if row is None:
            break

        if len(row) != len(header):
            return ParseFailure(
                reason=f"wrong number of fields: expected {len(header)}, got {len(row)}",
                line_no=reader.line_num,
                rows_mapped=len(records),
            )

        try:
            records.append(map_row(row))
        except ParseError as exc:
            return ParseFailure(
                reason=f"error mapping row to auction: {exc}",
                line_no=reader.line_num,
                rows_mapped=len(records),
            )

    logger.debug("Mapped %d row(s) under header %s", len(records), header)
    return ParseSuccess(records=records, header=header)


def _is_data_row(row: list[str], map_row: RowMapper) -> bool:
    """A header that maps cleanly is really the first data row."""
    try:
        map_row(row)
    except ParseError:
        return False
    return True


def _next_non_blank(reader) -> list[str] | None:
    for row in reader:
        if row:
            return row
    return None

"""
New-item fan-out gateway.

New item ids are sent to one SQS queue as ``SendMessageBatch`` calls of at
most 10 entries. Each entry's ``Id`` and ``MessageBody`` are the decimal
item id, so consumers need no JSON decoding.
"""

from __future__ import annotations

import logging
from typing import Any, Iterator, Optional, Protocol, Sequence

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from auction_ingest.errors import TransportError

logger = logging.getLogger(__name__)

MAX_BATCH_SIZE = 10


class ItemIdPublisher(Protocol):
    """Publishes newly discovered item ids to downstream consumers."""

    def publish_item_ids(self, item_ids: Sequence[int]) -> int: ...


def chunked(values: Sequence[int], size: int) -> Iterator[list[int]]:
    """Split ``values`` into consecutive lists of at most ``size`` elements."""
    if size < 1:
        raise ValueError(f"size must be >= 1, got {size}.")
    for start in range(0, len(values), size):
        yield list(values[start:start + size])


class SqsItemIdPublisher:
    """Sends item ids to an SQS queue in batches.

    Args:
        queue_url: Target queue URL (required).
        client: A boto3 SQS client. Built from ``region`` when omitted.
        region: AWS region for the default client.
        batch_size: Entries per ``SendMessageBatch`` call (1-10).

    Raises:
        ValueError: If ``queue_url`` is empty or ``batch_size`` is out of range.
    """

    def __init__(
        self,
        queue_url: str,
        client: Optional[Any] = None,
        region: Optional[str] = None,
        batch_size: int = MAX_BATCH_SIZE,
    ) -> None:
        if not queue_url:
            raise ValueError("queue_url is required; set NEW_ITEM_QUEUE_URL.")
        if not 1 <= batch_size <= MAX_BATCH_SIZE:
            raise ValueError(f"batch_size must be in [1, {MAX_BATCH_SIZE}], got {batch_size}.")
        self.queue_url = queue_url
        self.batch_size = batch_size
        self.client = client or boto3.client("sqs", region_name=region)

    def publish_item_ids(self, item_ids: Sequence[int]) -> int:
        """Send every id, one batch call per group of ``batch_size``.

        Stops at the first failed batch; earlier batches are not rolled back.

        Returns:
            Number of batch calls made.

        Raises:
            TransportError: If a call fails or SQS reports failed entries.
        """
        batches = 0
        for batch in chunked(item_ids, self.batch_size):
            self._send_batch(batch)
            batches += 1
        return batches

    def _send_batch(self, batch: list[int]) -> None:
        entries = [{"Id": str(item_id), "MessageBody": str(item_id)} for item_id in batch]
        try:
            response = self.client.send_message_batch(QueueUrl=self.queue_url, Entries=entries)
        except (ClientError, BotoCoreError) as exc:
            raise TransportError(
                f"error occurred while sending message to queue: {exc}"
            ) from exc

        failed = response.get("Failed") or []
        if failed:
            detail = ", ".join(
                f"{f.get('Id')}: {f.get('Code')} {f.get('Message', '')}".strip() for f in failed
            )
            raise TransportError(
                f"queue rejected {len(failed)} of {len(entries)} message(s): {detail}"
            )
        logger.debug("Sent batch of %d item id(s) to %s", len(entries), self.queue_url)

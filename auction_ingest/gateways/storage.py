"""
S3 object download gateway.
"""

from __future__ import annotations

import codecs
import logging
from contextlib import closing, contextmanager
from typing import Any, ContextManager, Generator, Iterator, Optional, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from auction_ingest.errors import TransportError
from auction_ingest.models.events import S3ObjectRef

logger = logging.getLogger(__name__)


class ObjectStore(Protocol):
    """Opens an object as a stream of decoded text lines."""

    def open_text(self, ref: S3ObjectRef) -> ContextManager[Iterator[str]]: ...


class S3ObjectStore:
    """Streams CSV objects out of S3.

    Args:
        client: A boto3 S3 client. Built from ``region`` when omitted.
        region: AWS region for the default client.
        encoding: Text encoding of stored objects.
    """

    def __init__(
        self,
        client: Optional[Any] = None,
        region: Optional[str] = None,
        encoding: str = "utf-8",
    ) -> None:
        self.client = client or boto3.client("s3", region_name=region)
        self.encoding = encoding

    @contextmanager
    def open_text(self, ref: S3ObjectRef) -> Generator[Iterator[str], None, None]:
        """Yield the object's content as an iterator of text lines.

        The body is read lazily and closed when the block exits, on success
        or failure.

        Raises:
            TransportError: If the object cannot be fetched (missing key,
                access denied, network failure).
        """
        try:
            response = self.client.get_object(Bucket=ref.bucket, Key=ref.key)
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "Unknown")
            raise TransportError(f"error downloading file {ref.uri} [{code}]: {exc}") from exc
        except BotoCoreError as exc:
            raise TransportError(f"error downloading file {ref.uri}: {exc}") from exc

        body = response["Body"]
        logger.debug(
            "Opened %s (%s bytes)", ref.uri, response.get("ContentLength", "unknown")
        )
        with closing(body):
            yield _decoded_lines(codecs.getreader(self.encoding)(body), ref)


def _decoded_lines(reader: codecs.StreamReader, ref: S3ObjectRef) -> Iterator[str]:
    """Iterate decoded lines, surfacing mid-stream network errors as TransportError."""
    try:
        yield from reader
    except (BotoCoreError, ClientError) as exc:
        raise TransportError(f"error reading file {ref.uri}: {exc}") from exc

"""
Trigger event decoding — turn raw Lambda event dicts into ``S3ObjectRef``s.

History load receives the S3 notification directly. Live ingest receives an
SNS notification whose ``Message`` is the S3 notification serialized as a
JSON string, so one extra level of decoding is needed.

Object keys in S3 notifications are URL-encoded (``=`` → ``%3D``, spaces →
``+``) and are unescaped here before anyone looks at them.
"""

from __future__ import annotations

import logging
import re
from typing import Any
from urllib.parse import unquote_plus

from pydantic import ValidationError

from auction_ingest.errors import DecodeError
from auction_ingest.models.events import S3Event, S3ObjectRef, SnsEvent

logger = logging.getLogger(__name__)


# A '%' not followed by two hex digits is a malformed escape.
_BAD_ESCAPE_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def decode_object_key(raw_key: str) -> str:
    """Percent-decode an S3 notification object key.

    Raises:
        DecodeError: If the key holds a malformed ``%`` escape or the
            escaped bytes are not valid UTF-8.
    """
    if _BAD_ESCAPE_RE.search(raw_key):
        raise DecodeError(f"error decoding S3 object key '{raw_key}': invalid percent escape")
    try:
        return unquote_plus(raw_key, errors="strict")
    except UnicodeDecodeError as exc:
        raise DecodeError(f"error decoding S3 object key '{raw_key}': {exc}") from exc


def decode_s3_event(event: Any) -> list[S3ObjectRef]:
    """Decode an S3 notification into one ``S3ObjectRef`` per record.

    Raises:
        DecodeError: If the payload is not an S3 notification or has no records.
    """
    try:
        parsed = S3Event.model_validate(event)
    except ValidationError as exc:
        raise DecodeError(f"error decoding S3 event: {exc}") from exc
    return _refs_from(parsed)


def decode_sns_event(event: Any) -> list[S3ObjectRef]:
    """Unwrap every SNS record's JSON message and decode the S3 notification inside.

    Raises:
        DecodeError: If the envelope or any inner message is malformed.
    """
    try:
        envelope = SnsEvent.model_validate(event)
    except ValidationError as exc:
        raise DecodeError(f"error decoding SNS event: {exc}") from exc

    refs: list[S3ObjectRef] = []
    for sns_record in envelope.records:
        try:
            inner = S3Event.model_validate_json(sns_record.sns.message)
        except ValidationError as exc:
            raise DecodeError(f"error unmarshalling SNS message: {exc}") from exc
        refs.extend(_refs_from(inner))
    return refs


def _refs_from(event: S3Event) -> list[S3ObjectRef]:
    if not event.records:
        raise DecodeError("S3 event contains no records")
    refs = [
        S3ObjectRef(bucket=record.s3.bucket.name, key=decode_object_key(record.s3.object.key))
        for record in event.records
    ]
    logger.debug("Decoded %d object reference(s): %s", len(refs), [r.uri for r in refs])
    return refs

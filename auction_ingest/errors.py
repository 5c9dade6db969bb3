"""
Exception taxonomy for ingestion failures.

Every class is fatal to the current invocation. Retry and dead-letter policy
lives in the Lambda trigger configuration, not here.

  DecodeError     — malformed event envelope or object key encoding
  TransportError  — S3 download, database I/O, or SQS send failure
  ParseError      — CSV structure, numeric, timestamp, or partition-key parse failure
"""

from __future__ import annotations


class IngestError(Exception):
    """Base class for all ingestion failures."""


class DecodeError(IngestError):
    """The trigger event or object key could not be decoded."""


class TransportError(IngestError):
    """An external collaborator (S3, database, SQS) failed."""


class ParseError(IngestError):
    """Input data did not match the expected CSV, numeric or time format."""

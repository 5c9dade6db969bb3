"""
Time helpers for snapshot timestamps.

All timestamps stored by auction-ingest are UTC epoch seconds that must fit
in a signed 32-bit column.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone

INT32_MAX = 2**31 - 1
INT32_MIN = -(2**31)

# RFC 3339 date-time: full date, 'T', full time, optional fraction, mandatory offset.
_RFC3339_RE = re.compile(
    r"\d{4}-\d{2}-\d{2}[Tt]\d{2}:\d{2}:\d{2}(\.\d+)?([Zz]|[+-]\d{2}:\d{2})",
    re.ASCII,
)


def is_rfc3339(value: str) -> bool:
    """Return ``True`` if ``value`` has RFC 3339 date-time shape."""
    return bool(_RFC3339_RE.fullmatch(value))


def parse_rfc3339(value: str) -> datetime:
    """Parse an RFC 3339 date-time string into an aware ``datetime``.

    Raises:
        ValueError: If ``value`` is not RFC 3339 or names an impossible date.
    """
    if not is_rfc3339(value):
        raise ValueError(f"'{value}' is not an RFC 3339 date-time.")
    normalized = value.upper()
    if normalized.endswith("Z"):
        normalized = normalized[:-1] + "+00:00"
    return datetime.fromisoformat(normalized)


def to_epoch_seconds(moment: datetime) -> int:
    """Whole UTC seconds since the epoch, flooring any fractional part.

    Raises:
        ValueError: If ``moment`` is naive or falls outside the 32-bit range.
    """
    if moment.tzinfo is None:
        raise ValueError("Naive datetimes are not accepted; attach a timezone.")
    delta = moment - datetime(1970, 1, 1, tzinfo=timezone.utc)
    seconds = delta.days * 86_400 + delta.seconds
    if not INT32_MIN <= seconds <= INT32_MAX:
        raise ValueError(f"Timestamp {seconds} does not fit in 32 bits.")
    return seconds


def utcnow() -> datetime:
    """Return the current UTC datetime with timezone info."""
    return datetime.now(tz=timezone.utc)

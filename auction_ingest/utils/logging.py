"""
Logging setup for auction-ingest.

``configure_logging(config)`` runs once per process: at CLI entry, or on
the first invocation of a warm Lambda environment. Library modules only
ever call ``logging.getLogger(__name__)``.

Every record carries an ``invocation_id`` attribute. Stages wrap their work
in ``bind_invocation(summary.invocation_id)`` so all lines emitted while a
file is processed, including those from the gateways, can be correlated
with the Lambda request id. Outside a bound block the attribute is ``"-"``.

Text format::

    2026-02-24T15:00:00Z [INFO] auction_ingest.pipeline.base [9f1c...]: downloading file ...

JSON format (``json_format = true`` under ``[logging]``), one object per
line for CloudWatch Logs Insights::

    {"ts": "...", "level": "INFO", "logger": "...", "invocation_id": "...", "msg": "..."}
"""

from __future__ import annotations

import json
import logging
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from auction_ingest.config import LoggingConfig

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s [%(invocation_id)s]: %(message)s"
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# AWS SDK loggers are chatty at DEBUG (every HTTP header and retry).
AWS_LOGGERS = ("boto3", "botocore", "s3transfer", "urllib3")

_UNBOUND = "-"
_invocation_id: ContextVar[str] = ContextVar("invocation_id", default=_UNBOUND)

_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
    "invocation_id",
}


@contextmanager
def bind_invocation(invocation_id: str) -> Iterator[None]:
    """Tag every log record emitted inside the block with ``invocation_id``."""
    token = _invocation_id.set(invocation_id)
    try:
        yield
    finally:
        _invocation_id.reset(token)


class InvocationFilter(logging.Filter):
    """Copy the bound invocation id onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.invocation_id = _invocation_id.get()
        return True


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record; ``extra=`` fields are merged at top level."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict = {
            "ts": created.strftime(TIMESTAMP_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "invocation_id": getattr(record, "invocation_id", _UNBOUND),
            "msg": record.getMessage(),
        }
        payload.update(
            (key, val)
            for key, val in vars(record).items()
            if key not in _STANDARD_ATTRS and not key.startswith("_")
        )
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(config: "LoggingConfig") -> None:
    """Install stdout (and optional file) handlers on the root logger.

    ``force=True`` drops whatever handler the Lambda runtime installed
    before the module was imported, so records are not emitted twice.

    Args:
        config: ``[logging]`` section of ``AppConfig``.
    """
    level = logging.getLevelName(config.level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    formatter: logging.Formatter
    if config.json_format:
        formatter = JsonLineFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT, datefmt=TIMESTAMP_FORMAT)
        formatter.converter = time.gmtime

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    invocation_filter = InvocationFilter()
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(invocation_filter)

    logging.basicConfig(level=level, handlers=handlers, force=True)

    for name in AWS_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

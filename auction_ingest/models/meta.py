"""
Invocation audit record.

``InvocationSummary`` is the **only** model in the package that is NOT
frozen — its counters, ``status``, ``error_message`` and ``finished_at``
are updated while the stage runs. It is returned to the Lambda runtime (so
it shows up in the invocation result) and logged; it is not persisted.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

VALID_STAGES = frozenset({"live_ingest", "history_load"})
VALID_STATUSES = frozenset({"started", "success", "failed"})


class InvocationSummary(BaseModel):
    """Progress and outcome of one handler invocation.

    Attributes:
        invocation_id: UUID4 string (or the Lambda request id) for log correlation.
        stage: Which stage handled the event.
        status: Current execution status.
        files_processed: Files fully written so far.
        records_written: Auction records handed to ``insert_auctions``.
        new_item_ids: Item ids published to the fan-out queue.
        error_message: Error description if ``status == "failed"``.
        started_at: UTC datetime when the invocation began.
        finished_at: UTC datetime when it completed or failed.
    """

    model_config = ConfigDict(frozen=False)

    invocation_id: str
    stage: str
    status: str = "started"
    files_processed: int = 0
    records_written: int = 0
    new_item_ids: list[int] = []
    error_message: Optional[str] = None
    started_at: datetime
    finished_at: Optional[datetime] = None

    @field_validator("stage")
    @classmethod
    def validate_stage(cls, v: str) -> str:
        if v not in VALID_STAGES:
            raise ValueError(f"Unknown stage '{v}'. Must be one of {sorted(VALID_STAGES)}.")
        return v

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        if v not in VALID_STATUSES:
            raise ValueError(f"Unknown status '{v}'. Must be one of {sorted(VALID_STATUSES)}.")
        return v

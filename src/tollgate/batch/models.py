"""Batch session status, snapshot, and verdict models."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class BatchStatus(StrEnum):
    """Batch session lifecycle state."""

    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        """Return True for states that accept no further updates."""
        return self is not BatchStatus.ACTIVE


class VerdictStatus(StrEnum):
    """Outcome reported when a batch session is completed."""

    SUCCESS = "success"
    FAILED = "failed"


def success_rate(valid: int, total: int) -> float:
    """Return valid/total as a percentage; zero records rate 0%."""
    if total == 0:
        return 0.0
    return valid / total * 100


class BatchSnapshot(BaseModel):
    """Point-in-time copy of one batch session's counters and status."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    batch_id: str
    model_type: str | None = None
    threshold: float | None = None
    total_records: int = 0
    valid_records: int = 0
    invalid_records: int = 0
    warning_count: int = 0
    status: BatchStatus = BatchStatus.ACTIVE
    created_at: datetime
    last_updated_at: datetime
    completed_at: datetime | None = None

    @property
    def success_rate(self) -> float:
        """Percentage of valid records."""
        return success_rate(self.valid_records, self.total_records)


class BatchVerdict(BaseModel):
    """Final pass/fail resolution of a batch session."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    batch_id: str
    status: VerdictStatus
    session_status: BatchStatus
    success_rate: float
    threshold: float | None = None
    total_records: int
    valid_records: int
    invalid_records: int
    warning_count: int
    completed_at: datetime

    @property
    def passed(self) -> bool:
        """Return True when the verdict is success."""
        return self.status is VerdictStatus.SUCCESS

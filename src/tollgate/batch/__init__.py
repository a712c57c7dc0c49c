"""Batch session tracking and threshold verdicts."""

from tollgate.batch.manager import BatchSessionManager, generate_batch_id
from tollgate.batch.models import (
    BatchSnapshot,
    BatchStatus,
    BatchVerdict,
    VerdictStatus,
    success_rate,
)

__all__ = [
    "BatchSessionManager",
    "BatchSnapshot",
    "BatchStatus",
    "BatchVerdict",
    "VerdictStatus",
    "generate_batch_id",
    "success_rate",
]

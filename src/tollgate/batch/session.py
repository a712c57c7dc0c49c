"""Mutable batch session guarded by its own lock."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta
from threading import Lock

from tollgate.batch.models import (
    BatchSnapshot,
    BatchStatus,
    BatchVerdict,
    VerdictStatus,
    success_rate,
)
from tollgate.errors import AlreadyCompletedError


class BatchSession:
    """Counters and status for one batch.

    Every read and write of counters or status happens under ``_lock``;
    the manager's map lock never guards session state.
    """

    def __init__(
        self,
        batch_id: str,
        *,
        threshold: float | None,
        model_type: str | None,
        clock: Callable[[], datetime],
    ) -> None:
        """Create an active session with zeroed counters."""
        self.batch_id = batch_id
        self.threshold = threshold
        self.model_type = model_type
        self._clock = clock
        self._lock = Lock()
        self._total = 0
        self._valid = 0
        self._invalid = 0
        self._warnings = 0
        self._status = BatchStatus.ACTIVE
        self._created_at = clock()
        self._updated_at = self._created_at
        self._completed_at: datetime | None = None

    def accumulate(self, valid: int, invalid: int, warnings: int) -> None:
        """Add deltas atomically.

        Raises:
            AlreadyCompletedError: If the session is terminal.
        """
        with self._lock:
            if self._status.terminal:
                raise AlreadyCompletedError(self.batch_id, self._status)
            self._valid += valid
            self._invalid += invalid
            self._total += valid + invalid
            self._warnings += warnings
            self._updated_at = self._clock()

    def complete(self) -> BatchVerdict:
        """Resolve the verdict and move to a terminal state.

        Raises:
            AlreadyCompletedError: If the session is already terminal.
        """
        with self._lock:
            if self._status.terminal:
                raise AlreadyCompletedError(self.batch_id, self._status)
            rate = success_rate(self._valid, self._total)
            passed = self.threshold is None or rate >= self.threshold
            self._status = BatchStatus.COMPLETED if passed else BatchStatus.FAILED
            now = self._clock()
            self._completed_at = now
            self._updated_at = now
            return BatchVerdict(
                batch_id=self.batch_id,
                status=VerdictStatus.SUCCESS if passed else VerdictStatus.FAILED,
                session_status=self._status,
                success_rate=rate,
                threshold=self.threshold,
                total_records=self._total,
                valid_records=self._valid,
                invalid_records=self._invalid,
                warning_count=self._warnings,
                completed_at=now,
            )

    def snapshot(self) -> BatchSnapshot:
        """Return a consistent copy of counters and status."""
        with self._lock:
            return BatchSnapshot(
                batch_id=self.batch_id,
                model_type=self.model_type,
                threshold=self.threshold,
                total_records=self._total,
                valid_records=self._valid,
                invalid_records=self._invalid,
                warning_count=self._warnings,
                status=self._status,
                created_at=self._created_at,
                last_updated_at=self._updated_at,
                completed_at=self._completed_at,
            )

    def expired(self, now: datetime, grace: timedelta) -> bool:
        """Return True once a terminal session has outlived its grace period."""
        with self._lock:
            return (
                self._completed_at is not None and now - self._completed_at > grace
            )

    def idle(self, now: datetime, ttl: timedelta) -> bool:
        """Return True for an active session not updated within ttl."""
        with self._lock:
            return self._status is BatchStatus.ACTIVE and now - self._updated_at > ttl

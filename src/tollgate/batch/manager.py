"""Batch session manager with scheduled post-completion cleanup."""

from __future__ import annotations

import logging
import secrets
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from threading import Lock
from types import TracebackType
from typing import Self

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

from tollgate.batch.models import BatchSnapshot, BatchVerdict
from tollgate.batch.session import BatchSession
from tollgate.config.settings import BatchSettings
from tollgate.errors import (
    BatchNotFoundError,
    DuplicateBatchError,
    InvalidThresholdError,
)

_LOGGER = logging.getLogger(__name__)

_SWEEP_JOB_ID = "batch:sweep"
_EXPIRE_JOB_PREFIX = "batch:expire:"


def _utc_now() -> datetime:
    return datetime.now(UTC)


def generate_batch_id(prefix: str = "batch") -> str:
    """Return a fresh batch id of the form ``<prefix>_<16 hex chars>``."""
    return f"{prefix}_{secrets.token_hex(8)}"


class BatchSessionManager:
    """Track in-flight batch sessions and resolve their verdicts.

    The map lock guards only insertion, lookup, and removal of entries.
    Counters live behind each session's own lock, so accumulation on one
    batch never contends with work on another.

    Completed sessions stay queryable for ``grace_period_seconds``. After
    that they are treated as absent by every lookup, and the background
    scheduler removes them from the map. Active sessions not updated for
    ``idle_ttl_seconds`` are dropped by the periodic sweep.
    """

    def __init__(
        self,
        *,
        grace_period_seconds: float = 2.0,
        idle_ttl_seconds: float = 1800.0,
        sweep_interval_seconds: float = 300.0,
        id_prefix: str = "batch",
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """Create manager.

        Args:
            grace_period_seconds: How long completed sessions stay queryable.
            idle_ttl_seconds: Idle time after which active sessions are swept.
            sweep_interval_seconds: Interval between background sweeps.
            id_prefix: Prefix for generated batch ids.
            clock: Source of the current UTC time.
        """
        self._grace = timedelta(seconds=grace_period_seconds)
        self._idle_ttl = timedelta(seconds=idle_ttl_seconds)
        self._sweep_interval = sweep_interval_seconds
        self._id_prefix = id_prefix
        self._clock = clock
        self._sessions: dict[str, BatchSession] = {}
        self._lock = Lock()
        self._scheduler = BackgroundScheduler(
            timezone=UTC,
            job_defaults={"coalesce": True, "max_instances": 1},
        )
        self._scheduler_lock = Lock()
        self._started = False

    @classmethod
    def from_settings(
        cls, settings: BatchSettings, *, clock: Callable[[], datetime] = _utc_now
    ) -> Self:
        """Create manager from batch settings."""
        return cls(
            grace_period_seconds=settings.grace_period_seconds,
            idle_ttl_seconds=settings.idle_ttl_seconds,
            sweep_interval_seconds=settings.sweep_interval_seconds,
            id_prefix=settings.id_prefix,
            clock=clock,
        )

    def start(self) -> None:
        """Start the background cleanup scheduler."""
        with self._scheduler_lock:
            if self._started:
                return
            self._scheduler.start(paused=False)
            self._scheduler.add_job(
                self.sweep,
                trigger=IntervalTrigger(seconds=self._sweep_interval),
                id=_SWEEP_JOB_ID,
                replace_existing=True,
            )
            self._started = True

    def shutdown(self) -> None:
        """Stop the background cleanup scheduler if running."""
        with self._scheduler_lock:
            if not self._started:
                return
            self._scheduler.shutdown(wait=True)
            self._started = False

    def __enter__(self) -> Self:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.shutdown()

    def start_session(
        self,
        batch_id: str | None = None,
        threshold: float | None = None,
        *,
        model_type: str | None = None,
    ) -> BatchSnapshot:
        """Open a new active session with zeroed counters.

        Args:
            batch_id: Caller-chosen id, or None to generate one.
            threshold: Minimum success percentage, or None for no gating.
            model_type: Optional model type the batch validates.

        Returns:
            Snapshot of the new session.

        Raises:
            InvalidThresholdError: If threshold is outside 0-100.
            DuplicateBatchError: If batch_id is held by a live session.
        """
        if threshold is not None and not 0 <= threshold <= 100:
            raise InvalidThresholdError(threshold)
        with self._lock:
            if batch_id is None:
                batch_id = generate_batch_id(self._id_prefix)
                while batch_id in self._sessions:
                    batch_id = generate_batch_id(self._id_prefix)
            elif self._live(batch_id) is not None:
                raise DuplicateBatchError(batch_id)
            session = BatchSession(
                batch_id,
                threshold=threshold,
                model_type=model_type,
                clock=self._clock,
            )
            self._sessions[batch_id] = session
        _LOGGER.info("Started batch %s (threshold=%s)", batch_id, threshold)
        return session.snapshot()

    def accumulate(
        self,
        batch_id: str,
        valid: int = 0,
        invalid: int = 0,
        warnings: int = 0,
    ) -> None:
        """Add validation outcome deltas to a session.

        Raises:
            ValueError: If any delta is negative.
            BatchNotFoundError: If the session is unknown or expired.
            AlreadyCompletedError: If the session is terminal.
        """
        if valid < 0 or invalid < 0 or warnings < 0:
            raise ValueError("Batch deltas must be non-negative")
        self._require(batch_id).accumulate(valid, invalid, warnings)

    def get_session(self, batch_id: str) -> BatchSnapshot:
        """Return a snapshot of a session.

        Raises:
            BatchNotFoundError: If the session is unknown or expired.
        """
        return self._require(batch_id).snapshot()

    def complete(self, batch_id: str) -> BatchVerdict:
        """Finalize a session and schedule its removal.

        Raises:
            BatchNotFoundError: If the session is unknown or expired.
            AlreadyCompletedError: If the session was already completed.
        """
        session = self._require(batch_id)
        verdict = session.complete()
        _LOGGER.info(
            "Completed batch %s: %s (%.2f%% of %d, threshold=%s)",
            batch_id,
            verdict.status,
            verdict.success_rate,
            verdict.total_records,
            verdict.threshold,
        )
        self._schedule_expiry(session)
        return verdict

    def sweep(self) -> int:
        """Remove expired completed sessions and idle active sessions.

        Returns:
            Number of sessions removed.
        """
        now = self._clock()
        removed: list[str] = []
        with self._lock:
            for batch_id, session in list(self._sessions.items()):
                if session.expired(now, self._grace) or session.idle(
                    now, self._idle_ttl
                ):
                    del self._sessions[batch_id]
                    removed.append(batch_id)
        for batch_id in removed:
            _LOGGER.debug("Swept batch %s", batch_id)
        return len(removed)

    def batch_ids(self) -> tuple[str, ...]:
        """Return ids of live sessions."""
        now = self._clock()
        with self._lock:
            return tuple(
                batch_id
                for batch_id, session in self._sessions.items()
                if not session.expired(now, self._grace)
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _require(self, batch_id: str) -> BatchSession:
        with self._lock:
            session = self._live(batch_id)
        if session is None:
            raise BatchNotFoundError(batch_id)
        return session

    def _live(self, batch_id: str) -> BatchSession | None:
        # Caller holds self._lock.
        session = self._sessions.get(batch_id)
        if session is not None and session.expired(self._clock(), self._grace):
            del self._sessions[batch_id]
            _LOGGER.debug("Expired batch %s", batch_id)
            return None
        return session

    def _schedule_expiry(self, session: BatchSession) -> None:
        with self._scheduler_lock:
            if not self._started:
                return
            self._scheduler.add_job(
                self._expire,
                trigger=DateTrigger(run_date=_utc_now() + self._grace, timezone=UTC),
                args=(session,),
                id=f"{_EXPIRE_JOB_PREFIX}{session.batch_id}",
                replace_existing=True,
            )

    def _expire(self, session: BatchSession) -> None:
        with self._lock:
            if self._sessions.get(session.batch_id) is session:
                del self._sessions[session.batch_id]
            else:
                return
        _LOGGER.debug("Removed completed batch %s", session.batch_id)

"""Shared-read / exclusive-write lock primitive."""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from threading import Condition, Lock


class ReadWriteLock:
    """Writer-preferring reader/writer lock.

    Any number of readers may hold the lock together. A writer waits for
    in-flight readers to drain and blocks new readers while it waits, so rare
    writes are not starved by a steady read load. Not reentrant.
    """

    def __init__(self) -> None:
        """Initialize unlocked state."""
        self._cond = Condition(Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    @contextmanager
    def read(self) -> Generator[None]:
        """Hold the lock in shared mode for the context body."""
        with self._cond:
            while self._writer or self._waiting_writers:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Generator[None]:
        """Hold the lock in exclusive mode for the context body."""
        with self._cond:
            self._waiting_writers += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._waiting_writers -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()

    @property
    def readers(self) -> int:
        """Number of readers currently holding the lock."""
        with self._cond:
            return self._readers

"""
Per-job locks for serializing webhook callbacks.

Page appends and state transitions for one job are read-modify-write on the
same row, so callbacks for the same job id run one at a time. Callbacks for
different jobs never contend.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class JobLockRegistry:
    """Hands out one reentrant lock per job id, dropping idle ones."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}
        self._holders: dict[str, int] = {}

    @contextmanager
    def hold(self, job_id: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(job_id, threading.RLock())
            self._holders[job_id] = self._holders.get(job_id, 0) + 1
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                self._holders[job_id] -= 1
                if self._holders[job_id] == 0:
                    del self._holders[job_id]
                    del self._locks[job_id]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

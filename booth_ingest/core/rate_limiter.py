"""
Process-wide spacing for completion-provider calls.

Extraction calls may come from several webhook handlers at once; the limiter
makes each caller wait until at least ``min_interval`` seconds have passed
since the previous call was let through.
"""

import logging
import threading
import time
from typing import Callable

logger = logging.getLogger(__name__)


class MinIntervalRateLimiter:
    def __init__(
        self,
        min_interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.min_interval = max(0.0, min_interval)
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._next_allowed = 0.0

    def wait(self) -> float:
        """Block until the next call is allowed; return the seconds waited."""
        with self._lock:
            now = self._clock()
            delay = max(0.0, self._next_allowed - now)
            self._next_allowed = max(now, self._next_allowed) + self.min_interval
        if delay > 0:
            logger.debug("Rate limiter sleeping %.2fs before completion call", delay)
            self._sleep(delay)
        return delay

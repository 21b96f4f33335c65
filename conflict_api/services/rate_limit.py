"""In-process sliding-window rate limiter keyed by client."""

import math
import threading
import time
from collections import deque
from collections.abc import Callable

# Full sweep of idle keys runs once per this many hits
DEFAULT_SWEEP_INTERVAL = 256


class SlidingWindowRateLimiter:
    """
    Allow at most max_attempts per key within window_seconds.

    Thread-safe; state lives in this process only, so limits are per worker.
    Keys with no attempts left in the window are dropped, so memory tracks
    recently active clients rather than every client ever seen.
    """

    def __init__(
        self,
        max_attempts: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval: int = DEFAULT_SWEEP_INTERVAL,
    ) -> None:
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self.sweep_interval = sweep_interval
        self._clock = clock
        self._hits: dict[str, deque[float]] = {}
        self._calls = 0
        self._lock = threading.Lock()

    def __len__(self) -> int:
        """Number of keys currently tracked."""
        with self._lock:
            return len(self._hits)

    def _prune(self, hits: deque[float], now: float) -> None:
        while hits and now - hits[0] >= self.window_seconds:
            hits.popleft()

    def _sweep(self, now: float) -> None:
        for key in list(self._hits):
            hits = self._hits[key]
            self._prune(hits, now)
            if not hits:
                del self._hits[key]

    def hit(self, key: str) -> int | None:
        """
        Record an attempt for key.

        Returns None if allowed, otherwise the whole seconds until the next
        attempt would be allowed. Rejected attempts are not recorded.
        """
        now = self._clock()
        with self._lock:
            self._calls += 1
            if self._calls % self.sweep_interval == 0:
                self._sweep(now)

            hits = self._hits.get(key)
            if hits is not None:
                self._prune(hits, now)
                if len(hits) >= self.max_attempts:
                    return max(1, math.ceil(self.window_seconds - (now - hits[0])))
            else:
                hits = self._hits[key] = deque()
            hits.append(now)
            return None

    def reset(self, key: str | None = None) -> None:
        with self._lock:
            if key is None:
                self._hits.clear()
            else:
                self._hits.pop(key, None)

"""In-process sliding window rate limiter.

Advisory only: counters live in memory and reset when the process restarts.
"""

import threading
import time
from collections import OrderedDict
from typing import Callable

_MAX_KEYS = 10000


class RateLimiter:
    """Sliding window rate limiter keyed by client identifier."""

    def __init__(
        self,
        max_requests: int = 60,
        window_seconds: int = 60,
        *,
        timer: Callable[[], float] = time.monotonic,
        max_keys: int = _MAX_KEYS,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._timer = timer
        self._max_keys = max_keys
        # ordered by last allowed hit, oldest first
        self._hits: "OrderedDict[str, list[float]]" = OrderedDict()
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self.max_requests > 0 and self.window_seconds > 0

    def hit(self, key: str) -> tuple[bool, int]:
        """Record a request for ``key``.

        Returns ``(allowed, remaining)``. Rejected requests are not counted.
        """
        if not self.enabled:
            return True, 0

        with self._lock:
            now = self._timer()
            cutoff = now - self.window_seconds
            hits = [t for t in self._hits.get(key, ()) if t > cutoff]

            if len(hits) >= self.max_requests:
                self._hits[key] = hits
                return False, 0

            hits.append(now)
            self._hits[key] = hits
            self._hits.move_to_end(key)

            if len(self._hits) > self._max_keys:
                self._prune(cutoff)

            return True, self.max_requests - len(hits)

    def __len__(self) -> int:
        return len(self._hits)

    def _prune(self, cutoff: float) -> None:
        while self._hits:
            key, hits = next(iter(self._hits.items()))
            if hits and hits[-1] > cutoff:
                break
            del self._hits[key]

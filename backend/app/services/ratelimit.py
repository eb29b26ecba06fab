from __future__ import annotations

import math
import time
from collections import defaultdict, deque
from collections.abc import Callable


class RateLimiter:
    """In-memory sliding window limiter for study log submissions."""

    def __init__(
        self,
        limit: int,
        window_seconds: float = 60.0,
        *,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.limit = max(int(limit), 1)
        self.window_seconds = window_seconds
        self._clock = clock or time.monotonic
        self._buckets: dict[str, deque[float]] = defaultdict(deque)

    def _prune(self, key: str, now: float) -> deque[float]:
        bucket = self._buckets[key]
        while bucket and now - bucket[0] >= self.window_seconds:
            bucket.popleft()
        return bucket

    def allow(self, key: str) -> bool:
        now = self._clock()
        bucket = self._prune(key, now)
        if len(bucket) >= self.limit:
            return False
        bucket.append(now)
        return True

    def retry_after(self, key: str) -> int:
        """Whole seconds until ``key`` may submit again; 0 when not limited."""

        now = self._clock()
        bucket = self._prune(key, now)
        if len(bucket) < self.limit:
            return 0
        return max(math.ceil(self.window_seconds - (now - bucket[0])), 1)


__all__ = ["RateLimiter"]

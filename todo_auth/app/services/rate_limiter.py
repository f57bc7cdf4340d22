import math
import time
from dataclasses import dataclass
from typing import Callable, Dict

# Buckets are swept once the table grows past this many keys
SWEEP_THRESHOLD = 1024


@dataclass
class _Bucket:
    tokens: float
    updated_at: float


class RateLimiter:
    """
    In-process token bucket per key.

    Each key holds up to ``limit`` permits, refilled evenly over
    ``per_seconds``. Keys should carry the scope and the caller identity,
    e.g. ``"auth:203.0.113.7"``.
    """

    def __init__(
        self,
        limit: int,
        per_seconds: int,
        clock: Callable[[], float] = time.monotonic,
    ):
        if limit < 1 or per_seconds < 1:
            raise ValueError("Rate limit and window must be positive")
        self.limit = limit
        self.per_seconds = per_seconds
        self.clock = clock
        self._buckets: Dict[str, _Bucket] = {}

    def allow(self, key: str) -> bool:
        now = self.clock()

        bucket = self._buckets.get(key)
        if bucket is None:
            bucket = _Bucket(tokens=float(self.limit), updated_at=now)
            self._buckets[key] = bucket

        bucket.tokens = self._refilled(bucket, now)
        bucket.updated_at = now
        if bucket.tokens < 1.0:
            return False
        bucket.tokens -= 1.0
        if len(self._buckets) > SWEEP_THRESHOLD:
            self._forget_full_buckets(now)
        return True

    def retry_after(self, key: str) -> int:
        """Whole seconds until ``key`` earns its next permit"""
        bucket = self._buckets.get(key)
        if bucket is None or bucket.tokens >= 1.0:
            return 0
        return max(1, math.ceil((1.0 - bucket.tokens) * self.per_seconds / self.limit))

    def __len__(self) -> int:
        return len(self._buckets)

    def _refilled(self, bucket: _Bucket, now: float) -> float:
        earned = (now - bucket.updated_at) * self.limit / self.per_seconds
        return min(float(self.limit), bucket.tokens + earned)

    def _forget_full_buckets(self, now: float) -> None:
        # A bucket that has refilled completely is the same as no bucket
        stale = [
            key for key, b in self._buckets.items() if self._refilled(b, now) >= self.limit
        ]
        for key in stale:
            del self._buckets[key]

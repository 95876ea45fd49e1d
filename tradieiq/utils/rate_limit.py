"""
Failed sign-in limiter for the local auth backends.

Token bucket per email: a bucket holds up to ``capacity`` failures'
worth of tokens and refills to full over ``per_seconds``. Each failed
sign-in spends one token; an empty bucket locks the email until a token
has refilled.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Optional


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Bucket:
    tokens: float
    last: datetime


class FailedAttemptLimiter:
    def __init__(
        self,
        capacity: int,
        per_seconds: float,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.capacity = capacity
        self.per_seconds = per_seconds
        self._clock = clock or _utc_now
        self._buckets: Dict[str, Bucket] = {}

    def _refill(self, key: str) -> Optional[Bucket]:
        bucket = self._buckets.get(key)
        if bucket is None:
            return None

        now = self._clock()
        elapsed = max(0.0, (now - bucket.last).total_seconds())
        if self.per_seconds > 0:
            bucket.tokens = min(self.capacity, bucket.tokens + elapsed * self.capacity / self.per_seconds)
        else:
            bucket.tokens = self.capacity
        bucket.last = now

        if bucket.tokens >= self.capacity:
            del self._buckets[key]
            return None
        return bucket

    def blocked(self, key: str) -> bool:
        """True while ``key`` has no token left to spend on another attempt."""
        if self.capacity <= 0:
            return False
        bucket = self._refill(key)
        return bucket is not None and bucket.tokens < 1

    def record_failure(self, key: str) -> None:
        if self.capacity <= 0:
            return
        bucket = self._refill(key)
        if bucket is None:
            bucket = Bucket(tokens=self.capacity, last=self._clock())
            self._buckets[key] = bucket
        bucket.tokens = max(0.0, bucket.tokens - 1)

    def reset(self, key: str) -> None:
        self._buckets.pop(key, None)


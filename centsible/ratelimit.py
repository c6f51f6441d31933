import math
import threading
import time
from dataclasses import dataclass

from flask import request

from .errors import RateLimited


@dataclass
class Bucket:
    tokens: float
    updated: float


class TokenBucketLimiter:
    """In-process token bucket per client address.

    Each address starts with ``capacity`` tokens and regains
    ``refill_rate`` tokens per second; a request spends one. Buckets idle
    long enough to have refilled are swept, so the table only holds
    recently active addresses.
    """

    def __init__(self, capacity=60, refill_rate=1.0, clock=time.monotonic):
        self.capacity = capacity
        self.refill_rate = refill_rate
        self.clock = clock
        self._buckets = {}
        self._lock = threading.Lock()
        # A bucket untouched this long is full again and can be forgotten.
        self._idle_after = capacity / refill_rate if refill_rate > 0 else None
        self._next_sweep = clock() + self._idle_after if self._idle_after is not None else None

    def consume(self, key):
        """Spend a token for ``key``; return seconds to wait, or 0 if allowed."""
        now = self.clock()
        with self._lock:
            if self._next_sweep is not None and now >= self._next_sweep:
                self._sweep(now)
            bucket = self._buckets.get(key)
            if bucket is None:
                bucket = self._buckets[key] = Bucket(tokens=self.capacity, updated=now)
            else:
                elapsed = now - bucket.updated
                bucket.tokens = min(self.capacity, bucket.tokens + elapsed * self.refill_rate)
                bucket.updated = now

            if bucket.tokens >= 1:
                bucket.tokens -= 1
                return 0
            if self.refill_rate <= 0:
                return 60
            return max(1, math.ceil((1 - bucket.tokens) / self.refill_rate))

    def _sweep(self, now):
        idle = [key for key, bucket in self._buckets.items()
                if now - bucket.updated >= self._idle_after]
        for key in idle:
            del self._buckets[key]
        self._next_sweep = now + self._idle_after

    def __len__(self):
        return len(self._buckets)

    def reset(self):
        with self._lock:
            self._buckets.clear()


def init_rate_limit(app, limiter):

    @app.before_request
    def limit_by_address():
        if not app.config['RATE_LIMIT_ENABLED']:
            return None
        retry_after = limiter.consume(request.remote_addr or 'unknown')
        if retry_after:
            raise RateLimited(retry_after)
        return None

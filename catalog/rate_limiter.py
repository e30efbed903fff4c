import math
import time
import threading
from collections import OrderedDict
from typing import Iterable

from fastapi import HTTPException, Request

from .logger import get_logger

logger = get_logger(__name__)

MAX_BUCKETS = 10000


class TokenBucket:
    def __init__(self, rate_per_minute=60, capacity=None):
        self.rate = rate_per_minute / 60.0  # tokens per second
        self.capacity = capacity or rate_per_minute
        self.tokens = self.capacity
        self.last = time.time()
        self.lock = threading.Lock()

    def acquire(self, tokens=1):
        with self.lock:
            now = time.time()
            # refill
            self.tokens = min(self.capacity, self.tokens + (now - self.last) * self.rate)
            self.last = now
            if self.tokens >= tokens:
                self.tokens -= tokens
                return True
            return False

    def retry_after(self, tokens=1) -> int:
        with self.lock:
            missing = max(0.0, tokens - self.tokens)
        return max(1, math.ceil(missing / self.rate))


class RateLimiter:
    """One bucket per client key (``X-API-Key`` header, else client IP).

    At most ``max_buckets`` keys are tracked. When the map is full, buckets
    idle for a whole refill window go first, then the least recently used.
    """

    def __init__(self, rate_per_minute: int = 100, whitelist: Iterable[str] = (), max_buckets: int = MAX_BUCKETS):
        self.rate_per_minute = rate_per_minute
        self.whitelist = set(whitelist)
        self.max_buckets = max(1, max_buckets)
        self.buckets: "OrderedDict[str, TokenBucket]" = OrderedDict()
        self.lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self.rate_per_minute > 0

    @staticmethod
    def key_for(request: Request) -> str:
        api_key = request.headers.get("X-API-Key")
        if api_key:
            return api_key
        return request.client.host if request.client else "anonymous"

    def bucket(self, key: str) -> TokenBucket:
        with self.lock:
            bucket = self.buckets.get(key)
            if bucket is not None:
                self.buckets.move_to_end(key)
                return bucket
            if len(self.buckets) >= self.max_buckets:
                self._evict(time.time())
            bucket = self.buckets[key] = TokenBucket(rate_per_minute=self.rate_per_minute)
            return bucket

    def _evict(self, now: float) -> None:
        # a bucket untouched for capacity / rate seconds is full again
        idle = [k for k, b in self.buckets.items() if now - b.last >= b.capacity / b.rate]
        for key in idle:
            del self.buckets[key]
        while len(self.buckets) >= self.max_buckets:
            self.buckets.popitem(last=False)
        if idle:
            logger.debug("Evicted %d idle rate limit buckets", len(idle))

    def check(self, request: Request) -> None:
        if not self.enabled:
            return
        key = self.key_for(request)
        if key in self.whitelist:
            return
        bucket = self.bucket(key)
        if not bucket.acquire():
            logger.warning("Rate limit exceeded for %s on %s", key, request.url.path)
            raise HTTPException(
                status_code=429,
                detail="Too many requests, please try again later",
                headers={"Retry-After": str(bucket.retry_after())},
            )


def rate_limit(request: Request) -> None:
    """FastAPI dependency applying the app's ``RateLimiter``."""
    limiter = getattr(request.app.state, "rate_limiter", None)
    if limiter is not None:
        limiter.check(request)

"""
Tests for the token bucket rate limiter.
"""

from catalog import rate_limiter
from catalog.rate_limiter import RateLimiter, TokenBucket


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def time(self):
        return self.now


class TestTokenBucket:
    def test_capacity_then_refill(self, monkeypatch):
        clock = FakeClock()
        monkeypatch.setattr(rate_limiter.time, "time", clock.time)
        bucket = TokenBucket(rate_per_minute=60)

        assert all(bucket.acquire() for _ in range(60))
        assert not bucket.acquire()
        assert bucket.retry_after() == 1

        clock.now += 2
        assert bucket.acquire()
        assert bucket.acquire()
        assert not bucket.acquire()

    def test_retry_after_scales_with_rate(self, monkeypatch):
        clock = FakeClock()
        monkeypatch.setattr(rate_limiter.time, "time", clock.time)
        bucket = TokenBucket(rate_per_minute=6)

        for _ in range(6):
            bucket.acquire()

        assert bucket.retry_after() == 10


class TestRateLimiter:
    def test_disabled_when_rate_is_zero(self):
        assert not RateLimiter(0).enabled
        assert RateLimiter(10).enabled

    def test_buckets_created_once_per_key(self):
        limiter = RateLimiter(10)

        assert limiter.bucket("10.0.0.1") is limiter.bucket("10.0.0.1")
        assert limiter.bucket("10.0.0.1") is not limiter.bucket("10.0.0.2")

    def test_bucket_map_stays_bounded(self):
        limiter = RateLimiter(2, max_buckets=10)

        for i in range(50):
            limiter.bucket(f"key-{i}").acquire()

        assert len(limiter.buckets) == 10
        assert "key-49" in limiter.buckets
        assert "key-0" not in limiter.buckets

    def test_idle_buckets_evicted_first(self, monkeypatch):
        clock = FakeClock()
        monkeypatch.setattr(rate_limiter.time, "time", clock.time)
        limiter = RateLimiter(60, max_buckets=2)

        limiter.bucket("quiet").acquire()
        clock.now += 61
        limiter.bucket("busy").acquire()
        limiter.bucket("quiet")  # recently used, but idle for a full window
        limiter.bucket("new")

        assert list(limiter.buckets) == ["busy", "new"]

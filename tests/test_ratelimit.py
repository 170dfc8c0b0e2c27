"""Tests for RateLimiter."""

import pytest

from hushcall.ratelimit import RateLimiter, RateLimitExceeded


class FakeClock:
    def __init__(self, now=1_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    return RateLimiter(limit=3, window=60.0, cleanup_probability=0.0, clock=clock)


class TestRateLimiterCreation:
    def test_defaults(self):
        limiter = RateLimiter()
        assert limiter.limit == 10
        assert limiter.window == 60.0

    @pytest.mark.parametrize("limit", [0, -1, 2.5])
    def test_invalid_limit_raises(self, limit):
        with pytest.raises(ValueError, match="limit must be a positive int"):
            RateLimiter(limit=limit)

    def test_invalid_window_raises(self):
        with pytest.raises(ValueError, match="window must be positive"):
            RateLimiter(window=0)

    def test_invalid_cleanup_probability_raises(self):
        with pytest.raises(ValueError, match="cleanup_probability"):
            RateLimiter(cleanup_probability=1.5)


class TestRateLimiterHit:
    def test_counts_within_window(self, limiter):
        assert [limiter.hit("k") for _ in range(3)] == [1, 2, 3]

    def test_exceeding_limit_raises(self, limiter, clock):
        for _ in range(3):
            limiter.hit("k")
        with pytest.raises(RateLimitExceeded) as exc_info:
            limiter.hit("k")

        exc = exc_info.value
        assert exc.key == "k"
        assert exc.limit == 3
        assert exc.reset_at == clock.now + 60.0
        assert str(exc) == "Rate limit exceeded. Maximum 3 requests per 60 seconds."

    def test_message_keeps_large_windows_plain(self, clock):
        limiter = RateLimiter(limit=1, window=1_000_000, cleanup_probability=0.0, clock=clock)
        limiter.hit("k")
        with pytest.raises(RateLimitExceeded, match=r"per 1000000 seconds\.$"):
            limiter.hit("k")

    def test_message_keeps_fractional_windows(self, clock):
        limiter = RateLimiter(limit=1, window=0.25, cleanup_probability=0.0, clock=clock)
        limiter.hit("k")
        with pytest.raises(RateLimitExceeded, match=r"per 0\.25 seconds\.$"):
            limiter.hit("k")

    def test_new_window_after_expiry(self, limiter, clock):
        for _ in range(3):
            limiter.hit("k")
        clock.advance(60.5)
        assert limiter.hit("k") == 1

    def test_window_is_fixed_from_first_hit(self, limiter, clock):
        limiter.hit("k")
        clock.advance(50)
        limiter.hit("k")
        limiter.hit("k")
        clock.advance(11)
        assert limiter.hit("k") == 1

    def test_keys_are_independent(self, limiter):
        for _ in range(3):
            limiter.hit("a")
        assert limiter.hit("b") == 1

    def test_allow(self, limiter):
        assert [limiter.allow("k") for _ in range(4)] == [True, True, True, False]


class TestRateLimiterInspection:
    def test_remaining(self, limiter):
        assert limiter.remaining("k") == 3
        limiter.hit("k")
        assert limiter.remaining("k") == 2

    def test_headers_for_unknown_key(self, limiter, clock):
        assert limiter.headers("k") == {
            "X-RateLimit-Limit": "3",
            "X-RateLimit-Remaining": "3",
            "X-RateLimit-Reset": str(int((clock.now + 60.0) * 1000)),
        }

    def test_headers_never_negative(self, limiter, clock):
        for _ in range(5):
            limiter.allow("k")
        headers = limiter.headers("k")
        assert headers["X-RateLimit-Remaining"] == "0"
        assert headers["X-RateLimit-Reset"] == str(int((clock.now + 60.0) * 1000))

    def test_expired_window_reports_full_quota(self, limiter, clock):
        limiter.hit("k")
        clock.advance(61)
        assert limiter.remaining("k") == 3


class TestRateLimiterCleanup:
    def test_cleanup_drops_expired(self, limiter, clock):
        limiter.hit("old")
        clock.advance(30)
        limiter.hit("fresh")
        clock.advance(31)

        assert limiter.cleanup() == 1
        assert len(limiter) == 1

    def test_probabilistic_cleanup_on_hit(self, clock):
        limiter = RateLimiter(limit=3, window=1.0, cleanup_probability=1.0, clock=clock)
        limiter.hit("old")
        clock.advance(2)
        limiter.hit("new")
        assert len(limiter) == 1

    def test_rejected_hit_skips_cleanup(self, clock):
        limiter = RateLimiter(limit=1, window=10.0, cleanup_probability=1.0, clock=clock)
        limiter.hit("old")
        clock.advance(5)
        limiter.hit("k")
        clock.advance(6)

        assert limiter.allow("k") is False
        assert len(limiter) == 2

    def test_reset(self, limiter):
        limiter.hit("a")
        limiter.hit("b")
        limiter.reset("a")
        assert len(limiter) == 1
        limiter.reset()
        assert len(limiter) == 0

    def test_repr(self, limiter):
        assert repr(limiter) == "RateLimiter(limit=3, window=60.0, keys=0)"

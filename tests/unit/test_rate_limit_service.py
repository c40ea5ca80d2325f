"""
Unit tests for the fixed-window rate limiter.
"""

import pytest

from exceptions import RateLimitError
from services.rate_limit_service import RateLimiter, get_bulk_rate_limiter, rate_limit_key


class FakeClock:

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def limiter(clock) -> RateLimiter:
    return RateLimiter(max_requests=3, window_seconds=60, clock=clock)


class TestRateLimiter:

    def test_counts_down_remaining(self, limiter):
        assert [limiter.check("k") for _ in range(3)] == [2, 1, 0]

    def test_blocks_over_limit(self, limiter, clock):
        for _ in range(3):
            limiter.check("k")
        clock.advance(15)

        with pytest.raises(RateLimitError) as exc_info:
            limiter.check("k")

        error = exc_info.value
        assert error.status_code == 429
        assert error.retry_after == 45
        assert error.headers["Retry-After"] == "45"
        assert error.message == "Please wait 45 seconds before processing another bulk order."

    def test_stays_blocked_until_window_resets(self, limiter, clock):
        for _ in range(4):
            try:
                limiter.check("k")
            except RateLimitError:
                pass

        clock.advance(59)
        with pytest.raises(RateLimitError) as exc_info:
            limiter.check("k")
        assert exc_info.value.retry_after == 1

        clock.advance(1)
        assert limiter.check("k") == 2

    def test_keys_are_independent(self, limiter):
        for _ in range(3):
            limiter.check("a")
        assert limiter.check("b") == 2

    def test_reset(self, limiter):
        for _ in range(3):
            limiter.check("k")
        limiter.reset("k")
        assert limiter.check("k") == 2

    def test_long_wait_in_minutes(self, clock):
        limiter = RateLimiter(max_requests=1, window_seconds=300, clock=clock)
        limiter.check("k")

        with pytest.raises(RateLimitError) as exc_info:
            limiter.check("k")

        assert "5 minutes" in exc_info.value.message


class TestRateLimitKey:

    @pytest.mark.parametrize("user_id,host,expected", [
        ("user-1", "10.0.0.1", "bulk:user:user-1"),
        (None, "10.0.0.1", "bulk:anon:10.0.0.1"),
        (None, None, "bulk:anon:unknown"),
    ])
    def test_key(self, user_id, host, expected):
        assert rate_limit_key("bulk", user_id, host) == expected


def test_bulk_limiter_uses_settings():
    from config import settings

    limiter = get_bulk_rate_limiter()

    assert limiter is get_bulk_rate_limiter()
    assert limiter.max_requests == settings.bulk_rate_limit_max_requests

"""Rate limiter window behaviour."""

from __future__ import annotations

import pytest

from moviescout.services.exceptions import RateLimitExceeded
from moviescout.services.rate_limit import RateLimiter


def test_window_is_created_lazily_and_counts(clock):
    limiter = RateLimiter(max_requests=3, window_seconds=10, clock=clock)
    assert limiter.remaining("https://api/search/") == 3

    window = limiter.acquire("https://api/search/")

    assert window.count == 1
    assert window.reset_at == clock.now + 10
    assert limiter.remaining("https://api/search/") == 2


def test_limit_raises_with_remaining_wait(clock):
    limiter = RateLimiter(max_requests=2, window_seconds=10, clock=clock)
    limiter.acquire("key")
    clock.advance(4)
    limiter.acquire("key")

    with pytest.raises(RateLimitExceeded) as excinfo:
        limiter.acquire("key")

    assert excinfo.value.retry_after == pytest.approx(6)
    assert excinfo.value.endpoint == "key"


def test_rejected_request_does_not_consume_a_slot(clock):
    limiter = RateLimiter(max_requests=1, window_seconds=10, clock=clock)
    limiter.acquire("key")
    for _ in range(3):
        with pytest.raises(RateLimitExceeded):
            limiter.acquire("key")

    assert limiter.remaining("key") == 0


def test_window_resets_after_deadline(clock):
    limiter = RateLimiter(max_requests=1, window_seconds=10, clock=clock)
    limiter.acquire("key")
    clock.advance(10.5)

    window = limiter.acquire("key")

    assert window.count == 1
    assert limiter.remaining("key") == 0


def test_keys_are_independent(clock):
    limiter = RateLimiter(max_requests=1, window_seconds=10, clock=clock)
    limiter.acquire("a")
    limiter.acquire("b")

    with pytest.raises(RateLimitExceeded):
        limiter.acquire("a")

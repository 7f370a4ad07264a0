"""Per-endpoint request windows for outbound calls."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Dict

from moviescout.services.exceptions import RateLimitExceeded

Clock = Callable[[], float]


@dataclass(slots=True)
class RateLimitWindow:
    count: int
    reset_at: float


class RateLimiter:
    """Counts requests per endpoint key inside a rolling window.

    A window is created on the first request for a key and starts over once the
    clock passes ``reset_at``. Exceeding the limit raises immediately instead of
    delaying the caller.
    """

    def __init__(
        self,
        max_requests: int = 100,
        window_seconds: float = 60.0,
        *,
        clock: Clock = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, RateLimitWindow] = {}

    def acquire(self, key: str) -> RateLimitWindow:
        now = self._clock()
        window = self._windows.get(key)
        if window is None or now > window.reset_at:
            window = RateLimitWindow(count=0, reset_at=now + self.window_seconds)
            self._windows[key] = window

        if window.count >= self.max_requests:
            raise RateLimitExceeded(key, retry_after=window.reset_at - now)

        window.count += 1
        return window

    def remaining(self, key: str) -> int:
        window = self._windows.get(key)
        if window is None or self._clock() > window.reset_at:
            return self.max_requests
        return max(0, self.max_requests - window.count)


__all__ = ["RateLimitWindow", "RateLimiter"]

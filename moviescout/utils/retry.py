"""Async retry helpers used by the transport client."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

T = TypeVar("T")
AsyncFactory = Callable[[], Awaitable[T]]
Sleeper = Callable[[float], Awaitable[None]]


def backoff_delay(attempt: int, base_delay: float) -> float:
    """Delay before the attempt following ``attempt`` (1-based)."""

    return base_delay * (2 ** (attempt - 1))


async def retry_async(
    operation: AsyncFactory[T],
    *,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    should_retry: Callable[[Exception], bool] | None = None,
    sleep: Sleeper = asyncio.sleep,
    logger=None,
    operation_name: str = "operation",
) -> T:
    """Retry an async operation with exponential backoff.

    Exceptions rejected by ``should_retry`` propagate immediately; otherwise the
    last failure propagates once ``max_attempts`` is exhausted.
    """

    attempt = 1
    while attempt <= max_attempts:
        try:
            return await operation()
        except Exception as exc:
            if attempt >= max_attempts:
                raise
            if should_retry is not None and not should_retry(exc):
                raise
            delay = backoff_delay(attempt, base_delay)
            if logger is not None:
                logger.warning(
                    "retrying_operation",
                    operation=operation_name,
                    attempt=attempt,
                    max_attempts=max_attempts,
                    delay=delay,
                    error=str(exc) or exc.__class__.__name__,
                )
            await sleep(delay)
            attempt += 1

    # This point is never reached but keeps type-checkers happy.
    raise RuntimeError(f"{operation_name} failed after {max_attempts} attempts")


__all__ = ["backoff_delay", "retry_async"]

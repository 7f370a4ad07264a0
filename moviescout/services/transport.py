"""Outbound HTTP client with rate limiting, retries and in-flight deduplication."""

from __future__ import annotations

import asyncio
import json as jsonlib
import time
from typing import Any, Dict, Mapping

import httpx

from moviescout.config import TransportSettings
from moviescout.logging import get_logger
from moviescout.services.exceptions import HttpError, NetworkError, ProviderResponseError
from moviescout.services.rate_limit import Clock, RateLimiter
from moviescout.utils.retry import Sleeper, retry_async

logger = get_logger("transport")

ParamValue = str | int | float | bool | None


def _stringify(value: ParamValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _is_retryable(exc: Exception) -> bool:
    # A call cut off by its own timeout is final; remote and network failures are not.
    return not isinstance(exc, (httpx.TimeoutException, asyncio.TimeoutError))


def _consume_exception(task: asyncio.Future) -> None:
    if not task.cancelled():
        task.exception()


class TransportClient:
    """Issue JSON requests against upstream providers.

    Concurrent calls that resolve to the same method and URL share one network
    call. Every network call first takes a slot in the per-endpoint rate-limit
    window, then runs with a bounded timeout and exponential-backoff retries.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        settings: TransportSettings | None = None,
        *,
        base_url: str | None = None,
        clock: Clock = time.monotonic,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self._client = http_client
        self._settings = settings or TransportSettings()
        self._base_url = base_url.rstrip("/") if base_url else None
        self._sleep = sleep
        self._rate_limiter = RateLimiter(
            self._settings.rate_limit_max_requests,
            self._settings.rate_limit_window_seconds,
            clock=clock,
        )
        self._pending: Dict[str, asyncio.Future] = {}

    @property
    def rate_limiter(self) -> RateLimiter:
        return self._rate_limiter

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def build_url(
        self, endpoint: str, params: Mapping[str, ParamValue] | None = None
    ) -> httpx.URL:
        """Resolve ``endpoint`` and merge ``params`` in sorted order."""

        url = httpx.URL(endpoint)
        if not url.is_absolute_url:
            if self._base_url is None:
                raise ValueError(f"Relative endpoint {endpoint!r} needs a base_url.")
            url = httpx.URL(f"{self._base_url}/{endpoint.lstrip('/')}")

        items = list(url.params.multi_items())
        for key, value in (params or {}).items():
            if value is None:
                continue
            items.append((key, _stringify(value)))
        return url.copy_with(params=httpx.QueryParams(sorted(items)))

    @staticmethod
    def request_key(method: str, url: httpx.URL, body: Any = None) -> str:
        key = f"{method.upper()} {url}"
        if body is not None:
            key = f"{key} {jsonlib.dumps(body, sort_keys=True, default=str)}"
        return key

    @staticmethod
    def endpoint_key(url: httpx.URL) -> str:
        return f"{url.scheme}://{url.netloc.decode('ascii')}{url.path}"

    async def request(
        self,
        endpoint: str,
        *,
        method: str = "GET",
        params: Mapping[str, ParamValue] | None = None,
        headers: Mapping[str, str] | None = None,
        json: Any = None,
        timeout: float | None = None,
    ) -> Any:
        method = method.upper()
        url = self.build_url(endpoint, params)
        key = self.request_key(method, url, json)

        shared = self._pending.get(key)
        if shared is None:
            shared = asyncio.ensure_future(
                self._execute(key, method, url, headers, json, timeout)
            )
            shared.add_done_callback(_consume_exception)
            self._pending[key] = shared
        return await asyncio.shield(shared)

    async def _execute(
        self,
        key: str,
        method: str,
        url: httpx.URL,
        headers: Mapping[str, str] | None,
        body: Any,
        timeout: float | None,
    ) -> Any:
        timeout = timeout or self._settings.timeout_seconds
        try:
            self._rate_limiter.acquire(self.endpoint_key(url))

            async def _attempt() -> httpx.Response:
                response = await asyncio.wait_for(
                    self._client.request(
                        method, url, headers=headers, json=body, timeout=timeout
                    ),
                    timeout=timeout,
                )
                response.raise_for_status()
                return response

            response = await retry_async(
                _attempt,
                max_attempts=self._settings.max_attempts,
                base_delay=self._settings.base_delay_seconds,
                should_retry=_is_retryable,
                sleep=self._sleep,
                logger=logger if self._settings.log_retries else None,
                operation_name=f"{method} {self.endpoint_key(url)}",
            )
        except httpx.HTTPStatusError as exc:
            raise HttpError(
                exc.response.status_code, self.endpoint_key(url), exc.response.reason_phrase
            ) from exc
        except (httpx.TimeoutException, asyncio.TimeoutError) as exc:
            raise NetworkError(f"Request to {self.endpoint_key(url)} timed out after {timeout}s") from exc
        except httpx.RequestError as exc:
            raise NetworkError(f"Request to {self.endpoint_key(url)} failed: {exc}") from exc
        finally:
            self._pending.pop(key, None)

        return self._decode(response, self.endpoint_key(url))

    @staticmethod
    def _decode(response: httpx.Response, endpoint: str) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderResponseError(
                f"Response from {endpoint} is not valid JSON."
            ) from exc


__all__ = ["TransportClient"]

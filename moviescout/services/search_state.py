"""Debounced search state shared with the presentation layer."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Literal

from pydantic import BaseModel, ConfigDict

from moviescout.config import SearchSettings
from moviescout.domain.models import Movie, SearchFilters, SearchHistoryEntry
from moviescout.logging import get_logger
from moviescout.services.aggregation import MovieAggregationService
from moviescout.services.exceptions import (
    HttpError,
    NetworkError,
    NoApiKeyConfigured,
    ProviderResponseError,
    RateLimitExceeded,
)
from moviescout.services.history import SearchHistory

logger = get_logger("search")

ErrorKind = Literal["rate_limit", "network", "http", "configuration", "unexpected"]
SearchStatus = Literal["idle", "searching", "success", "error"]


class SearchState(BaseModel):
    model_config = ConfigDict(frozen=True)

    query: str = ""
    filters: SearchFilters = SearchFilters()
    results: tuple[Movie, ...] = ()
    total_results: int = 0
    is_loading: bool = False
    error: str | None = None
    error_kind: ErrorKind | None = None
    history: tuple[SearchHistoryEntry, ...] = ()

    @property
    def status(self) -> SearchStatus:
        if self.is_loading:
            return "searching"
        if self.error is not None:
            return "error"
        if self.query:
            return "success"
        return "idle"


Listener = Callable[[SearchState], Any]


def describe_error(exc: Exception) -> tuple[str, ErrorKind]:
    """Map a failed search to a user-facing message and error kind."""

    if isinstance(exc, RateLimitExceeded):
        return f"Too many requests. Please wait {exc.retry_after_seconds} seconds.", "rate_limit"
    if isinstance(exc, NoApiKeyConfigured):
        return (
            f"Movie search is unavailable: no {exc.provider} API key configured.",
            "configuration",
        )
    if isinstance(exc, HttpError):
        return f"Search failed (status {exc.status}).", "http"
    if isinstance(exc, NetworkError):
        return f"Network error: {exc}", "network"
    if isinstance(exc, ProviderResponseError):
        return "Search failed: the movie provider returned an unexpected response.", "http"
    return "Something went wrong while searching. Please try again.", "unexpected"


class SearchOrchestrator:
    """Own the search state machine and the recent-search history.

    Typed input is debounced; explicit submissions run immediately. Each search
    takes the next sequence number and only the most recently issued search may
    write results, errors or the loading flag.
    """

    def __init__(
        self,
        aggregation: MovieAggregationService,
        history: SearchHistory,
        settings: SearchSettings | None = None,
    ) -> None:
        self._aggregation = aggregation
        self._history = history
        self._settings = settings or SearchSettings()
        self._state = SearchState(history=history.entries)
        self._staged = ""
        self._debounce_task: asyncio.Task | None = None
        self._in_flight: set[asyncio.Task] = set()
        self._sequence = 0
        self._listeners: list[Listener] = []

    @property
    def state(self) -> SearchState:
        return self._state

    @property
    def staged_query(self) -> str:
        return self._staged

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def set_query(self, text: str) -> None:
        self._staged = text
        self._cancel_debounce()
        if len(text.strip()) < self._settings.min_query_length:
            return
        self._debounce_task = asyncio.create_task(self._debounced(text.strip()))

    def set_filters(self, **changes: Any) -> SearchFilters:
        merged = {**self._state.filters.model_dump(), **changes}
        filters = SearchFilters(**merged)
        self._update(filters=filters)
        return filters

    async def submit(self, text: str | None = None) -> SearchState:
        if text is not None:
            self._staged = text
        self._cancel_debounce()
        query = self._staged.strip()
        if not query:
            return self._state
        self.add_to_history(query)
        await self._spawn(query)
        return self._state

    async def select_suggestion(self, suggestion: str) -> SearchState:
        return await self.submit(suggestion)

    def add_to_history(self, query: str) -> None:
        self._update(history=self._history.add(query))

    def clear_history(self) -> None:
        self._history.clear()
        self._update(history=())

    async def drain(self) -> None:
        """Wait for the pending debounce timer and every in-flight search."""

        while True:
            tasks = [*self._in_flight]
            if self._debounce_task is not None:
                tasks.append(self._debounce_task)
            if not tasks:
                return
            await asyncio.gather(*tasks, return_exceptions=True)

    def close(self) -> None:
        self._cancel_debounce()

    async def _debounced(self, query: str) -> None:
        await asyncio.sleep(self._settings.debounce_seconds)
        self._debounce_task = None
        self._spawn(query)

    def _spawn(self, query: str) -> asyncio.Task:
        task = asyncio.create_task(self._run_search(query))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return task

    def _cancel_debounce(self) -> None:
        if self._debounce_task is not None:
            self._debounce_task.cancel()
            self._debounce_task = None

    async def _run_search(self, query: str) -> None:
        self._sequence += 1
        token = self._sequence
        self._update(query=query, is_loading=True, error=None, error_kind=None)
        try:
            result = await self._aggregation.search_movies(query, self._state.filters)
        except Exception as exc:
            if token != self._sequence:
                logger.debug("stale_search_discarded", query=query, sequence=token)
                return
            message, kind = describe_error(exc)
            if kind == "unexpected":
                logger.exception("search_failed", query=query)
            else:
                logger.warning("search_failed", query=query, error_kind=kind, error=str(exc))
            self._update(
                results=(),
                total_results=0,
                is_loading=False,
                error=message,
                error_kind=kind,
            )
            return

        if token != self._sequence:
            logger.debug("stale_search_discarded", query=query, sequence=token)
            return
        self._update(
            results=result.movies,
            total_results=result.total_results,
            is_loading=False,
        )

    def _update(self, **changes: Any) -> None:
        self._state = self._state.model_copy(update=changes)
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                logger.exception("search_listener_failed")


__all__ = ["SearchOrchestrator", "SearchState", "describe_error"]

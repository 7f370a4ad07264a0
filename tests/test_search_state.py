"""Debounce, stale-response and error handling of the search orchestrator."""

from __future__ import annotations

import asyncio

import pytest

from moviescout.config import SearchSettings
from moviescout.domain.models import Movie, SearchResult
from moviescout.services.exceptions import (
    HttpError,
    NetworkError,
    NoApiKeyConfigured,
    RateLimitExceeded,
)
from moviescout.services.history import LocalStorage, SearchHistory
from moviescout.services.search_state import SearchOrchestrator, describe_error


class FakeAggregation:
    def __init__(self) -> None:
        self.calls: list[tuple[str, object]] = []
        self.gates: dict[str, asyncio.Event] = {}
        self.failures: dict[str, Exception] = {}

    async def search_movies(self, query, filters=None, page=1):
        self.calls.append((query, filters))
        gate = self.gates.get(query)
        if gate is not None:
            await gate.wait()
        if query in self.failures:
            raise self.failures[query]
        movie = Movie(id=query, title=query.title())
        return SearchResult(movies=(movie,), total_results=1, total_pages=1)


@pytest.fixture
def aggregation() -> FakeAggregation:
    return FakeAggregation()


@pytest.fixture
def orchestrator(aggregation, tmp_path):
    history = SearchHistory(LocalStorage(tmp_path / "storage.json"))
    settings = SearchSettings(debounce_seconds=0.05, min_query_length=3)
    search = SearchOrchestrator(aggregation, history, settings)
    yield search
    search.close()


@pytest.mark.asyncio
async def test_typing_runs_one_search_after_quiescence(orchestrator, aggregation):
    for text in ("dun", "dune", "dune 2"):
        orchestrator.set_query(text)
        await asyncio.sleep(0.005)

    assert aggregation.calls == []
    await orchestrator.drain()

    assert [query for query, _ in aggregation.calls] == ["dune 2"]
    assert orchestrator.state.query == "dune 2"
    assert orchestrator.state.status == "success"
    assert orchestrator.state.history == ()


@pytest.mark.asyncio
async def test_short_input_cancels_pending_search(orchestrator, aggregation):
    orchestrator.set_query("dune")
    orchestrator.set_query("du")
    await asyncio.sleep(0.1)
    await orchestrator.drain()

    assert aggregation.calls == []
    assert orchestrator.staged_query == "du"
    assert orchestrator.state.status == "idle"


@pytest.mark.asyncio
async def test_slow_earlier_search_cannot_overwrite_newer_results(orchestrator, aggregation):
    aggregation.gates["bat"] = asyncio.Event()

    orchestrator.set_query("bat")
    await asyncio.sleep(0.1)
    assert orchestrator.state.is_loading

    state = await orchestrator.submit("batman")
    assert [movie.id for movie in state.results] == ["batman"]

    aggregation.gates["bat"].set()
    await orchestrator.drain()

    assert [query for query, _ in aggregation.calls] == ["bat", "batman"]
    assert orchestrator.state.query == "batman"
    assert [movie.id for movie in orchestrator.state.results] == ["batman"]
    assert orchestrator.state.is_loading is False


@pytest.mark.asyncio
async def test_stale_failure_is_discarded(orchestrator, aggregation):
    aggregation.gates["bat"] = asyncio.Event()
    aggregation.failures["bat"] = NetworkError("connection reset")

    orchestrator.set_query("bat")
    await asyncio.sleep(0.1)
    await orchestrator.submit("batman")
    aggregation.gates["bat"].set()
    await orchestrator.drain()

    assert orchestrator.state.error is None
    assert orchestrator.state.total_results == 1


@pytest.mark.asyncio
async def test_submit_records_history_and_runs_immediately(orchestrator, aggregation):
    orchestrator.set_query("alien")
    state = await orchestrator.submit()

    assert [query for query, _ in aggregation.calls] == ["alien"]
    assert [entry.query for entry in state.history] == ["alien"]

    await orchestrator.drain()
    assert len(aggregation.calls) == 1


@pytest.mark.asyncio
async def test_blank_submit_does_nothing(orchestrator, aggregation):
    state = await orchestrator.submit("   ")

    assert aggregation.calls == []
    assert state.history == ()


@pytest.mark.asyncio
async def test_error_clears_previous_results(orchestrator, aggregation):
    await orchestrator.submit("heat")
    assert orchestrator.state.results

    aggregation.failures["ronin"] = RateLimitExceeded("https://api.watchmode.com/v1/search/", 12.2)
    state = await orchestrator.submit("ronin")

    assert state.results == ()
    assert state.total_results == 0
    assert state.error_kind == "rate_limit"
    assert state.error == "Too many requests. Please wait 13 seconds."
    assert state.status == "error"

    state = await orchestrator.submit("heat")
    assert state.error is None
    assert state.error_kind is None


@pytest.mark.asyncio
async def test_filters_flow_into_the_next_search(orchestrator, aggregation):
    orchestrator.set_filters(genre="Drama")
    orchestrator.set_filters(year=1995)
    await orchestrator.submit("heat")

    filters = aggregation.calls[0][1]
    assert filters.genre == "Drama"
    assert filters.year == 1995


@pytest.mark.asyncio
async def test_listeners_see_each_transition(orchestrator):
    seen: list[str] = []
    unsubscribe = orchestrator.subscribe(lambda state: seen.append(state.status))

    await orchestrator.submit("heat")
    unsubscribe()
    await orchestrator.submit("ronin")

    assert seen == ["idle", "searching", "success"]


@pytest.mark.asyncio
async def test_failing_listener_does_not_break_search(orchestrator):
    def broken(state):
        raise RuntimeError("boom")

    orchestrator.subscribe(broken)
    state = await orchestrator.submit("heat")

    assert state.status == "success"


@pytest.mark.asyncio
async def test_select_suggestion_and_clear_history(orchestrator, aggregation):
    await orchestrator.select_suggestion("Marvel movies")
    assert orchestrator.state.history[0].query == "Marvel movies"

    orchestrator.clear_history()
    assert orchestrator.state.history == ()


def test_describe_error_messages():
    assert describe_error(NoApiKeyConfigured("watchmode")) == (
        "Movie search is unavailable: no watchmode API key configured.",
        "configuration",
    )
    assert describe_error(HttpError(502, "https://api.watchmode.com/v1/search/", "Bad Gateway")) == (
        "Search failed (status 502).",
        "http",
    )
    assert describe_error(NetworkError("timed out"))[1] == "network"
    assert describe_error(ValueError("bug"))[1] == "unexpected"

"""Shared pytest fixtures for transport, provider and search tests."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

import httpx
import pytest
import pytest_asyncio
from pydantic import SecretStr

from moviescout.config import TMDBSettings, TransportSettings, WatchmodeSettings
from moviescout.services.transport import TransportClient

Handler = Callable[[httpx.Request], Awaitable[httpx.Response]]


class RecordingSleep:
    """Stands in for ``asyncio.sleep`` and remembers requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)

    @property
    def total(self) -> float:
        return sum(self.delays)


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def sleeper() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def transport_settings() -> TransportSettings:
    return TransportSettings(
        timeout_seconds=5,
        max_attempts=3,
        base_delay_seconds=1.0,
        rate_limit_max_requests=100,
        rate_limit_window_seconds=60,
    )


@pytest.fixture
def watchmode_settings() -> WatchmodeSettings:
    return WatchmodeSettings(api_key=SecretStr("wm-key"))


@pytest.fixture
def tmdb_settings() -> TMDBSettings:
    return TMDBSettings(api_key=SecretStr("tmdb-key"))


@pytest_asyncio.fixture
async def make_transport(transport_settings, sleeper, clock):
    """Build a transport client whose traffic goes to ``handler``."""

    clients: list[httpx.AsyncClient] = []

    def _factory(handler: Handler, settings: TransportSettings | None = None) -> TransportClient:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        clients.append(client)
        return TransportClient(
            client,
            settings or transport_settings,
            clock=clock,
            sleep=sleeper,
        )

    yield _factory
    for client in clients:
        await client.aclose()


def _watchmode_title(**overrides) -> dict:
    payload = {
        "id": 1,
        "title": "The Matrix",
        "year": 1999,
        "imdb_id": "tt0133093",
        "tmdb_id": 603,
        "tmdb_type": "movie",
        "genre_names": ["Action", "Science Fiction"],
        "user_rating": 8.7,
        "runtime_minutes": 136,
        "plot_overview": "A hacker learns the truth about reality.",
    }
    payload.update(overrides)
    return payload


def _tmdb_movie(**overrides) -> dict:
    payload = {
        "id": 603,
        "title": "The Matrix",
        "overview": "Set in the 22nd century, The Matrix tells the story of a computer hacker.",
        "poster_path": "/matrix.jpg",
        "backdrop_path": "/matrix-bg.jpg",
        "release_date": "1999-03-30",
        "vote_average": 8.2,
        "runtime": 136,
        "imdb_id": "tt0133093",
        "genres": [{"id": 28, "name": "Action"}],
        "credits": {
            "cast": [
                {"id": 6384, "name": "Keanu Reeves", "character": "Neo", "profile_path": "/keanu.jpg"},
                {"id": 2975, "name": "Laurence Fishburne", "character": "Morpheus", "profile_path": None},
            ],
            "crew": [
                {"id": 9340, "name": "Lana Wachowski", "job": "Director"},
                {"id": 9339, "name": "Joel Silver", "job": "Producer"},
            ],
        },
        "videos": {
            "results": [
                {"key": "teaser1", "site": "YouTube", "type": "Teaser"},
                {"key": "vKQi3bBA1y8", "site": "YouTube", "type": "Trailer"},
            ]
        },
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def watchmode_title():
    return _watchmode_title


@pytest.fixture
def tmdb_movie():
    return _tmdb_movie

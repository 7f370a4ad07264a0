"""TMDB adapter: overview, artwork, audience rating and credits."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from moviescout.config import TMDBSettings
from moviescout.domain.models import Actor, SearchFilters
from moviescout.providers.base import (
    BaseProvider,
    MetadataPage,
    MetadataRecord,
    ProviderPayload,
    year_from_date,
)
from moviescout.services.exceptions import NoApiKeyConfigured
from moviescout.services.transport import TransportClient

POSTER_SIZE = "w500"
BACKDROP_SIZE = "w1280"
PROFILE_SIZE = "w185"

TMDB_GENRES: dict[int, str] = {
    28: "Action",
    12: "Adventure",
    16: "Animation",
    35: "Comedy",
    80: "Crime",
    99: "Documentary",
    18: "Drama",
    10751: "Family",
    14: "Fantasy",
    36: "History",
    27: "Horror",
    10402: "Music",
    9648: "Mystery",
    10749: "Romance",
    878: "Science Fiction",
    10770: "TV Movie",
    53: "Thriller",
    10752: "War",
    37: "Western",
}


class TMDBGenre(ProviderPayload):
    id: int = 0
    name: str = ""


class TMDBCastMember(ProviderPayload):
    id: int = 0
    name: str = ""
    character: str = ""
    profile_path: str = ""


class TMDBCrewMember(ProviderPayload):
    id: int = 0
    name: str = ""
    job: str = ""


class TMDBCredits(ProviderPayload):
    cast: list[TMDBCastMember] = Field(default_factory=list)
    crew: list[TMDBCrewMember] = Field(default_factory=list)


class TMDBVideo(ProviderPayload):
    key: str = ""
    site: str = ""
    type: str = ""


class TMDBVideos(ProviderPayload):
    results: list[TMDBVideo] = Field(default_factory=list)


class TMDBMovie(ProviderPayload):
    id: int
    title: str = ""
    overview: str = ""
    poster_path: str = ""
    backdrop_path: str = ""
    release_date: str = ""
    vote_average: float = 0.0
    runtime: int = 0
    imdb_id: str = ""
    genres: list[TMDBGenre] = Field(default_factory=list)
    genre_ids: list[int] = Field(default_factory=list)
    credits: TMDBCredits = Field(default_factory=TMDBCredits)
    videos: TMDBVideos = Field(default_factory=TMDBVideos)


class TMDBPage(ProviderPayload):
    page: int = 1
    results: list[TMDBMovie] = Field(default_factory=list)
    total_results: int = 0
    total_pages: int = 0


class TMDBProvider(BaseProvider):
    """Metadata provider. Calls carry the API key as ``api_key``."""

    name = "tmdb"

    def __init__(
        self,
        transport: TransportClient,
        settings: TMDBSettings | None = None,
    ) -> None:
        super().__init__(transport)
        self._settings = settings or TMDBSettings()

    @property
    def configured(self) -> bool:
        return self._read_secret(self._settings.api_key) is not None

    def image_url(self, path: str, size: str) -> str:
        if not path:
            return ""
        base = str(self._settings.image_base_url).rstrip("/")
        return f"{base}/{size}/{path.lstrip('/')}"

    async def search_titles(
        self,
        text: str,
        filters: SearchFilters | None = None,
        page: int = 1,
    ) -> MetadataPage:
        filters = filters or SearchFilters()
        payload = await self._get(
            "/search/movie",
            {"query": text, "page": page, "primary_release_year": filters.year},
        )
        return self._to_page(self._parse(TMDBPage, payload, context="search"))

    async def list_trending(self, page: int = 1) -> MetadataPage:
        payload = await self._get("/trending/movie/week", {"page": page})
        return self._to_page(self._parse(TMDBPage, payload, context="trending"))

    async def get_title_details(self, movie_id: str) -> MetadataRecord:
        payload = await self._get(
            f"/movie/{movie_id}", {"append_to_response": "credits,videos"}
        )
        return self.to_record(self._parse(TMDBMovie, payload, context=f"movie {movie_id}"))

    def to_record(self, movie: TMDBMovie) -> MetadataRecord:
        if movie.genres:
            genres = tuple(genre.name for genre in movie.genres if genre.name)
        else:
            genres = tuple(TMDB_GENRES[gid] for gid in movie.genre_ids if gid in TMDB_GENRES)
        cast = tuple(
            Actor(
                id=str(member.id),
                name=member.name,
                character=member.character,
                image_url=self.image_url(member.profile_path, PROFILE_SIZE) or None,
            )
            for member in movie.credits.cast[: self._settings.cast_limit]
        )
        director = next(
            (member.name for member in movie.credits.crew if member.job == "Director"),
            None,
        )
        trailer = next(
            (
                f"https://www.youtube.com/watch?v={video.key}"
                for video in movie.videos.results
                if video.site == "YouTube" and video.type == "Trailer" and video.key
            ),
            None,
        )
        return MetadataRecord(
            id=str(movie.id),
            title=movie.title,
            year=year_from_date(movie.release_date),
            overview=movie.overview,
            poster_url=self.image_url(movie.poster_path, POSTER_SIZE),
            backdrop_url=self.image_url(movie.backdrop_path, BACKDROP_SIZE),
            rating=movie.vote_average,
            runtime_minutes=movie.runtime,
            genres=genres,
            imdb_id=movie.imdb_id or None,
            cast=cast,
            director=director,
            trailer_url=trailer,
        )

    def _to_page(self, page: TMDBPage) -> MetadataPage:
        return MetadataPage(
            records=tuple(self.to_record(movie) for movie in page.results),
            total_results=page.total_results,
            page=page.page,
            total_pages=page.total_pages,
        )

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        api_key = self._read_secret(self._settings.api_key)
        if not api_key:
            raise NoApiKeyConfigured(self.name)
        base = str(self._settings.base_url).rstrip("/")
        return await self._transport.request(
            f"{base}/{path.lstrip('/')}",
            params={**(params or {}), "api_key": api_key},
        )


__all__ = ["TMDBProvider", "TMDB_GENRES"]

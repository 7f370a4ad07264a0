"""Watchmode adapter: title search, availability and streaming sources."""

from __future__ import annotations

import re
from typing import Any, Iterable

from pydantic import AliasChoices, Field

from moviescout.config import WatchmodeSettings
from moviescout.domain.models import OfferType, Quality, SearchFilters, StreamingSource
from moviescout.logging import get_logger
from moviescout.providers.base import (
    AvailabilityPage,
    AvailabilityRecord,
    BaseProvider,
    ProviderPayload,
)
from moviescout.services.exceptions import NoApiKeyConfigured, ProviderResponseError
from moviescout.services.transport import TransportClient

logger = get_logger("watchmode")

# canonical id -> (display name, logo)
STREAMING_SERVICES: dict[str, tuple[str, str]] = {
    "netflix": ("Netflix", "/logos/netflix.svg"),
    "amazon_prime": ("Prime Video", "/logos/prime.svg"),
    "disney_plus": ("Disney+", "/logos/disney.svg"),
    "hulu": ("Hulu", "/logos/hulu.svg"),
    "hbo_max": ("Max", "/logos/max.svg"),
    "apple_tv_plus": ("Apple TV+", "/logos/apple.svg"),
    "paramount_plus": ("Paramount+", "/logos/paramount.svg"),
    "peacock": ("Peacock", "/logos/peacock.svg"),
}

_SOURCE_ALIASES: dict[str, str] = {
    "netflix": "netflix",
    "amazonprime": "amazon_prime",
    "amazonprimevideo": "amazon_prime",
    "primevideo": "amazon_prime",
    "disney+": "disney_plus",
    "disneyplus": "disney_plus",
    "hulu": "hulu",
    "hbomax": "hbo_max",
    "max": "hbo_max",
    "appletv+": "apple_tv_plus",
    "appletvplus": "apple_tv_plus",
    "paramount+": "paramount_plus",
    "paramountplus": "paramount_plus",
    "peacock": "peacock",
    "peacockpremium": "peacock",
}

_OFFER_TYPES: dict[str, OfferType] = {
    "sub": "subscription",
    "subscription": "subscription",
    "addon": "subscription",
    "tve": "subscription",
    "free": "free",
    "ads": "free",
    "rent": "rent",
    "buy": "buy",
}

_QUALITIES: dict[str, Quality] = {"SD": "SD", "HD": "HD", "4K": "4K", "UHD": "4K"}


class WatchmodeSource(ProviderPayload):
    source_id: int = 0
    name: str = ""
    type: str = ""
    region: str = ""
    web_url: str = ""
    format: str = ""
    price: float | None = None


class WatchmodeTitle(ProviderPayload):
    id: int
    title: str = Field(default="", validation_alias=AliasChoices("title", "name"))
    year: int = 0
    imdb_id: str = ""
    tmdb_id: int = 0
    tmdb_type: str = ""
    genre_names: list[str] = Field(default_factory=list)
    user_rating: float = 0.0
    runtime_minutes: int = 0
    plot_overview: str = ""
    poster: str = ""
    backdrop: str = ""
    sources: list[WatchmodeSource] = Field(default_factory=list)


class WatchmodeSearchResponse(ProviderPayload):
    title_results: list[WatchmodeTitle] = Field(default_factory=list)
    total_results: int = 0
    total_pages: int = 0
    page: int = 1


class WatchmodeListResponse(ProviderPayload):
    titles: list[WatchmodeTitle] = Field(default_factory=list)
    total_results: int | None = None
    total_pages: int = 1
    page: int = 1


def canonical_service_id(name: str) -> str | None:
    normalized = re.sub(r"[^a-z0-9+]", "", (name or "").lower())
    return _SOURCE_ALIASES.get(normalized)


def map_sources(title_id: str, sources: Iterable[WatchmodeSource]) -> tuple[StreamingSource, ...]:
    """Translate raw provider sources into canonical streaming sources.

    Unrecognised services and offer types are dropped; the first offer for a
    given service, offer type and quality wins.
    """

    mapped: list[StreamingSource] = []
    seen: set[tuple[str, str, str]] = set()
    for source in sources:
        service_id = canonical_service_id(source.name)
        offer_type = _OFFER_TYPES.get(source.type.lower())
        if service_id is None or offer_type is None:
            logger.info(
                "unknown_streaming_source",
                title_id=title_id,
                source_id=source.source_id,
                source_name=source.name,
                offer_type=source.type,
            )
            continue
        quality = _QUALITIES.get(source.format.upper(), "HD")
        identity = (service_id, offer_type, quality)
        if identity in seen:
            continue
        seen.add(identity)
        display_name, logo = STREAMING_SERVICES[service_id]
        mapped.append(
            StreamingSource(
                id=service_id,
                name=display_name,
                offer_type=offer_type,
                price=source.price if offer_type in ("rent", "buy") else None,
                quality=quality,
                deep_link=source.web_url,
                logo_ref=logo,
            )
        )
    return tuple(mapped)


def to_record(title: WatchmodeTitle) -> AvailabilityRecord:
    title_id = str(title.id)
    metadata_id = None
    if title.tmdb_id and title.tmdb_type in ("", "movie"):
        metadata_id = str(title.tmdb_id)
    return AvailabilityRecord(
        id=title_id,
        title=title.title,
        year=title.year,
        overview=title.plot_overview,
        poster_url=title.poster,
        backdrop_url=title.backdrop,
        rating=title.user_rating,
        runtime_minutes=title.runtime_minutes,
        genres=tuple(title.genre_names),
        streaming_sources=map_sources(title_id, title.sources),
        imdb_id=title.imdb_id or None,
        external_metadata_id=metadata_id,
    )


class WatchmodeProvider(BaseProvider):
    """Availability provider. Every call carries the API key as ``apiKey``."""

    name = "watchmode"

    def __init__(
        self,
        transport: TransportClient,
        settings: WatchmodeSettings | None = None,
    ) -> None:
        super().__init__(transport)
        self._settings = settings or WatchmodeSettings()

    @property
    def configured(self) -> bool:
        return self._read_secret(self._settings.api_key) is not None

    async def search_titles(
        self,
        text: str,
        filters: SearchFilters | None = None,
        page: int = 1,
    ) -> AvailabilityPage:
        filters = filters or SearchFilters()
        payload = await self._get(
            "/search/",
            {
                "search_field": "name",
                "search_value": text,
                "page": page,
                "limit": self._settings.page_size,
                "genres": filters.genre,
                "year": filters.year,
                "min_rating": filters.min_rating,
            },
        )
        response = self._parse(WatchmodeSearchResponse, payload, context="search")
        records = tuple(to_record(title) for title in response.title_results)
        return AvailabilityPage(
            records=records,
            total_results=response.total_results or len(records),
            page=response.page if "page" in response.model_fields_set else page,
            total_pages=response.total_pages or (1 if records else 0),
        )

    async def list_trending(self, page: int = 1) -> AvailabilityPage:
        payload = await self._get(
            "/list-titles/",
            {
                "types": "movie",
                "sort_by": "popularity_desc",
                "page": page,
                "limit": self._settings.page_size,
            },
        )
        if isinstance(payload, list):
            payload = {"titles": payload, "page": page}
        response = self._parse(WatchmodeListResponse, payload, context="list-titles")
        records = tuple(to_record(title) for title in response.titles)
        total = response.total_results if response.total_results is not None else len(records)
        return AvailabilityPage(
            records=records,
            total_results=total,
            page=response.page,
            total_pages=response.total_pages,
        )

    async def get_title_details(self, title_id: str) -> AvailabilityRecord:
        payload = await self._get(f"/title/{title_id}/details/")
        return to_record(self._parse(WatchmodeTitle, payload, context=f"title {title_id}"))

    async def list_sources(self, title_id: str) -> tuple[StreamingSource, ...]:
        payload = await self._get(
            f"/title/{title_id}/sources/", {"regions": self._settings.regions}
        )
        if not isinstance(payload, list):
            raise ProviderResponseError(f"Unexpected watchmode payload for sources of {title_id}.")
        sources = [
            self._parse(WatchmodeSource, item, context=f"sources of {title_id}")
            for item in payload
        ]
        return map_sources(str(title_id), sources)

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        api_key = self._read_secret(self._settings.api_key)
        if not api_key:
            raise NoApiKeyConfigured(self.name)
        base = str(self._settings.base_url).rstrip("/")
        return await self._transport.request(
            f"{base}/{path.lstrip('/')}",
            params={**(params or {}), "apiKey": api_key},
        )


__all__ = [
    "STREAMING_SERVICES",
    "WatchmodeProvider",
    "canonical_service_id",
    "map_sources",
]

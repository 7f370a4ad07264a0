"""Merge availability and metadata providers into canonical movies."""

from __future__ import annotations

import asyncio
from typing import Iterable

from moviescout.domain.models import (
    OVERVIEW_PLACEHOLDER,
    Movie,
    SearchFilters,
    SearchResult,
)
from moviescout.logging import get_logger
from moviescout.providers.base import AvailabilityPage, AvailabilityRecord, MetadataRecord
from moviescout.providers.tmdb import TMDBProvider
from moviescout.providers.watchmode import WatchmodeProvider
from moviescout.services.exceptions import PartialEnrichmentFailure, ServiceError

logger = get_logger("aggregation")


def merge_movie(record: AvailabilityRecord, metadata: MetadataRecord | None = None) -> Movie:
    """Build the canonical movie for one title.

    Overview, artwork and rating prefer the metadata provider; identity, year,
    runtime and genres prefer the availability provider. Empty values fall
    through to the other provider and then to the sentinel default.
    """

    if metadata is None:
        return Movie(
            id=record.id,
            title=record.title,
            year=record.year,
            overview=record.overview or OVERVIEW_PLACEHOLDER,
            poster_url=record.poster_url,
            backdrop_url=record.backdrop_url,
            rating=record.rating,
            runtime_minutes=record.runtime_minutes,
            genres=record.genres,
            streaming_sources=record.streaming_sources,
            imdb_id=record.imdb_id,
            external_metadata_id=record.external_metadata_id,
        )

    return Movie(
        id=record.id,
        title=record.title or metadata.title,
        year=record.year or metadata.year,
        overview=metadata.overview or record.overview or OVERVIEW_PLACEHOLDER,
        poster_url=metadata.poster_url or record.poster_url,
        backdrop_url=metadata.backdrop_url or record.backdrop_url,
        rating=metadata.rating or record.rating,
        runtime_minutes=record.runtime_minutes or metadata.runtime_minutes,
        genres=record.genres or metadata.genres,
        streaming_sources=record.streaming_sources,
        imdb_id=record.imdb_id or metadata.imdb_id,
        external_metadata_id=record.external_metadata_id or metadata.id,
        cast=metadata.cast,
        director=metadata.director,
        trailer_url=metadata.trailer_url,
    )


class MovieAggregationService:
    """Search, detail and trending lookups across both providers.

    The availability provider decides which titles appear and in which order;
    its failures fail the whole call. Metadata enrichment runs concurrently per
    title and a failed lookup only downgrades that title.
    """

    def __init__(self, availability: WatchmodeProvider, metadata: TMDBProvider) -> None:
        self._availability = availability
        self._metadata = metadata

    async def search_movies(
        self,
        query: str,
        filters: SearchFilters | None = None,
        page: int = 1,
    ) -> SearchResult:
        query = (query or "").strip()
        if not query:
            return SearchResult(page=page)
        listing = await self._availability.search_titles(query, filters, page)
        return await self._build_result(listing)

    async def get_trending(self, page: int = 1) -> SearchResult:
        listing = await self._availability.list_trending(page)
        return await self._build_result(listing)

    async def get_movie_details(self, movie_id: str) -> Movie:
        record, sources = await asyncio.gather(
            self._availability.get_title_details(movie_id),
            self._availability.list_sources(movie_id),
        )
        record = record.model_copy(update={"streaming_sources": sources})
        return await self._enrich(record)

    async def _build_result(self, listing: AvailabilityPage) -> SearchResult:
        movies = await self._enrich_all(listing.records)
        return SearchResult(
            movies=movies,
            total_results=listing.total_results,
            page=listing.page,
            total_pages=listing.total_pages,
        )

    async def _enrich_all(self, records: Iterable[AvailabilityRecord]) -> tuple[Movie, ...]:
        return tuple(await asyncio.gather(*(self._enrich(record) for record in records)))

    async def _enrich(self, record: AvailabilityRecord) -> Movie:
        try:
            metadata = await self._fetch_metadata(record)
        except PartialEnrichmentFailure as exc:
            logger.info(
                "movie_enrichment_degraded",
                title_id=exc.title_id,
                metadata_id=record.external_metadata_id,
                error=str(exc.cause),
            )
            metadata = None
        return merge_movie(record, metadata)

    async def _fetch_metadata(self, record: AvailabilityRecord) -> MetadataRecord | None:
        if not record.external_metadata_id or not self._metadata.configured:
            return None
        try:
            return await self._metadata.get_title_details(record.external_metadata_id)
        except ServiceError as exc:
            raise PartialEnrichmentFailure(record.id, exc) from exc


__all__ = ["MovieAggregationService", "merge_movie"]

"""Canonical pydantic models shared across the provider, service and search layers."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

OfferType = Literal["subscription", "rent", "buy", "free"]
Quality = Literal["SD", "HD", "4K"]
SortBy = Literal["relevance", "rating", "year", "title"]

OVERVIEW_PLACEHOLDER = "No description available."


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class StreamingSource(_FrozenModel):
    id: str
    name: str
    offer_type: OfferType
    price: float | None = None
    quality: Quality = "HD"
    deep_link: str = ""
    logo_ref: str | None = None

    @model_validator(mode="after")
    def _price_only_for_paid_offers(self) -> "StreamingSource":
        if self.offer_type in ("subscription", "free") and self.price is not None:
            raise ValueError("price is only valid for rent or buy offers")
        return self


class Actor(_FrozenModel):
    id: str
    name: str
    character: str = ""
    image_url: str | None = None


class Movie(_FrozenModel):
    id: str
    title: str
    year: int = 0
    overview: str = OVERVIEW_PLACEHOLDER
    poster_url: str = ""
    backdrop_url: str = ""
    rating: float = 0.0
    runtime_minutes: int = 0
    genres: tuple[str, ...] = ()
    streaming_sources: tuple[StreamingSource, ...] = ()
    imdb_id: str | None = None
    external_metadata_id: str | None = None
    cast: tuple[Actor, ...] = ()
    director: str | None = None
    trailer_url: str | None = None


class SearchFilters(_FrozenModel):
    genre: str | None = None
    year: int | None = None
    min_rating: float | None = Field(default=None, ge=0, le=10)
    streaming_service: str | None = None
    sort_by: SortBy | None = None


class SearchResult(_FrozenModel):
    movies: tuple[Movie, ...] = ()
    total_results: int = 0
    page: int = 1
    total_pages: int = 0


class SearchHistoryEntry(_FrozenModel):
    query: str
    timestamp: datetime


__all__ = [
    "Actor",
    "Movie",
    "OVERVIEW_PLACEHOLDER",
    "OfferType",
    "Quality",
    "SearchFilters",
    "SearchHistoryEntry",
    "SearchResult",
    "SortBy",
    "StreamingSource",
]

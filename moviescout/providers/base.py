"""Shared pieces for provider adapters: payload schemas and partial records."""

from __future__ import annotations

from typing import Any, Type, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from moviescout.domain.models import Actor, StreamingSource
from moviescout.services.exceptions import ProviderResponseError
from moviescout.services.transport import TransportClient

PayloadT = TypeVar("PayloadT", bound="ProviderPayload")


class ProviderPayload(BaseModel):
    """Lenient schema for raw provider JSON.

    Unknown keys are ignored and explicit ``null`` values fall back to the
    field default, so a sparse payload still validates.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class AvailabilityRecord(BaseModel):
    """Canonical fields known from the availability provider alone."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    year: int = 0
    overview: str = ""
    poster_url: str = ""
    backdrop_url: str = ""
    rating: float = 0.0
    runtime_minutes: int = 0
    genres: tuple[str, ...] = ()
    streaming_sources: tuple[StreamingSource, ...] = ()
    imdb_id: str | None = None
    external_metadata_id: str | None = None


class MetadataRecord(BaseModel):
    """Canonical fields known from the metadata provider alone."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    year: int = 0
    overview: str = ""
    poster_url: str = ""
    backdrop_url: str = ""
    rating: float = 0.0
    runtime_minutes: int = 0
    genres: tuple[str, ...] = ()
    imdb_id: str | None = None
    cast: tuple[Actor, ...] = ()
    director: str | None = None
    trailer_url: str | None = None


class _RecordPage(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_results: int = 0
    page: int = 1
    total_pages: int = 0


class AvailabilityPage(_RecordPage):
    records: tuple[AvailabilityRecord, ...] = ()


class MetadataPage(_RecordPage):
    records: tuple[MetadataRecord, ...] = ()


class BaseProvider:
    name = "provider"

    def __init__(self, transport: TransportClient) -> None:
        self._transport = transport

    @staticmethod
    def _read_secret(secret: Any) -> str | None:
        if not secret:
            return None
        try:
            return secret.get_secret_value()
        except AttributeError:
            return str(secret)

    def _parse(self, schema: Type[PayloadT], payload: Any, *, context: str) -> PayloadT:
        try:
            return schema.model_validate(payload)
        except ValidationError as exc:
            raise ProviderResponseError(
                f"Unexpected {self.name} payload for {context}: {exc.error_count()} error(s)."
            ) from exc


def year_from_date(value: str) -> int:
    head = (value or "")[:4]
    return int(head) if head.isdigit() else 0


__all__ = [
    "AvailabilityPage",
    "AvailabilityRecord",
    "BaseProvider",
    "MetadataPage",
    "MetadataRecord",
    "ProviderPayload",
    "year_from_date",
]

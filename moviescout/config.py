"""Runtime configuration based on environment variables."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AnyHttpUrl, BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class TransportSettings(BaseModel):
    timeout_seconds: float = Field(default=30.0, gt=0, le=300)
    max_attempts: int = Field(default=3, ge=1, le=10)
    base_delay_seconds: float = Field(default=1.0, ge=0)
    rate_limit_max_requests: int = Field(default=100, ge=1)
    rate_limit_window_seconds: float = Field(default=60.0, gt=0)
    log_retries: bool = Field(
        default=False,
        description="Emit a warning for each retried attempt.",
    )


class _ProviderSettings(BaseModel):
    api_key: SecretStr | None = None

    @field_validator("api_key", mode="before")
    @classmethod
    def _empty_str_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class WatchmodeSettings(_ProviderSettings):
    base_url: AnyHttpUrl = Field(default="https://api.watchmode.com/v1")
    regions: str = Field(default="US", min_length=2)
    page_size: int = Field(default=20, ge=1, le=250)


class TMDBSettings(_ProviderSettings):
    base_url: AnyHttpUrl = Field(default="https://api.themoviedb.org/3")
    image_base_url: AnyHttpUrl = Field(default="https://image.tmdb.org/t/p")
    cast_limit: int = Field(default=10, ge=0, le=50)


class SearchSettings(BaseModel):
    debounce_seconds: float = Field(default=0.3, ge=0)
    min_query_length: int = Field(default=3, ge=1)
    history_limit: int = Field(default=10, ge=1, le=100)
    history_path: Path = Field(default=Path(".moviescout/storage.json"))
    history_key: str = Field(default="searchHistory", min_length=1)


class SuggestionSettings(BaseModel):
    max_suggestions: int = Field(default=6, ge=1, le=50)
    fuzzy_score_cutoff: float = Field(default=70.0, ge=0, le=100)


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MOVIESCOUT_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    environment: Literal["dev", "staging", "prod"] = "dev"
    log_level: str = "INFO"

    transport: TransportSettings = Field(default_factory=TransportSettings)
    watchmode: WatchmodeSettings = Field(default_factory=WatchmodeSettings)
    tmdb: TMDBSettings = Field(default_factory=TMDBSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    suggestions: SuggestionSettings = Field(default_factory=SuggestionSettings)


@lru_cache
def get_settings() -> AppSettings:
    """Return cached settings instance."""

    return AppSettings()


__all__ = [
    "AppSettings",
    "SearchSettings",
    "SuggestionSettings",
    "TMDBSettings",
    "TransportSettings",
    "WatchmodeSettings",
    "get_settings",
]

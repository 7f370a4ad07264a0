"""Device-local key/value storage and the recent-search history kept in it."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Callable, Sequence

from pydantic import TypeAdapter, ValidationError

from moviescout.domain.models import SearchHistoryEntry
from moviescout.logging import get_logger
from moviescout.utils.datetime import utc_now

logger = get_logger("history")

_ENTRIES = TypeAdapter(list[SearchHistoryEntry])


class LocalStorage:
    """A JSON file holding string keys, flushed on every write."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def get_item(self, key: str) -> Any:
        return self._read().get(key)

    def set_item(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove_item(self, key: str) -> None:
        data = self._read()
        if data.pop(key, None) is not None:
            self._write(data)

    def _read(self) -> dict[str, Any]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            logger.warning("local_storage_unreadable", path=str(self.path), error=str(exc))
            return {}
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("local_storage_corrupt", path=str(self.path))
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(f"{self.path.name}.tmp")
        tmp_path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        os.replace(tmp_path, self.path)


class SearchHistory:
    """Most-recent-first list of distinct submitted queries."""

    def __init__(
        self,
        storage: LocalStorage,
        *,
        key: str = "searchHistory",
        limit: int = 10,
        clock: Callable[[], Any] = utc_now,
    ) -> None:
        self._storage = storage
        self._key = key
        self._limit = limit
        self._clock = clock
        self._entries: tuple[SearchHistoryEntry, ...] = self._load()

    @property
    def entries(self) -> tuple[SearchHistoryEntry, ...]:
        return self._entries

    def add(self, query: str) -> tuple[SearchHistoryEntry, ...]:
        query = (query or "").strip()
        if not query:
            return self._entries
        entry = SearchHistoryEntry(query=query, timestamp=self._clock())
        self._entries = self._normalize([entry, *self._entries])
        self._flush()
        return self._entries

    def clear(self) -> None:
        self._entries = ()
        try:
            self._storage.remove_item(self._key)
        except OSError as exc:
            logger.error("search_history_persist_failed", key=self._key, error=str(exc))

    def _normalize(self, entries: Sequence[SearchHistoryEntry]) -> tuple[SearchHistoryEntry, ...]:
        seen: set[str] = set()
        result: list[SearchHistoryEntry] = []
        for entry in entries:
            if entry.query in seen:
                continue
            seen.add(entry.query)
            result.append(entry)
        return tuple(result[: self._limit])

    def _load(self) -> tuple[SearchHistoryEntry, ...]:
        raw = self._storage.get_item(self._key)
        if raw is None:
            return ()
        try:
            entries = _ENTRIES.validate_python(raw)
        except ValidationError:
            logger.warning("search_history_invalid", key=self._key)
            return ()
        return self._normalize(entries)

    def _flush(self) -> None:
        payload = _ENTRIES.dump_python(list(self._entries), mode="json")
        try:
            self._storage.set_item(self._key, payload)
        except OSError as exc:
            logger.error("search_history_persist_failed", key=self._key, error=str(exc))


__all__ = ["LocalStorage", "SearchHistory"]

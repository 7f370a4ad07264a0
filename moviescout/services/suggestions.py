"""Offline query suggestions built from heuristics and fuzzy matching."""

from __future__ import annotations

import re
from typing import Sequence

from rapidfuzz import fuzz, process, utils

POPULAR_SEARCHES: tuple[str, ...] = (
    "Marvel movies",
    "Netflix originals",
    "Tom Hanks movies",
    "Sci-fi from the 90s",
    "Oscar winners",
    "Action movies",
    "Comedy shows",
    "Documentaries",
)

GENRE_KEYWORDS: tuple[str, ...] = (
    "action", "adventure", "animation", "comedy", "crime", "documentary",
    "drama", "family", "fantasy", "horror", "mystery", "romance",
    "sci-fi", "science fiction", "thriller", "war", "western",
)

DECADE_KEYWORDS: tuple[str, ...] = (
    "80s", "90s", "2000s", "2010s", "2020s",
    "1980s", "1990s", "eighties", "nineties",
)

MAX_SUGGESTIONS = 6
FUZZY_SCORE_CUTOFF = 70.0

_LIKE_PATTERN = re.compile(r"like\s*", re.IGNORECASE)


def heuristic_suggestions(query: str) -> list[str]:
    lowered = query.lower()
    suggestions: list[str] = []
    if any(genre in lowered for genre in GENRE_KEYWORDS):
        suggestions += [f"Best {query} movies", f"Top rated {query}"]
    if any(decade in lowered for decade in DECADE_KEYWORDS):
        suggestions += [f"Movies from the {query}", f"Best of {query}"]
    if "like" in lowered:
        title = _LIKE_PATTERN.sub("", query, count=1).strip()
        suggestions += [f"Movies similar to {title}", f"If you liked {title}"]
    return suggestions


def fuzzy_suggestions(
    query: str,
    corpus: Sequence[str],
    score_cutoff: float = FUZZY_SCORE_CUTOFF,
) -> list[str]:
    """Corpus phrases approximately containing ``query``, best first."""

    matches = process.extract(
        query,
        corpus,
        scorer=fuzz.partial_ratio,
        processor=utils.default_process,
        score_cutoff=score_cutoff,
        limit=None,
    )
    matches.sort(key=lambda match: (-match[1], match[2]))
    return [match[0] for match in matches]


def suggest(
    partial_query: str,
    *,
    corpus: Sequence[str] = POPULAR_SEARCHES,
    limit: int = MAX_SUGGESTIONS,
    score_cutoff: float = FUZZY_SCORE_CUTOFF,
) -> list[str]:
    query = (partial_query or "").strip()
    if not query:
        return []
    lowered = query.lower()
    candidates = [
        *heuristic_suggestions(query),
        *fuzzy_suggestions(query, corpus, score_cutoff),
        *(phrase for phrase in corpus if lowered in phrase.lower()),
    ]
    return list(dict.fromkeys(candidates))[:limit]


__all__ = [
    "DECADE_KEYWORDS",
    "GENRE_KEYWORDS",
    "POPULAR_SEARCHES",
    "fuzzy_suggestions",
    "heuristic_suggestions",
    "suggest",
]

"""Application entrypoint."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any, Sequence

import httpx

from moviescout.config import AppSettings, get_settings
from moviescout.logging import configure_logging, logger
from moviescout.providers import TMDBProvider, WatchmodeProvider
from moviescout.services.aggregation import MovieAggregationService
from moviescout.services.history import LocalStorage, SearchHistory
from moviescout.services.exceptions import ServiceError
from moviescout.services.search_state import SearchOrchestrator, describe_error
from moviescout.services.suggestions import suggest
from moviescout.services.transport import TransportClient


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="moviescout", description="Search movies across providers.")
    commands = parser.add_subparsers(dest="command", required=True)

    search = commands.add_parser("search", help="Search movies by title.")
    search.add_argument("query")
    search.add_argument("--genre")
    search.add_argument("--year", type=int)
    search.add_argument("--min-rating", type=float)

    details = commands.add_parser("details", help="Show one movie with its streaming sources.")
    details.add_argument("movie_id")

    trending = commands.add_parser("trending", help="List popular movies.")
    trending.add_argument("--page", type=int, default=1)

    suggestions = commands.add_parser("suggest", help="Suggest completions for a partial query.")
    suggestions.add_argument("text")

    commands.add_parser("history", help="Show recent searches.")
    return parser


def build_services(
    http_client: httpx.AsyncClient, settings: AppSettings
) -> tuple[MovieAggregationService, SearchOrchestrator]:
    transport = TransportClient(http_client, settings.transport)
    aggregation = MovieAggregationService(
        WatchmodeProvider(transport, settings.watchmode),
        TMDBProvider(transport, settings.tmdb),
    )
    history = SearchHistory(
        LocalStorage(settings.search.history_path),
        key=settings.search.history_key,
        limit=settings.search.history_limit,
    )
    return aggregation, SearchOrchestrator(aggregation, history, settings.search)


async def main(argv: Sequence[str] | None = None, settings: AppSettings | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    if args.command == "suggest":
        _emit(
            suggest(
                args.text,
                limit=settings.suggestions.max_suggestions,
                score_cutoff=settings.suggestions.fuzzy_score_cutoff,
            )
        )
        return 0

    async with httpx.AsyncClient() as http_client:
        aggregation, orchestrator = build_services(http_client, settings)
        logger.info("moviescout_starting", command=args.command, environment=settings.environment)

        if args.command == "search":
            orchestrator.set_filters(genre=args.genre, year=args.year, min_rating=args.min_rating)
            state = await orchestrator.submit(args.query)
            _emit(state.model_dump(mode="json", exclude={"history"}))
            return 1 if state.error else 0

        if args.command == "history":
            _emit([entry.model_dump(mode="json") for entry in orchestrator.state.history])
            return 0

        try:
            if args.command == "details":
                movie = await aggregation.get_movie_details(args.movie_id)
                _emit(movie.model_dump(mode="json"))
            else:
                result = await aggregation.get_trending(args.page)
                _emit(result.model_dump(mode="json"))
        except ServiceError as exc:
            message, kind = describe_error(exc)
            logger.warning("command_failed", command=args.command, error_kind=kind, error=str(exc))
            _emit({"error": message, "error_kind": kind})
            return 1
    return 0


def _emit(payload: Any) -> None:
    sys.stdout.write(json.dumps(payload, ensure_ascii=False, indent=2))
    sys.stdout.write("\n")


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()

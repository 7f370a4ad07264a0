from moviescout.providers.tmdb import TMDBProvider
from moviescout.providers.watchmode import WatchmodeProvider

__all__ = [
    "TMDBProvider",
    "WatchmodeProvider",
]

"""Command-line recommendations against a running Moodreel server.

Usage:
    moodreel-recommend --genres Drama Thriller --mood cozy
    moodreel-recommend --favorite "Heat (1995)" --favorite "Collateral (2004)"
    moodreel-recommend --imdb-csv ratings.csv --media-type tv
"""

import argparse
import asyncio
import re
import sys

from pydantic import ValidationError

from moodreel.client.api_client import MoodreelClient
from moodreel.client.controller import RecommendationSession
from moodreel.client.display import ViewItem, project
from moodreel.client.imdb import RatingsFileError, load_ratings
from moodreel.client.state import SessionState
from moodreel.config import get_settings
from moodreel.constants import DEFAULT_MOOD
from moodreel.models.schemas import (
    FavoriteTitle,
    FavoritesInterest,
    GenresInterest,
    ImdbRatingsInterest,
    InterestVariant,
    MediaTypeEnum,
)
from moodreel.utils.logging import setup_logging

_FAVORITE_RE = re.compile(r"^(?P<title>.+?)\s*\((?P<year>\d{4})\)\s*$")


def parse_favorite(value: str) -> FavoriteTitle:
    """`"Heat (1995)"` -> FavoriteTitle(title="Heat", year=1995)."""
    match = _FAVORITE_RE.match(value)
    if match:
        return FavoriteTitle(title=match["title"], year=int(match["year"]))
    return FavoriteTitle(title=value.strip())


def build_interest(args: argparse.Namespace) -> InterestVariant:
    common = {"mood": args.mood, "media_type": MediaTypeEnum(args.media_type)}
    if args.genres:
        return GenresInterest(genres=args.genres, **common)
    if args.favorite:
        return FavoritesInterest(
            favorite_movies=[parse_favorite(f) for f in args.favorite], **common
        )
    return ImdbRatingsInterest(ratings=load_ratings(args.imdb_csv), **common)


def format_item(item: ViewItem) -> str:
    line = f"{item.index + 1:2}. {item.label}"
    if item.status == "resolved":
        if item.imdb_rating is not None:
            line += f"  [{item.imdb_rating:.1f}]"
        if item.genres:
            line += f"  {', '.join(item.genres)}"
    elif item.status == "unmatched":
        line += "  (not in catalog)"
    return line


class _Printer:
    """Prints each item once its catalog lookup settles."""

    def __init__(self) -> None:
        self.printed: set[int] = set()

    def __call__(self, state: SessionState) -> None:
        for item in project(state.recommendations, state.resolutions):
            if item.status != "loading" and item.index not in self.printed:
                self.printed.add(item.index)
                print(format_item(item))
                print(f"      {item.reason}")


async def recommend(interest: InterestVariant, server: str) -> int:
    settings = get_settings()
    async with MoodreelClient(server) as client:
        session = RecommendationSession(
            client,
            on_change=_Printer(),
            max_concurrent_lookups=settings.max_concurrent_lookups,
        )
        state = await session.run(interest)

    if state.error:
        print(f"\nError: {state.error}", file=sys.stderr)
        return 1
    if not state.recommendations:
        print("No recommendations were returned.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Get mood-based movie and TV recommendations")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--genres", nargs="+", metavar="GENRE", help="Up to three genres")
    source.add_argument(
        "--favorite", action="append", metavar='"TITLE (YEAR)"', help="A favorite title (repeatable)"
    )
    source.add_argument("--imdb-csv", metavar="PATH", help="IMDb ratings export")
    parser.add_argument("--mood", default=DEFAULT_MOOD, help="How you feel right now")
    parser.add_argument(
        "--media-type",
        choices=[m.value for m in MediaTypeEnum],
        default=MediaTypeEnum.MOVIE.value,
    )
    parser.add_argument("--server", default=None, help="Moodreel server URL")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging("DEBUG" if args.verbose else "WARNING")

    try:
        interest = build_interest(args)
    except (ValidationError, RatingsFileError, OSError) as e:
        print(f"Invalid input: {e}", file=sys.stderr)
        return 2

    server = args.server or get_settings().api_base_url
    try:
        return asyncio.run(recommend(interest, server))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())

"""Catalog lookups: title matching and substring search."""

from collections.abc import Sequence

from sqlalchemy import ColumnElement, extract, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from moodreel.constants import MAX_SEARCH_RESULTS
from moodreel.models.movie import Movie


def _like_pattern(text: str) -> str:
    """Substring pattern with LIKE wildcards in the input escaped."""
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _exact_title(title: str) -> ColumnElement[bool]:
    return func.lower(Movie.title) == title.lower()


def _fuzzy_title(title: str) -> ColumnElement[bool]:
    return Movie.title.ilike(_like_pattern(title), escape="\\")


async def _first_by_popularity(
    db: AsyncSession, *conditions: ColumnElement[bool]
) -> Movie | None:
    query = (
        select(Movie)
        .where(*conditions)
        .order_by(Movie.popularity.desc().nulls_last(), Movie.id.asc())
        .limit(1)
    )
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def match_title(db: AsyncSession, title: str, year: int | None = None) -> Movie | None:
    """Resolve a recommended (title, year) to a catalog row.

    Tries, in order: exact title in that year, substring title in that year,
    exact title any year, substring title any year. Ties go to the most
    popular row.
    """
    title = title.strip()
    if not title:
        return None

    attempts: list[tuple[ColumnElement[bool], ...]] = []
    if year is not None:
        release_year = extract("year", Movie.release_date)
        attempts.append((_exact_title(title), release_year == year))
        attempts.append((_fuzzy_title(title), release_year == year))
    attempts.append((_exact_title(title),))
    attempts.append((_fuzzy_title(title),))

    for conditions in attempts:
        movie = await _first_by_popularity(db, *conditions)
        if movie is not None:
            return movie
    return None


async def search_titles(
    db: AsyncSession, query: str, limit: int = MAX_SEARCH_RESULTS
) -> Sequence[Movie]:
    """Titles containing `query` (case-insensitive), most popular first."""
    term = query.strip()
    if not term:
        return []

    stmt = (
        select(Movie)
        .where(_fuzzy_title(term))
        .order_by(Movie.popularity.desc().nulls_last(), Movie.title.asc())
        .limit(min(limit, MAX_SEARCH_RESULTS))
    )
    result = await db.execute(stmt)
    return result.scalars().all()

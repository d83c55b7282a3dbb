"""Catalog endpoints: title matching, search and trailer lookup."""

import threading
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from moodreel.constants import (
    CACHE_TTL_SEARCH,
    DEFAULT_SEARCH_RESULTS,
    MAX_SEARCH_RESULTS,
    SEARCH_CACHE_MAX_SIZE,
    SEARCH_MAX_LENGTH,
)
from moodreel.db import get_db
from moodreel.db.crud import match_title, search_titles
from moodreel.models.schemas import CatalogEntry, MatchRequest, MovieDetail, TrailerResponse
from moodreel.services.metadata.youtube import YouTubeService, youtube_service
from moodreel.utils.logging import get_logger
from moodreel.utils.metrics import metrics

logger = get_logger(__name__)

router = APIRouter()


class _CatalogSearchCache:
    """Recent catalog search results, keyed by lowercased term and limit.

    Entries expire after CACHE_TTL_SEARCH; when full, the least recently
    read entry is evicted. Safe to share between threads.
    """

    def __init__(self, ttl: timedelta, max_size: int) -> None:
        self.ttl = ttl
        self.max_size = max_size
        self._entries: OrderedDict[tuple[str, int], tuple[list[CatalogEntry], datetime]] = (
            OrderedDict()
        )
        self._lock = threading.Lock()

    def get(self, term: str, limit: int) -> list[CatalogEntry] | None:
        key = (term.lower(), limit)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            results, stored_at = entry
            if datetime.now() - stored_at >= self.ttl:
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return results

    def put(self, term: str, limit: int, results: list[CatalogEntry]) -> None:
        key = (term.lower(), limit)
        with self._lock:
            self._entries.pop(key, None)
            while len(self._entries) >= self.max_size:
                self._entries.popitem(last=False)
            self._entries[key] = (results, datetime.now())

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


_search_cache = _CatalogSearchCache(timedelta(seconds=CACHE_TTL_SEARCH), SEARCH_CACHE_MAX_SIZE)


def clear_search_cache() -> None:
    _search_cache.clear()


def get_youtube_service() -> YouTubeService:
    return youtube_service


@router.get("/search", response_model=list[CatalogEntry])
async def search_movies(
    q: Annotated[str, Query(min_length=1, max_length=SEARCH_MAX_LENGTH)],
    limit: Annotated[int, Query(ge=1, le=MAX_SEARCH_RESULTS)] = DEFAULT_SEARCH_RESULTS,
    db: Annotated[AsyncSession, Depends(get_db)] = None,
) -> list[CatalogEntry]:
    """Catalog titles containing `q`, most popular first."""
    term = q.strip()
    cached = _search_cache.get(term, limit)
    if cached is not None:
        return cached

    movies = await search_titles(db, term, limit=limit)
    results = [CatalogEntry.from_movie(movie) for movie in movies]
    _search_cache.put(term, limit, results)
    return results


@router.post("/match", response_model=MovieDetail)
async def match_movie(
    payload: MatchRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> MovieDetail:
    """Resolve a recommended title (and optional year) to catalog details."""
    movie = await match_title(db, payload.title, payload.year)
    if movie is None:
        metrics.catalog_matches_total.inc(result="not_found")
        logger.info(f"No catalog match for {payload.title!r} ({payload.year})")
        raise HTTPException(status_code=404, detail="Movie not found")

    metrics.catalog_matches_total.inc(result="matched")
    return MovieDetail.from_movie(movie)


@router.get("/trailer", response_model=TrailerResponse)
async def find_trailer(
    title: Annotated[str, Query(min_length=1, max_length=500)],
    year: int | None = None,
    youtube: Annotated[YouTubeService, Depends(get_youtube_service)] = None,
) -> TrailerResponse:
    """Best-effort YouTube trailer lookup."""
    video_id = await youtube.find_trailer(title, year)
    if video_id is None:
        raise HTTPException(status_code=404, detail="Trailer not found")
    return TrailerResponse(video_id=video_id, url=youtube.watch_url(video_id))

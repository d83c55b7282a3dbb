"""What the user sees: the recommendation list merged with catalog details."""

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Literal

from moodreel.client.types import Recommendation, ResolutionRecord, ResolutionStatus
from moodreel.utils.logging import get_logger

logger = get_logger(__name__)

ViewStatus = Literal["loading", "resolved", "unmatched"]


@dataclass(frozen=True)
class ViewItem:
    index: int
    title: str
    year: int | None
    reason: str
    status: ViewStatus
    description: str | None = None
    genres: tuple[str, ...] = ()
    imdb_id: str | None = None
    imdb_link: str | None = None
    imdb_rating: float | None = None
    poster_path: str | None = None
    backdrop_path: str | None = None
    media_type: str | None = None

    @property
    def label(self) -> str:
        return f"{self.title} ({self.year})" if self.year else self.title


def _view_item(index: int, rec: Recommendation, record: ResolutionRecord | None) -> ViewItem:
    if record is None or record.status is ResolutionStatus.PENDING:
        return ViewItem(index, rec.title, rec.year, rec.reason, "loading")
    if record.status is ResolutionStatus.FAILED or record.detail is None:
        return ViewItem(index, rec.title, rec.year, rec.reason, "unmatched")

    detail = record.detail
    return ViewItem(
        index=index,
        title=detail.title or rec.title,
        year=detail.year if detail.year is not None else rec.year,
        reason=rec.reason,
        status="resolved",
        description=detail.description,
        genres=tuple(detail.genres),
        imdb_id=detail.imdb_id,
        imdb_link=detail.imdb_link,
        imdb_rating=detail.imdb_rating,
        poster_path=detail.poster_path,
        backdrop_path=detail.backdrop_path,
        media_type=detail.media_type,
    )


def project(
    recommendations: tuple[Recommendation, ...],
    resolutions: Mapping[int, ResolutionRecord],
) -> list[ViewItem]:
    """One ViewItem per recommendation, in recommendation order."""
    return [
        _view_item(index, rec, resolutions.get(index))
        for index, rec in enumerate(recommendations)
    ]


FindTrailer = Callable[[str, int | None], Awaitable[str | None]]


@dataclass
class TrailerLookups:
    """User-triggered trailer searches; one in flight per index, results kept."""

    find_trailer: FindTrailer
    results: dict[int, str | None] = field(default_factory=dict)
    _in_flight: dict[int, asyncio.Task] = field(default_factory=dict)

    def request(self, index: int, title: str, year: int | None) -> asyncio.Task:
        """Start (or join) the lookup for `index`. The task yields a video id or None."""
        task = self._in_flight.get(index)
        if task is not None:
            return task
        task = asyncio.create_task(self._lookup(index, title, year))
        self._in_flight[index] = task
        return task

    async def _lookup(self, index: int, title: str, year: int | None) -> str | None:
        try:
            video_id = await self.find_trailer(title, year)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.info(f"Trailer lookup for {title!r} failed: {e}")
            video_id = None
        finally:
            self._in_flight.pop(index, None)
        self.results[index] = video_id
        return video_id

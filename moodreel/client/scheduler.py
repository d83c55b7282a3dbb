"""Decides which recommendations to look up in the catalog, and starts the lookups.

The last element of a list that is still streaming may be a prefix of its
final self (`"Inter"` before `"Interstellar"`), so it is never resolved until
another element follows it or the stream ends.
"""

import asyncio
from collections.abc import Awaitable, Callable, Collection

from moodreel.client.state import (
    SessionStore,
    lookup_failed,
    lookup_resolved,
    lookup_scheduled,
)
from moodreel.client.types import Recommendation
from moodreel.models.schemas import MovieDetail
from moodreel.utils.logging import get_logger

logger = get_logger(__name__)

MatchTitle = Callable[[str, int | None], Awaitable[MovieDetail | None]]


def indices_to_resolve(length: int, scheduled: Collection[int], final: bool) -> list[int]:
    """Indices that became safe to resolve and have not been scheduled yet."""
    limit = length if final else length - 1
    return [i for i in range(max(limit, 0)) if i not in scheduled]


class ResolutionScheduler:
    """Spawns one lookup task per eligible index and records its outcome."""

    def __init__(
        self,
        store: SessionStore,
        match_title: MatchTitle,
        max_concurrent: int | None = None,
    ) -> None:
        self.store = store
        self.match_title = match_title
        self._semaphore = asyncio.Semaphore(max_concurrent) if max_concurrent else None
        self._tasks: dict[int, asyncio.Task] = {}

    def update(self, final: bool = False) -> list[int]:
        """Schedule every newly eligible index. Returns the indices scheduled."""
        state = self.store.state
        indices = indices_to_resolve(
            len(state.recommendations), state.resolutions.keys(), final
        )
        for index in indices:
            self.store.apply(lookup_scheduled, index)
            self._tasks[index] = asyncio.create_task(
                self._resolve(index, state.recommendations[index]), name=f"match-title-{index}"
            )
        return indices

    def abandon_tail(self) -> int | None:
        """Mark the unscheduled last element failed without looking it up.

        Used when the stream breaks, since the tail may be cut off mid-value.
        """
        state = self.store.state
        index = len(state.recommendations) - 1
        if index < 0 or index in state.resolutions:
            return None
        logger.info(f"Not resolving truncated item {state.recommendations[index].title!r}")
        self.store.apply(lookup_scheduled, index)
        self.store.apply(lookup_failed, index)
        return index

    async def _resolve(self, index: int, rec: Recommendation) -> None:
        try:
            if self._semaphore is None:
                detail = await self.match_title(rec.title, rec.year)
            else:
                async with self._semaphore:
                    detail = await self.match_title(rec.title, rec.year)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Lookup for {rec.title!r} ({rec.year}) failed: {e}")
            self.store.apply(lookup_failed, index)
            return

        if detail is None:
            logger.debug(f"No catalog match for {rec.title!r} ({rec.year})")
            self.store.apply(lookup_failed, index)
        else:
            self.store.apply(lookup_resolved, index, detail)

    @property
    def outstanding(self) -> int:
        return sum(1 for task in self._tasks.values() if not task.done())

    async def drain(self) -> None:
        """Wait for every lookup started so far."""
        if self._tasks:
            await asyncio.gather(*self._tasks.values(), return_exceptions=True)

    def cancel(self) -> None:
        for task in self._tasks.values():
            task.cancel()

"""Runs one recommendation submission from request to resolved list."""

import asyncio
from contextlib import aclosing
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Protocol

from moodreel.client.decoder import IncrementalJSONDecoder
from moodreel.client.display import ViewItem, project
from moodreel.client.errors import StreamTransportError, UpstreamError
from moodreel.client.events import extract_content
from moodreel.client.scheduler import ResolutionScheduler
from moodreel.client.state import (
    SessionState,
    SessionStore,
    recommendations_received,
    stream_failed,
    stream_finished,
)
from moodreel.client.types import DataLine, StreamEvent
from moodreel.constants import SSE_DONE
from moodreel.models.schemas import InterestVariant, MovieDetail
from moodreel.utils.logging import get_logger

logger = get_logger(__name__)


class RecommendationSource(Protocol):
    def stream_recommendations(self, interest: InterestVariant) -> AsyncIterator[StreamEvent]: ...

    def match_title(self, title: str, year: int | None) -> Awaitable[MovieDetail | None]: ...


class RecommendationSession:
    """Consumes the event stream, decodes it, and resolves items as they settle.

    `on_change` is called with the new SessionState after every transition,
    from the event loop thread.
    """

    def __init__(
        self,
        source: RecommendationSource,
        on_change: Callable[[SessionState], None] | None = None,
        max_concurrent_lookups: int | None = None,
    ) -> None:
        self.source = source
        self.store = SessionStore(on_change)
        self.max_concurrent_lookups = max_concurrent_lookups
        self.scheduler: ResolutionScheduler | None = None

    @property
    def state(self) -> SessionState:
        return self.store.state

    def items(self) -> list[ViewItem]:
        return project(self.state.recommendations, self.state.resolutions)

    async def run(self, interest: InterestVariant, wait_for_lookups: bool = True) -> SessionState:
        """Submit `interest` and return the session state once the stream ends.

        With `wait_for_lookups`, also waits until every catalog lookup settles.
        """
        if self.scheduler is not None:
            self.scheduler.cancel()
        self.store.reset()
        decoder = IncrementalJSONDecoder()
        scheduler = ResolutionScheduler(
            self.store, self.source.match_title, self.max_concurrent_lookups
        )
        self.scheduler = scheduler

        try:
            await self._consume(interest, decoder, scheduler)
        except (UpstreamError, StreamTransportError) as e:
            logger.error(f"Recommendation stream failed: {e}")
            self.store.apply(stream_failed, str(e))
            # The tail may have been cut off mid-value.
            scheduler.update()
            scheduler.abandon_tail()
        except asyncio.CancelledError:
            scheduler.cancel()
            raise
        else:
            self.store.apply(stream_finished)
            # The sentinel was seen, so the last element is settled too.
            self._merge(decoder.finish())
            scheduler.update(final=True)

        if wait_for_lookups:
            await scheduler.drain()
        return self.state

    async def _consume(
        self,
        interest: InterestVariant,
        decoder: IncrementalJSONDecoder,
        scheduler: ResolutionScheduler,
    ) -> None:
        async with aclosing(self.source.stream_recommendations(interest)) as events:
            async for event in events:
                if not isinstance(event, DataLine):
                    return
                content = extract_content(event.payload)
                if not content:
                    continue
                if self._merge(decoder.feed(content)):
                    scheduler.update()
        raise StreamTransportError(f"stream ended before {SSE_DONE}")

    def _merge(self, recommendations) -> bool:
        if recommendations == self.state.recommendations:
            return False
        self.store.apply(recommendations_received, recommendations)
        return True

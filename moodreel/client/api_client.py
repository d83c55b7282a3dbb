"""httpx client for the Moodreel HTTP API."""

from collections.abc import AsyncIterator

import httpx

from moodreel.client.errors import StreamTransportError
from moodreel.client.events import iter_events
from moodreel.client.types import StreamEvent
from moodreel.constants import API_TIMEOUT_DEFAULT
from moodreel.models.schemas import CatalogEntry, InterestVariant, MovieDetail
from moodreel.utils.logging import get_logger

logger = get_logger(__name__)


class MoodreelClient:
    """Talks to a running Moodreel server.

    Use as an async context manager, or pass in a preconfigured
    `httpx.AsyncClient` (e.g. one bound to an ASGI app in tests).
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=API_TIMEOUT_DEFAULT,
        )

    async def __aenter__(self) -> "MoodreelClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def stream_recommendations(
        self, interest: InterestVariant
    ) -> AsyncIterator[StreamEvent]:
        """Submit an interest request and yield its events up to the sentinel.

        Raises StreamTransportError if the stream cannot be opened or breaks.
        """
        try:
            async with self.client.stream(
                "POST",
                "/api/recommendations",
                json=interest.model_dump(mode="json"),
                headers={"Accept": "text/event-stream"},
                timeout=httpx.Timeout(API_TIMEOUT_DEFAULT, read=None),
            ) as response:
                if response.status_code != 200:
                    body = (await response.aread()).decode("utf-8", errors="replace")
                    logger.error(f"Recommendation request rejected: {response.status_code} {body}")
                    raise StreamTransportError(
                        f"Recommendation request failed with status {response.status_code}",
                        status=response.status_code,
                    )
                async for event in iter_events(response.aiter_lines()):
                    yield event
        except httpx.HTTPError as e:
            raise StreamTransportError(f"Recommendation stream failed: {e}") from e

    async def match_title(self, title: str, year: int | None) -> MovieDetail | None:
        """Catalog details for a title, or None when the catalog has no match."""
        response = await self.client.post(
            "/api/movies/match", json={"title": title, "year": year}
        )
        if response.status_code == 404:
            return None
        response.raise_for_status()
        return MovieDetail.model_validate(response.json())

    async def search_titles(self, query: str, limit: int | None = None) -> list[CatalogEntry]:
        params: dict[str, str | int] = {"q": query}
        if limit is not None:
            params["limit"] = limit
        response = await self.client.get("/api/movies/search", params=params)
        response.raise_for_status()
        return [CatalogEntry.model_validate(item) for item in response.json()]

    async def find_trailer(self, title: str, year: int | None = None) -> str | None:
        """YouTube video id of the title's trailer, if one was found."""
        params: dict[str, str | int] = {"title": title}
        if year is not None:
            params["year"] = year
        response = await self.client.get("/api/movies/trailer", params=params)
        if response.status_code == 404:
            return None
        response.raise_for_status()
        return response.json()["video_id"]

"""Best-effort trailer lookup by scraping a YouTube search results page."""

import json
import re
from collections.abc import Iterator
from typing import Any

import httpx

from moodreel.constants import YOUTUBE_SEARCH_URL, YOUTUBE_WATCH_URL
from moodreel.utils.http_client import get_general_client
from moodreel.utils.logging import get_logger
from moodreel.utils.retry import with_retry

logger = get_logger(__name__)

_INITIAL_DATA_PATTERNS = [
    re.compile(r"var\s+ytInitialData\s*=\s*({.+?});\s*</script>", re.DOTALL),
    re.compile(r'window\["ytInitialData"\]\s*=\s*({.+?});\s*</script>', re.DOTALL),
]

_RENDERER_KEYS = ("videoRenderer", "compactVideoRenderer")


def extract_initial_data(html: str) -> dict[str, Any] | None:
    """Pull the ytInitialData JSON blob out of a results page."""
    for pattern in _INITIAL_DATA_PATTERNS:
        match = pattern.search(html)
        if not match:
            continue
        try:
            return json.loads(match.group(1))
        except json.JSONDecodeError:
            logger.debug("ytInitialData matched but is not valid JSON")
    return None


def _iter_video_ids(node: Any) -> Iterator[str]:
    """Video ids of video renderers, in page order."""
    stack = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, dict):
            for key in _RENDERER_KEYS:
                renderer = current.get(key)
                if isinstance(renderer, dict) and renderer.get("videoId"):
                    yield renderer["videoId"]
            stack.extend(reversed(list(current.values())))
        elif isinstance(current, list):
            stack.extend(reversed(current))


def first_video_id(html: str) -> str | None:
    """First video result on a search results page, if any."""
    data = extract_initial_data(html)
    if data is None:
        return None
    return next(_iter_video_ids(data.get("contents", data)), None)


class YouTubeService:
    """Looks up trailers on YouTube without an API key."""

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client or get_general_client()

    @with_retry(operation_name="youtube_search")
    async def _fetch_results_page(self, query: str) -> httpx.Response:
        return await self.client.get(
            YOUTUBE_SEARCH_URL,
            params={"search_query": query},
            headers={"Accept-Language": "en-US,en;q=0.9"},
        )

    async def find_trailer(self, title: str, year: int | None = None) -> str | None:
        """Return the video id of the first search hit for the title's trailer."""
        query = " ".join(part for part in (title, str(year) if year else "", "trailer") if part)
        response = await self._fetch_results_page(query)
        if response is None or response.status_code != 200:
            return None

        video_id = first_video_id(response.text)
        if video_id is None:
            logger.info(f"No trailer found for {query!r}")
        return video_id

    @staticmethod
    def watch_url(video_id: str) -> str:
        return f"{YOUTUBE_WATCH_URL}?v={video_id}"


# Singleton instance
youtube_service = YouTubeService()

"""Turn the server's SSE body into StreamEvents and completion chunks into text."""

import json
from collections.abc import AsyncIterable, AsyncIterator
from typing import Any

from moodreel.client.errors import StreamTransportError, UpstreamError
from moodreel.client.types import SENTINEL, DataLine, StreamEvent
from moodreel.constants import SSE_DONE
from moodreel.utils.logging import get_logger

logger = get_logger(__name__)


def parse_line(line: str) -> StreamEvent | None:
    """One SSE line -> event. Blank, comment, and non-data fields give None."""
    line = line.rstrip("\r\n")
    if not line.startswith("data:"):
        return None
    payload = line[len("data:"):].strip()
    if payload == SSE_DONE:
        return SENTINEL
    if not payload:
        return None
    return DataLine(payload)


async def iter_events(lines: AsyncIterable[str]) -> AsyncIterator[StreamEvent]:
    """Events from SSE lines, ending after the first sentinel.

    Raises StreamTransportError if the lines run out before the sentinel.
    """
    async for line in lines:
        event = parse_line(line)
        if event is None:
            continue
        yield event
        if event is SENTINEL:
            return
    raise StreamTransportError(f"stream ended before {SSE_DONE}")


def extract_content(payload: str) -> str:
    """Text fragment carried by one streamed chat-completion chunk.

    Raises UpstreamError when the payload is an in-band error event.
    Chunks without content (role announcements, usage, keep-alives) give "".
    """
    try:
        data: Any = json.loads(payload)
    except json.JSONDecodeError:
        logger.warning(f"Skipping undecodable stream payload: {payload[:200]!r}")
        return ""

    if not isinstance(data, dict):
        return ""
    if "error" in data:
        raise UpstreamError.from_payload(data)

    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    choice = choices[0]
    if not isinstance(choice, dict):
        return ""
    delta = choice.get("delta") or {}
    content = delta.get("content") if isinstance(delta, dict) else None
    return content if isinstance(content, str) else ""

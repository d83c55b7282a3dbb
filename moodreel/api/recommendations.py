"""Recommendation endpoint: relays the LLM token stream as server-sent events."""

import uuid
from contextlib import aclosing
from typing import Annotated

from fastapi import APIRouter, Body, Depends, Request
from sse_starlette.sse import EventSourceResponse

from moodreel.config import get_settings
from moodreel.constants import SSE_PING_INTERVAL
from moodreel.models.schemas import InterestVariant
from moodreel.services.llm import StreamRelay, build_chat_completion
from moodreel.utils.http_client import get_llm_client
from moodreel.utils.logging import LogContext, get_logger

logger = get_logger(__name__)

router = APIRouter()


def get_stream_relay() -> StreamRelay:
    """Relay bound to the configured LLM endpoint."""
    settings = get_settings()
    return StreamRelay(get_llm_client(), settings.llm_api_url, settings.llm_api_key)


@router.post("")
async def create_recommendations(
    request: Request,
    interest: Annotated[InterestVariant, Body(discriminator="interest_type")],
    relay: Annotated[StreamRelay, Depends(get_stream_relay)],
) -> EventSourceResponse:
    """Stream recommendations for the given interests.

    The body is validated before anything is streamed (422 on failure). The
    response is a `text/event-stream` of upstream completion chunks ending
    with `data: [DONE]`.
    """
    settings = get_settings()
    body = build_chat_completion(interest, settings.llm_model)
    stream_id = uuid.uuid4().hex[:8]
    log = LogContext(logger, stream=stream_id)
    log.info(
        "Starting recommendations (interest=%s, media_type=%s)",
        interest.interest_type,
        interest.media_type.value,
    )
    log.debug("Prompt: %s", body.messages[1].content)

    async def event_generator():
        async with aclosing(relay.events(body, stream_id=stream_id)) as events:
            async for payload in events:
                if await request.is_disconnected():
                    log.info("Client disconnected")
                    break
                yield payload

    return EventSourceResponse(
        event_generator(),
        sep="\n",
        ping=SSE_PING_INTERVAL,
        headers={"Cache-Control": "no-cache"},
    )

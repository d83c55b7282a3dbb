"""Shared persistent httpx clients for outbound calls.

The LLM client has no read timeout: a generation may pause for a long time
between chunks, and the relay ends when the upstream body ends.
"""

from collections.abc import Callable

import httpx

from moodreel.constants import API_TIMEOUT_EXTERNAL, LLM_CONNECT_TIMEOUT

_POOL_LIMITS = httpx.Limits(
    max_connections=50,
    max_keepalive_connections=10,
    keepalive_expiry=30,
)

_clients: dict[str, httpx.AsyncClient] = {}


def _shared(name: str, factory: Callable[[], httpx.AsyncClient]) -> httpx.AsyncClient:
    client = _clients.get(name)
    if client is None or client.is_closed:
        client = _clients[name] = factory()
    return client


def get_llm_client() -> httpx.AsyncClient:
    """Client for streaming chat completions."""
    return _shared(
        "llm",
        lambda: httpx.AsyncClient(
            timeout=httpx.Timeout(LLM_CONNECT_TIMEOUT, read=None),
            limits=_POOL_LIMITS,
        ),
    )


def get_general_client() -> httpx.AsyncClient:
    """Client for other external calls (YouTube)."""
    return _shared(
        "general",
        lambda: httpx.AsyncClient(
            timeout=API_TIMEOUT_EXTERNAL,
            limits=_POOL_LIMITS,
            follow_redirects=True,
        ),
    )


async def close_all_clients() -> None:
    """Close every shared client. Called on application shutdown."""
    while _clients:
        _, client = _clients.popitem()
        await client.aclose()

"""Relay an upstream streaming chat completion to the client as SSE payloads.

`StreamRelay.events` yields the payload of every upstream `data:` line
unchanged, then exactly one `[DONE]` sentinel. The HTTP layer wraps each
payload in `data: ...` framing (see `moodreel.api.recommendations`).
"""

import asyncio
import json
import time
import uuid
from collections.abc import AsyncIterator

import httpx

from moodreel.constants import SSE_DONE
from moodreel.models.schemas import ChatCompletionBody
from moodreel.utils.logging import LogContext, get_logger
from moodreel.utils.metrics import metrics

logger = get_logger(__name__)

_FRAMING_PREFIXES = ("event:", "id:", "retry:", ":")


def error_payload(message: str, **extra) -> str:
    """In-band error event body."""
    return json.dumps({"error": message, **extra})


class StreamRelay:
    """One upstream LLM stream per call to `events`."""

    def __init__(self, client: httpx.AsyncClient, api_url: str, api_key: str) -> None:
        self.client = client
        self.api_url = api_url
        self.api_key = api_key

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "text/event-stream",
            "Authorization": f"Bearer {self.api_key}",
        }

    @staticmethod
    def _data_payload(line: str, log: LogContext) -> str | None:
        """Return the payload of a `data:` line; log and drop anything else."""
        line = line.strip()
        if not line:
            return None
        if line.startswith("data:"):
            return line[len("data:"):].strip()
        if line.startswith(_FRAMING_PREFIXES):
            log.debug("Dropping SSE framing line: %s", line)
        else:
            log.warning("Unexpected LLM API output line: %s", line)
        return None

    async def events(
        self, body: ChatCompletionBody, stream_id: str | None = None
    ) -> AsyncIterator[str]:
        """Stream upstream payloads, ending with a single sentinel.

        Upstream failures become one error payload followed by the sentinel.
        A client disconnect cancels the generator; the upstream response is
        closed by the `async with` block and nothing is reported.
        """
        log = LogContext(logger, stream=stream_id or uuid.uuid4().hex[:8])
        outcome = "completed"
        started = time.monotonic()
        metrics.recommendation_streams_in_progress.inc()

        try:
            async with self.client.stream(
                "POST",
                self.api_url,
                json=body.model_dump(),
                headers=self._headers(),
            ) as response:
                if response.status_code != 200:
                    details = (await response.aread()).decode("utf-8", errors="replace")
                    log.error("LLM API Error: %s - %s", response.status_code, details)
                    outcome = "upstream_error"
                    yield error_payload(
                        "API request failed", status=response.status_code, details=details
                    )
                    yield SSE_DONE
                    return

                forwarded = 0
                async for line in response.aiter_lines():
                    payload = self._data_payload(line, log)
                    if payload is None:
                        continue
                    if payload == SSE_DONE:
                        # Upstream's own sentinel; ours is sent once the body ends.
                        continue
                    forwarded += 1
                    yield payload

                log.info("Upstream stream finished after %d chunks", forwarded)

            yield SSE_DONE

        except (asyncio.CancelledError, GeneratorExit):
            outcome = "client_disconnect"
            log.info("Client disconnected, upstream stream released")
            raise

        except httpx.HTTPError as e:
            outcome = "transport_error"
            log.error("LLM request failed: %s", repr(e))
            yield error_payload("LLM request failed", details=str(e))
            yield SSE_DONE

        except Exception as e:
            outcome = "error"
            log.exception("Recommendation stream error")
            yield error_payload(f"An internal server error occurred: {e}")
            yield SSE_DONE

        finally:
            metrics.recommendation_streams_in_progress.dec()
            metrics.recommendation_streams_total.inc(outcome=outcome)
            metrics.llm_stream_duration_seconds.observe(time.monotonic() - started)

"""Tests for retry with exponential backoff."""

import httpx
import pytest

from moodreel.utils import retry
from moodreel.utils.retry import RetryConfig, retry_async, with_retry


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    delays: list[float] = []

    async def fake_sleep(delay: float) -> None:
        delays.append(delay)

    monkeypatch.setattr(retry.asyncio, "sleep", fake_sleep)
    return delays


class TestRetryAsync:
    @pytest.mark.asyncio
    async def test_retries_transient_errors(self, no_sleep):
        calls = []

        async def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise httpx.ConnectError("refused")
            return "ok"

        assert await retry_async(flaky, operation_name="flaky") == "ok"
        assert len(calls) == 3
        assert no_sleep == [0.5, 1.0]

    @pytest.mark.asyncio
    async def test_retryable_status_then_give_up(self, no_sleep):
        async def unavailable():
            return httpx.Response(503)

        assert await retry_async(unavailable, config=RetryConfig(max_retries=1)) is None
        assert no_sleep == [0.5]

    @pytest.mark.asyncio
    async def test_non_retryable_status_returned(self, no_sleep):
        async def forbidden():
            return httpx.Response(403)

        response = await retry_async(forbidden)
        assert response.status_code == 403
        assert no_sleep == []

    @pytest.mark.asyncio
    async def test_other_exceptions_propagate(self):
        @with_retry()
        async def broken():
            raise ValueError("bad input")

        with pytest.raises(ValueError):
            await broken()

    def test_delay_is_capped(self):
        config = RetryConfig(base_delay=1.0, max_delay=5.0)
        assert [config.delay_for(i) for i in range(4)] == [1.0, 2.0, 4.0, 5.0]

"""Retry with exponential backoff for idempotent external calls.

Only safe-to-repeat lookups go through here. LLM completions are never
retried.
"""

import asyncio
import logging
from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable

import httpx

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryConfig:
    max_retries: int = 2
    base_delay: float = 0.5  # seconds
    max_delay: float = 8.0  # seconds
    exponential_base: float = 2.0
    retryable_exceptions: tuple[type[BaseException], ...] = (
        httpx.TimeoutException,
        httpx.NetworkError,
        ConnectionError,
        TimeoutError,
    )
    retryable_status_codes: frozenset[int] = frozenset({429, 500, 502, 503, 504})

    def delay_for(self, attempt: int) -> float:
        return min(self.base_delay * self.exponential_base**attempt, self.max_delay)


DEFAULT_RETRY_CONFIG = RetryConfig()


async def retry_async(
    func: Callable[..., Any],
    *args: Any,
    config: RetryConfig = DEFAULT_RETRY_CONFIG,
    operation_name: str = "operation",
    **kwargs: Any,
) -> Any | None:
    """Await `func(*args, **kwargs)`, retrying transient failures.

    A transient failure is one of `config.retryable_exceptions`, or an
    `httpx.Response` whose status is in `config.retryable_status_codes`.
    Returns None once every attempt has failed; other exceptions propagate.
    """
    attempts = config.max_retries + 1

    for attempt in range(attempts):
        try:
            result = await func(*args, **kwargs)
        except config.retryable_exceptions as e:
            failure = f"{type(e).__name__}: {e}"
        else:
            retryable = (
                isinstance(result, httpx.Response)
                and result.status_code in config.retryable_status_codes
            )
            if not retryable:
                return result
            failure = f"status {result.status_code}"

        if attempt == config.max_retries:
            logger.error(f"{operation_name}: giving up after {attempts} attempts ({failure})")
            return None

        delay = config.delay_for(attempt)
        logger.warning(
            f"{operation_name}: {failure}, retry {attempt + 1}/{config.max_retries} in {delay:.1f}s"
        )
        await asyncio.sleep(delay)

    return None


def with_retry(config: RetryConfig = DEFAULT_RETRY_CONFIG, operation_name: str | None = None):
    """Decorator form of retry_async."""

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        name = operation_name or func.__name__

        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any | None:
            return await retry_async(func, *args, config=config, operation_name=name, **kwargs)

        return wrapper

    return decorator

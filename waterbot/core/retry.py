"""
Bounded retry with exponential backoff and jitter for external calls.

Only transient faults are retried: timeouts, connection errors, HTTP 429 and
5xx. Everything else (including bad model output) is raised on first sight.
"""

import asyncio
import logging
import random
from typing import Awaitable, Callable, TypeVar

import httpx
import openai
from ddgs.exceptions import RatelimitException, TimeoutException as SearchTimeoutException

from waterbot.core.config import EXTERNAL_RETRIES, RETRY_BACKOFF_BASE

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TRANSIENT_CLIENT_ERRORS = (
    openai.APITimeoutError,
    openai.APIConnectionError,
    openai.RateLimitError,
    openai.InternalServerError,
    RatelimitException,
    SearchTimeoutException,
)


def is_transient(exc: BaseException) -> bool:
    if isinstance(exc, (httpx.TimeoutException, httpx.TransportError)):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    if isinstance(exc, _TRANSIENT_CLIENT_ERRORS):
        return True
    return False


def backoff_delay(attempt: int, base: float) -> float:
    jitter = random.uniform(0, base / 4) if base > 0 else 0.0
    return base * (2**attempt) + jitter


async def retry_async(
    call: Callable[[], Awaitable[T]],
    *,
    name: str,
    retries: int | None = None,
    backoff_base: float | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Await ``call()``; on a transient fault, retry up to ``retries`` more times."""
    max_retries = EXTERNAL_RETRIES if retries is None else max(0, retries)
    base = RETRY_BACKOFF_BASE if backoff_base is None else max(0.0, backoff_base)
    attempt = 0
    while True:
        try:
            return await call()
        except Exception as e:
            if attempt >= max_retries or not is_transient(e):
                raise
            delay = backoff_delay(attempt, base)
            logger.warning("[retry:%s] attempt=%d failed (%s); retrying in %.2fs", name, attempt + 1, e.__class__.__name__, delay)
            await sleep(delay)
            attempt += 1

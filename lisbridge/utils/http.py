"""HTTP utilities providing retry/backoff semantics."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Awaitable, Callable

import httpx

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})
_MAX_RETRY_AFTER_SECONDS = 30.0


class RetryConfig:
    def __init__(
        self,
        *,
        attempts: int = 3,
        backoff_seconds: float = 1.0,
        jitter_seconds: float = 0.25,
    ) -> None:
        self.attempts = max(1, attempts)
        self.backoff_seconds = backoff_seconds
        self.jitter_seconds = jitter_seconds

    def delay_for(self, attempt: int) -> float:
        jitter = random.uniform(0, self.jitter_seconds) if self.jitter_seconds else 0.0
        return self.backoff_seconds * attempt + jitter


NO_RETRY = RetryConfig(attempts=1, backoff_seconds=0.0, jitter_seconds=0.0)


def _retry_after_seconds(response: httpx.Response) -> float | None:
    raw = response.headers.get("Retry-After")
    if not raw:
        return None
    try:
        return min(float(raw), _MAX_RETRY_AFTER_SECONDS)
    except ValueError:
        return None


async def request_with_retry(
    func: Callable[..., Awaitable[httpx.Response]],
    *args,
    retry_config: RetryConfig | None = None,
    **kwargs,
) -> httpx.Response:
    """
    Invoke ``func`` and retry on transport errors, 429 and 5xx responses.

    The final response is returned whatever its status so callers can map it
    onto their own error types; transport errors surface once attempts run out.
    """
    config = retry_config or RetryConfig()
    attempt = 0

    while True:
        attempt += 1
        try:
            response = await func(*args, **kwargs)
        except httpx.TransportError as exc:
            if attempt >= config.attempts:
                raise
            delay = config.delay_for(attempt)
            logger.warning(
                "Transport error on attempt %s/%s (%s); retrying in %.2fs",
                attempt,
                config.attempts,
                exc,
                delay,
            )
            await asyncio.sleep(delay)
            continue

        if response.status_code not in RETRYABLE_STATUS_CODES or attempt >= config.attempts:
            return response

        delay = _retry_after_seconds(response)
        if delay is None:
            delay = config.delay_for(attempt)
        logger.warning(
            "Upstream returned %s on attempt %s/%s; retrying in %.2fs",
            response.status_code,
            attempt,
            config.attempts,
            delay,
        )
        await asyncio.sleep(delay)


__all__ = ["NO_RETRY", "RETRYABLE_STATUS_CODES", "RetryConfig", "request_with_retry"]

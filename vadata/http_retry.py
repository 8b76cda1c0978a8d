"""Bounded retry for outbound POSTs. Only transport failures are retried."""
from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


def backoff_delay(attempt: int, base_delay: float) -> float:
    """Exponential delay before retry number `attempt` (1-based)."""
    return base_delay * (2 ** attempt)


async def _post_within(client: httpx.AsyncClient, url: str, timeout: float | None, **kwargs: Any) -> httpx.Response:
    # httpx timeouts apply per connect/read/write step; this caps the whole exchange
    try:
        return await asyncio.wait_for(client.post(url, **kwargs), timeout)
    except asyncio.TimeoutError as e:
        raise httpx.TimeoutException(f"No complete response within {timeout}s") from e


async def post_with_retry(
    client: httpx.AsyncClient,
    url: str,
    *,
    max_attempts: int = 3,
    base_delay: float = 0.1,
    timeout: float | None = None,
    **kwargs: Any,
) -> httpx.Response:
    """
    POST, retrying connect/read/timeout errors up to max_attempts total.
    Each attempt, body included, must finish within `timeout` seconds (None = no deadline).
    HTTP error statuses are returned to the caller unchanged (not retried).
    Raises the last httpx.TransportError when attempts run out.
    """
    attempt = 1
    while True:
        try:
            return await _post_within(client, url, timeout, **kwargs)
        except httpx.TransportError as e:
            if attempt >= max_attempts:
                logger.warning("POST %s failed after %s attempts: %s", url, attempt, e)
                raise
            delay = backoff_delay(attempt, base_delay)
            logger.info("POST %s failed (%s), retry %s/%s in %.2fs", url, e, attempt, max_attempts - 1, delay)
            await asyncio.sleep(delay)
            attempt += 1

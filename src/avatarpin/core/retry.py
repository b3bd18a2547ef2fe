"""Bounded retry with exponential backoff for downstream calls."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def call_with_retry(
    func: Callable[[], Awaitable[T]],
    *,
    retries: int,
    backoff: float,
    retry_on: tuple[type[BaseException], ...],
    label: str,
) -> T:
    """Await ``func()`` up to ``retries + 1`` times.

    Only exceptions listed in *retry_on* trigger another attempt; anything
    else propagates immediately.  The sleep before attempt ``n`` (1-based,
    counting retries only) is ``backoff * 2 ** (n - 1)``.

    Args:
        func: Zero-argument coroutine factory for one attempt.
        retries: Number of retries after the first attempt.
        backoff: Initial sleep in seconds.
        retry_on: Exception types considered transient.
        label: Short name of the call, used in log messages.

    Returns:
        The result of the first successful attempt.

    Raises:
        The exception from the last attempt when every attempt failed.
    """
    attempt = 0
    while True:
        try:
            return await func()
        except retry_on as exc:
            if attempt >= retries:
                raise
            attempt += 1
            delay = backoff * 2 ** (attempt - 1)
            logger.warning(f"{label} failed ({exc}); retry {attempt}/{retries} in {delay:.2f}s")
            await asyncio.sleep(delay)

"""Retry with exponential backoff for async operations."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def execute_with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: int,
    base_delay: float,
    backoff_factor: float = 2.0,
    on_retry: Optional[Callable[[Exception, int], None]] = None,
    retry_if: Optional[Callable[[Exception], bool]] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Run ``operation`` until it succeeds or retries run out.

    Attempt ``n`` (0-indexed) that fails is followed by a wait of
    ``base_delay * backoff_factor ** n`` seconds, so the operation runs at
    most ``max_retries + 1`` times. The last failure is re-raised unchanged.

    Args:
        operation: Zero-argument coroutine function to run
        max_retries: Number of retries after the first attempt
        base_delay: Delay before the first retry, in seconds
        backoff_factor: Multiplier applied to the delay after each retry
        on_retry: Called with (error, retry_number) before each wait
        retry_if: Predicate deciding whether an error is worth retrying;
                  errors it rejects are raised immediately
        sleep: Awaitable used for the wait

    Returns:
        Whatever ``operation`` returns on its first successful attempt
    """
    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as e:
            if retry_if is not None and not retry_if(e):
                raise
            if attempt >= max_retries:
                logger.error(f"Failed after {attempt + 1} attempts: {e}")
                raise

            wait_time = base_delay * (backoff_factor ** attempt)
            logger.warning(
                f"Attempt {attempt + 1} failed, retrying in {wait_time:.2f}s: {e}"
            )
            if on_retry is not None:
                on_retry(e, attempt + 1)

            await sleep(wait_time)
            attempt += 1

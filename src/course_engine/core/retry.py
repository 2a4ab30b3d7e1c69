"""
Generic async retry with exponential backoff.

The operation is retried while ``should_retry`` accepts the error and attempts
remain; errors that are not retryable propagate immediately.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Optional, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


def exponential_backoff(base_delay: float) -> Callable[[int], float]:
    """Delay to wait after failed attempt ``n`` (1-based): base * 2^(n-1)."""

    def schedule(attempt: int) -> float:
        return base_delay * (2 ** (attempt - 1))

    return schedule


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    max_attempts: int = 3,
    backoff: Optional[Callable[[int], float]] = None,
    should_retry: Callable[[BaseException], bool] = lambda e: True,
    transform_error: Optional[Callable[[BaseException], BaseException]] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    on_attempt: Optional[Callable[[int], None]] = None,
    name: str = "operation",
) -> T:
    """
    Run ``operation`` up to ``max_attempts`` times.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt
        max_attempts: Total attempts, first one included
        backoff: Maps the failed attempt number to a delay in seconds
        should_retry: Error classifier; False aborts without further attempts
        transform_error: Applied to every raised error before classification
        sleep: Awaitable sleep, injectable for tests
        on_attempt: Called with the attempt number before each attempt
        name: Label used in log messages

    Returns:
        The operation's result
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    schedule = backoff or exponential_backoff(1.0)
    last_error: Optional[BaseException] = None

    for attempt in range(1, max_attempts + 1):
        if on_attempt:
            on_attempt(attempt)
        try:
            return await operation()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            error = transform_error(e) if transform_error else e
            last_error = error
            logger.warning(f"{name}: attempt {attempt}/{max_attempts} failed: {error}")

            if not should_retry(error):
                logger.info(f"{name}: error is not retryable, stopping attempts")
                if error is e:
                    raise
                raise error from e

            if attempt < max_attempts:
                delay = schedule(attempt)
                logger.info(f"{name}: retrying in {delay} seconds")
                await sleep(delay)
            elif error is not e:
                raise error from e
            else:
                raise

    # Unreachable: the loop either returns or raises
    raise RuntimeError(f"{name}: retry loop exited without result") from last_error

from __future__ import annotations

import asyncio
import inspect
import logging
import random
from typing import Any, Awaitable, Callable, Tuple, Type, TypeVar, Union


logger = logging.getLogger(__name__)

T = TypeVar("T")


def backoff_delay(attempt: int, base_delay_s: float, jitter_s: float = 0.0) -> float:
    """Sleep before retry number `attempt` (1-based): base * 2^(attempt-1) + jitter."""
    return base_delay_s * (2 ** max(attempt - 1, 0)) + random.uniform(0, jitter_s)


async def retry_async(
    operation: Callable[[], Union[T, Awaitable[T]]],
    *,
    max_attempts: int = 3,
    base_delay_s: float = 0.5,
    jitter_s: float = 0.2,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    label: str = "",
) -> T:
    """Run `operation` until it succeeds or `max_attempts` failures happened.

    `operation` may be a plain callable or return an awaitable. Exceptions
    outside `retry_on` propagate immediately; after the last failed attempt
    the last error is re-raised.
    """

    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    attempt = 0
    while True:
        attempt += 1
        try:
            result: Any = operation()
            if inspect.isawaitable(result):
                result = await result
            return result
        except retry_on as e:
            if attempt >= max_attempts:
                logger.warning("retry exhausted op=%s attempts=%d error=%s", label or "?", attempt, e)
                raise
            wait_s = backoff_delay(attempt, base_delay_s, jitter_s)
            logger.info(
                "retry op=%s attempt=%d wait=%.2fs error=%s: %s",
                label or "?",
                attempt,
                wait_s,
                type(e).__name__,
                e,
            )
            await asyncio.sleep(wait_s)

from __future__ import annotations

import asyncio
import random
from typing import AsyncIterator, Awaitable, Callable, List, Sequence, TypeVar


T = TypeVar("T")
R = TypeVar("R")


async def pace(delay_s: tuple[float, float]) -> None:
    lo, hi = delay_s
    if hi <= 0:
        return
    await asyncio.sleep(random.uniform(lo, hi))


async def run_batches(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[R]],
    *,
    concurrency: int,
    delay_s: tuple[float, float] = (0.0, 0.0),
) -> AsyncIterator[List[R]]:
    """Run `worker` over `items` in batches of `concurrency`.

    Each batch is fully joined and yielded before the next one starts, with a
    pacing delay between batches. Results keep the batch's input order.
    """

    if concurrency < 1:
        raise ValueError("concurrency must be >= 1")

    for start in range(0, len(items), concurrency):
        batch = items[start : start + concurrency]
        results = await asyncio.gather(*(worker(item) for item in batch))
        yield list(results)
        if start + concurrency < len(items):
            await pace(delay_s)

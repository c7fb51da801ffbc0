"""BatchScheduler — two-level batching with bounded concurrency."""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

from pql_bench.scheduling.rate_limiter import RateLimiter

T = TypeVar("T")
R = TypeVar("R")


def partition(items: Sequence[T], size: int) -> list[list[T]]:
    """Split items into consecutive slices of at most size elements."""
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


class BatchScheduler:
    """Processes items in sequential batches, each split into concurrent chunks.

    Within a chunk every processor call is issued (through the rate limiter)
    before any is awaited; the whole chunk completes before the next one
    starts, so at most ``concurrency`` calls are in flight. An optional delay
    separates consecutive batches. Results are returned in input order.
    """

    def __init__(
        self,
        concurrency: int,
        batch_size: int,
        rate_limiter: RateLimiter,
        batch_delay_seconds: float = 0.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self._concurrency = concurrency
        self._batch_size = batch_size
        self._rate_limiter = rate_limiter
        self._batch_delay_seconds = batch_delay_seconds
        self._sleep = sleep

    async def process_all(
        self,
        items: Sequence[T],
        processor: Callable[[T], Awaitable[R]],
        on_batch_delay: Callable[[int, int], None] | None = None,
    ) -> list[R]:
        """Run processor over every item and return the results in input order.

        on_batch_delay, if given, is called with (completed_batch_number,
        total_batches) just before each inter-batch sleep.
        """
        results: list[R] = []
        batches = partition(items=items, size=self._batch_size)

        for batch_index, batch in enumerate(batches):
            results.extend(await self._process_batch(batch=batch, processor=processor))

            is_last = batch_index == len(batches) - 1
            if not is_last and self._batch_delay_seconds > 0:
                if on_batch_delay is not None:
                    on_batch_delay(batch_index + 1, len(batches))
                await self._sleep(self._batch_delay_seconds)

        return results

    async def _process_batch(
        self,
        batch: list[T],
        processor: Callable[[T], Awaitable[R]],
    ) -> list[R]:
        results: list[R] = []
        for chunk in partition(items=batch, size=self._concurrency):
            chunk_results = await asyncio.gather(
                *(
                    self._rate_limiter.enqueue(_bind(processor=processor, item=item))
                    for item in chunk
                )
            )
            results.extend(chunk_results)
        return results


def _bind(
    processor: Callable[[T], Awaitable[R]], item: T
) -> Callable[[], Awaitable[R]]:
    def operation() -> Awaitable[R]:
        return processor(item)

    return operation

"""RateLimiter — gates async operations to a minimum interval between starts."""

import asyncio
import time
from collections import deque
from collections.abc import Awaitable, Callable
from typing import TypeAlias, TypeVar

T = TypeVar("T")

_QueuedRun: TypeAlias = Callable[[], Awaitable[None]]


class RateLimiter:
    """Runs enqueued operations one at a time, at most ``requests_per_second`` starts/s.

    A single global "last start" timestamp gates every operation regardless of
    which caller enqueued it; there is no burst allowance. The drain loop is
    started by whichever caller finds the queue idle and runs each operation to
    completion before waiting for the next slot.

    With ``requests_per_second <= 0`` operations bypass the queue entirely.
    """

    def __init__(
        self,
        requests_per_second: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._requests_per_second = requests_per_second
        self._clock = clock
        self._sleep = sleep
        self._queue: deque[_QueuedRun] = deque()
        self._processing = False
        self._last_start: float | None = None
        self._drain_task: asyncio.Task[None] | None = None

    @property
    def min_interval_seconds(self) -> float:
        if self._requests_per_second <= 0:
            return 0.0
        return 1.0 / self._requests_per_second

    async def enqueue(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run operation once its turn comes and return its result.

        An exception raised by operation propagates to this caller only; the
        queue keeps draining for everyone else.
        """
        if self._requests_per_second <= 0:
            return await operation()

        future: asyncio.Future[T] = asyncio.get_running_loop().create_future()

        async def run() -> None:
            try:
                result = await operation()
            except Exception as exc:
                if not future.done():
                    future.set_exception(exc)
            else:
                if not future.done():
                    future.set_result(result)

        self._queue.append(run)
        if not self._processing:
            self._processing = True
            self._drain_task = asyncio.create_task(self._drain())

        return await future

    async def _drain(self) -> None:
        interval = self.min_interval_seconds
        while self._queue:
            if self._last_start is not None:
                elapsed = self._clock() - self._last_start
                if elapsed < interval:
                    await self._sleep(interval - elapsed)

            run = self._queue.popleft()
            self._last_start = self._clock()
            await run()

        self._processing = False

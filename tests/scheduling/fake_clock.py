"""Deterministic clock and sleep for scheduling tests."""


class FakeClock:
    """A monotonic clock that only moves when sleep() is awaited."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

"""MemoryMonitor — tracks traced Python allocations with tracemalloc."""

import tracemalloc

from pql_bench.evaluation.domain.memory import MemoryStats

_BYTES_PER_MB = 1024 * 1024


def _to_mb(size: int) -> int:
    return round(size / _BYTES_PER_MB)


class MemoryMonitor:
    """Records the traced heap at start, and its current and peak size since.

    tracemalloc keeps the peak itself, so no sampling loop is needed. Tracing
    is only stopped by the monitor that started it.
    """

    def __init__(self) -> None:
        self._initial = 0
        self._owns_tracing = False

    def start(self) -> None:
        if not tracemalloc.is_tracing():
            tracemalloc.start()
            self._owns_tracing = True
        tracemalloc.reset_peak()
        self._initial, _ = tracemalloc.get_traced_memory()

    def stats(self) -> MemoryStats:
        if not tracemalloc.is_tracing():
            return MemoryStats(initial_mb=0, current_mb=0, peak_mb=0)
        current, peak = tracemalloc.get_traced_memory()
        return MemoryStats(
            initial_mb=_to_mb(self._initial),
            current_mb=_to_mb(current),
            peak_mb=_to_mb(max(peak, self._initial)),
        )

    def stop(self) -> MemoryStats:
        """Return the final stats and stop tracing if this monitor started it."""
        stats = self.stats()
        if self._owns_tracing:
            tracemalloc.stop()
            self._owns_tracing = False
        return stats

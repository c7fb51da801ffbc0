"""TraceFetcher Protocol — structural interface for retrieving a trace's spans."""

from typing import Protocol

from pql_bench.environment.domain.config import ResolvedConfig
from pql_bench.tracing.domain.span import Span


class TraceFetcher(Protocol):
    async def fetch(self, trace_id: str, config: ResolvedConfig) -> list[Span]:
        """Return every span of trace_id once its root span is available."""
        ...

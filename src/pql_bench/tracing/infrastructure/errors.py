"""Error types raised by tracing infrastructure."""

from pql_bench.core.errors import BenchError, TransportError


class TraceQueryError(TransportError):
    """Raised when the tracing query itself fails; never retried."""

    def __init__(self, trace_id: str, reason: str) -> None:
        self.trace_id = trace_id
        super().__init__(f"Failed to query trace {trace_id}: {reason}")


class TraceNotFoundError(BenchError):
    """Raised when the root span has not appeared after every poll attempt."""

    def __init__(self, trace_id: str, attempts: int) -> None:
        self.trace_id = trace_id
        self.attempts = attempts
        super().__init__(
            f"Failed to find root span for trace {trace_id} "
            f"after {attempts} attempts"
        )

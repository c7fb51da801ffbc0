"""TraceObserver port — domain events emitted while polling for traces."""

from typing import Protocol


class TraceObserver(Protocol):
    """Observer port for trace polling events."""

    def trace_poll_started(self, trace_id: str, attempt: int) -> None: ...

    def trace_poll_retry(
        self,
        trace_id: str,
        attempt: int,
        max_attempts: int,
        span_count: int,
        delay_seconds: float,
    ) -> None: ...

    def trace_found(self, trace_id: str, attempt: int, span_count: int) -> None: ...

    def trace_not_found(self, trace_id: str, attempts: int) -> None: ...

    def trace_query_failed(self, trace_id: str, reason: str) -> None: ...

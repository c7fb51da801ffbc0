"""Structlog implementation of the TraceObserver port."""

import structlog


class StructlogTraceObserver:
    """Delegates trace polling events to structlog.

    Satisfies the TraceObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def trace_poll_started(self, trace_id: str, attempt: int) -> None:
        self._log.debug("trace.poll_started", trace_id=trace_id, attempt=attempt)

    def trace_poll_retry(
        self,
        trace_id: str,
        attempt: int,
        max_attempts: int,
        span_count: int,
        delay_seconds: float,
    ) -> None:
        self._log.info(
            "trace.poll_retry",
            trace_id=trace_id,
            attempt=attempt,
            max_attempts=max_attempts,
            span_count=span_count,
            delay_seconds=delay_seconds,
        )

    def trace_found(self, trace_id: str, attempt: int, span_count: int) -> None:
        self._log.info(
            "trace.found",
            trace_id=trace_id,
            attempt=attempt,
            span_count=span_count,
        )

    def trace_not_found(self, trace_id: str, attempts: int) -> None:
        self._log.warning("trace.not_found", trace_id=trace_id, attempts=attempts)

    def trace_query_failed(self, trace_id: str, reason: str) -> None:
        self._log.error("trace.query_failed", trace_id=trace_id, reason=reason)

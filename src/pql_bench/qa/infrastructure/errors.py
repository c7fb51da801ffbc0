"""Error types raised by QA backend infrastructure."""

from typing import Any

from pql_bench.core.errors import BenchError, TransportError


class QATransportError(TransportError):
    """Raised when the QA request fails at the network or HTTP-status level."""

    def __init__(
        self,
        reason: str,
        raw_request: dict[str, Any],
        status_code: int | None = None,
        raw_response: Any = None,
    ) -> None:
        self.raw_request = raw_request
        self.status_code = status_code
        self.raw_response = raw_response
        super().__init__(f"Failed to query QA backend: {reason}")


class TraceHeaderMissingError(BenchError):
    """Raised when a QA response carries no usable ``traceparent`` header."""

    def __init__(
        self,
        traceparent: str | None,
        raw_request: dict[str, Any],
        raw_response: Any,
    ) -> None:
        self.traceparent = traceparent
        self.raw_request = raw_request
        self.raw_response = raw_response
        super().__init__(
            f"Failed to read trace ID: traceparent header was {traceparent!r}"
        )

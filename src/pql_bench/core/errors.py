"""Base exception classes for all pql-bench-specific errors."""


class BenchError(Exception):
    """Base class for all pql-bench errors."""

    def __init__(self, message: str, retriable: bool = False) -> None:
        super().__init__(message)
        self.retriable = retriable


class TransportError(BenchError):
    """Base class for HTTP-level failures talking to an external service."""

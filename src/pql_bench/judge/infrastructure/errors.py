"""Error types raised by judge infrastructure."""

from pql_bench.core.errors import BenchError


class JudgeEvaluationError(BenchError):
    """Raised when one judge attempt fails or returns an unusable result."""

    def __init__(self, reason: str, retriable: bool = True) -> None:
        super().__init__(f"Failed to evaluate answer: {reason}", retriable=retriable)

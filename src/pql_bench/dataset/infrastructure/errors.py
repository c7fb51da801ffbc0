"""Error types raised by dataset infrastructure."""

from pql_bench.core.errors import BenchError


class DatasetLoadError(BenchError):
    """Raised when the eval-set CSV cannot be loaded or is malformed."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to load eval set: {reason}")


class QuestionSelectionError(BenchError):
    """Raised when a question selection is invalid or matches nothing."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to select questions: {reason}")


class DatasetWriteError(BenchError):
    """Raised when the eval-set CSV cannot be written back."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to write eval set: {reason}")

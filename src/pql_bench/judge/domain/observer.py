"""JudgeObserver port — domain events emitted during judge invocations."""

from typing import Protocol


class JudgeObserver(Protocol):
    """Observer port for judge domain events.

    Implementations may log to structlog or record for tests.
    """

    def judge_attempt_started(self, criteria: str, attempt: int) -> None: ...

    def judge_attempt_failed(
        self, criteria: str, attempt: int, max_attempts: int, reason: str
    ) -> None: ...

    def judge_completed(
        self, criteria: str, passed: bool, score: float, duration_ms: int
    ) -> None: ...

    def judge_exhausted(self, criteria: str, attempts: int) -> None: ...

    def accuracy_incomplete(
        self, question: str, failed_criteria: list[str]
    ) -> None: ...

"""StructlogJudgeObserver — production observer that delegates to structlog."""

import structlog


class StructlogJudgeObserver:
    """Logs judge domain events to structlog.

    Does NOT inherit from JudgeObserver (structural typing via Protocol).
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def judge_attempt_started(self, criteria: str, attempt: int) -> None:
        self._log.debug("judge.attempt_started", criteria=criteria, attempt=attempt)

    def judge_attempt_failed(
        self, criteria: str, attempt: int, max_attempts: int, reason: str
    ) -> None:
        self._log.warning(
            "judge.attempt_failed",
            criteria=criteria,
            attempt=attempt,
            max_attempts=max_attempts,
            reason=reason,
        )

    def judge_completed(
        self, criteria: str, passed: bool, score: float, duration_ms: int
    ) -> None:
        self._log.info(
            "judge.completed",
            criteria=criteria,
            passed=passed,
            score=score,
            duration_ms=duration_ms,
        )

    def judge_exhausted(self, criteria: str, attempts: int) -> None:
        self._log.error("judge.exhausted", criteria=criteria, attempts=attempts)

    def accuracy_incomplete(self, question: str, failed_criteria: list[str]) -> None:
        self._log.error(
            "judge.accuracy_incomplete",
            question=question,
            failed_criteria=failed_criteria,
        )

"""Observer port for the evaluation domain — defines events in domain language."""

from typing import Protocol


class EvaluationObserver(Protocol):
    """Observer port emitting structured events during a benchmark.

    Implementations may log to structlog, render progress, or record for tests.
    """

    def benchmark_started(
        self,
        environments: list[str],
        total_questions: int,
        runs_per_question: int,
        concurrency: int,
        batch_size: int,
        rate_limit: float,
        accuracy_enabled: bool,
    ) -> None: ...

    def benchmark_completed(
        self,
        successful_runs: int,
        failed_runs: int,
        elapsed_seconds: float,
    ) -> None: ...

    def question_started(self, question_index: int, question: str) -> None: ...

    def question_completed(
        self,
        question_index: int,
        environment: str,
        successful_runs: int,
        failed_runs: int,
    ) -> None: ...

    def run_started(
        self, question_index: int, environment: str, run_number: int
    ) -> None: ...

    def run_completed(
        self,
        question_index: int,
        environment: str,
        run_number: int,
        duration_seconds: float,
    ) -> None: ...

    def run_failed(
        self,
        question_index: int,
        environment: str,
        run_number: int,
        failure: str,
        reason: str,
    ) -> None: ...

    def run_batch_waiting(
        self,
        question_index: int,
        environment: str,
        completed_batch: int,
        total_batches: int,
        delay_seconds: float,
    ) -> None: ...

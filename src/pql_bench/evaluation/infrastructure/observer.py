"""StructlogEvaluationObserver — production observer that delegates to structlog."""

import structlog


class StructlogEvaluationObserver:
    """Logs evaluation domain events to structlog.

    Constructed once per benchmark; the question and run totals are bound into
    the logger so that every event carries them.

    Does NOT inherit from EvaluationObserver (structural typing via Protocol).
    """

    def __init__(self, total_questions: int, total_runs: int) -> None:
        self._log = structlog.get_logger().bind(
            total_questions=total_questions,
            total_runs=total_runs,
        )

    def benchmark_started(
        self,
        environments: list[str],
        total_questions: int,
        runs_per_question: int,
        concurrency: int,
        batch_size: int,
        rate_limit: float,
        accuracy_enabled: bool,
    ) -> None:
        self._log.info(
            "evaluation.started",
            environments=environments,
            runs_per_question=runs_per_question,
            concurrency=concurrency,
            batch_size=batch_size,
            rate_limit=rate_limit,
            accuracy_enabled=accuracy_enabled,
        )

    def benchmark_completed(
        self,
        successful_runs: int,
        failed_runs: int,
        elapsed_seconds: float,
    ) -> None:
        self._log.info(
            "evaluation.completed",
            successful_runs=successful_runs,
            failed_runs=failed_runs,
            elapsed_seconds=round(elapsed_seconds, 2),
        )

    def question_started(self, question_index: int, question: str) -> None:
        self._log.info(
            "evaluation.question.started",
            question_index=question_index,
            question=question,
        )

    def question_completed(
        self,
        question_index: int,
        environment: str,
        successful_runs: int,
        failed_runs: int,
    ) -> None:
        self._log.info(
            "evaluation.question.completed",
            question_index=question_index,
            environment=environment,
            successful_runs=successful_runs,
            failed_runs=failed_runs,
        )

    def run_started(
        self, question_index: int, environment: str, run_number: int
    ) -> None:
        self._log.debug(
            "evaluation.run.started",
            question_index=question_index,
            environment=environment,
            run_number=run_number,
        )

    def run_completed(
        self,
        question_index: int,
        environment: str,
        run_number: int,
        duration_seconds: float,
    ) -> None:
        self._log.info(
            "evaluation.run.completed",
            question_index=question_index,
            environment=environment,
            run_number=run_number,
            duration_seconds=round(duration_seconds, 2),
        )

    def run_failed(
        self,
        question_index: int,
        environment: str,
        run_number: int,
        failure: str,
        reason: str,
    ) -> None:
        self._log.error(
            "evaluation.run.failed",
            question_index=question_index,
            environment=environment,
            run_number=run_number,
            failure=failure,
            reason=reason,
        )

    def run_batch_waiting(
        self,
        question_index: int,
        environment: str,
        completed_batch: int,
        total_batches: int,
        delay_seconds: float,
    ) -> None:
        self._log.info(
            "evaluation.run_batch.waiting",
            question_index=question_index,
            environment=environment,
            completed_batch=completed_batch,
            total_batches=total_batches,
            delay_seconds=delay_seconds,
        )

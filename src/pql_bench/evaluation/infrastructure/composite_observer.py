"""CompositeEvaluationObserver — fans out all events to a list of observers."""

from pql_bench.evaluation.domain.observer import EvaluationObserver


class CompositeEvaluationObserver:
    """Delegates every observer event to each observer in order.

    Does NOT inherit from EvaluationObserver (structural typing via Protocol).
    """

    def __init__(self, observers: list[EvaluationObserver]) -> None:
        self._observers = observers

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
        for obs in self._observers:
            obs.benchmark_started(
                environments=environments,
                total_questions=total_questions,
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
        for obs in self._observers:
            obs.benchmark_completed(
                successful_runs=successful_runs,
                failed_runs=failed_runs,
                elapsed_seconds=elapsed_seconds,
            )

    def question_started(self, question_index: int, question: str) -> None:
        for obs in self._observers:
            obs.question_started(question_index=question_index, question=question)

    def question_completed(
        self,
        question_index: int,
        environment: str,
        successful_runs: int,
        failed_runs: int,
    ) -> None:
        for obs in self._observers:
            obs.question_completed(
                question_index=question_index,
                environment=environment,
                successful_runs=successful_runs,
                failed_runs=failed_runs,
            )

    def run_started(
        self, question_index: int, environment: str, run_number: int
    ) -> None:
        for obs in self._observers:
            obs.run_started(
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
        for obs in self._observers:
            obs.run_completed(
                question_index=question_index,
                environment=environment,
                run_number=run_number,
                duration_seconds=duration_seconds,
            )

    def run_failed(
        self,
        question_index: int,
        environment: str,
        run_number: int,
        failure: str,
        reason: str,
    ) -> None:
        for obs in self._observers:
            obs.run_failed(
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
        for obs in self._observers:
            obs.run_batch_waiting(
                question_index=question_index,
                environment=environment,
                completed_batch=completed_batch,
                total_batches=total_batches,
                delay_seconds=delay_seconds,
            )

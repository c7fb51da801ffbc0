"""BenchmarkRunner — orchestrates the full benchmark loop."""

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from pql_bench.config.domain.execution import ExecutionConfig
from pql_bench.dataset.domain.question import Question
from pql_bench.environment.domain.config import ResolvedConfig
from pql_bench.environment.domain.target import EnvironmentTarget
from pql_bench.environment.infrastructure.resolver import EnvironmentResolver
from pql_bench.environment.infrastructure.system_prompt import SystemPromptLoader
from pql_bench.evaluation.domain.observer import EvaluationObserver
from pql_bench.evaluation.domain.outcome import (
    BenchmarkOutcome,
    EnvironmentRuns,
    QuestionRuns,
)
from pql_bench.evaluation.domain.run import RunFailure, RunResult
from pql_bench.judge.application.accuracy import evaluate_accuracy
from pql_bench.judge.domain.judge import Judge
from pql_bench.judge.domain.observer import JudgeObserver
from pql_bench.qa.domain.client import QAClient
from pql_bench.qa.infrastructure.errors import QATransportError, TraceHeaderMissingError
from pql_bench.scheduling.batch_scheduler import BatchScheduler
from pql_bench.scheduling.rate_limiter import RateLimiter
from pql_bench.tracing.domain.breakdown import derive_breakdown
from pql_bench.tracing.domain.fetcher import TraceFetcher
from pql_bench.tracing.infrastructure.errors import TraceNotFoundError, TraceQueryError


@dataclass(frozen=True)
class PreparedEnvironment:
    """A target together with everything needed to send it questions."""

    target: EnvironmentTarget
    config: ResolvedConfig
    system_prompt: str


class BenchmarkRunner:
    """Runs every (question, environment, run) triple and collects RunResults.

    Questions are scheduled in batches under the configured concurrency and
    rate limit. For each question the environments are visited in order, and
    each environment receives ``runs`` concurrent requests per run batch.

    Configuration problems surface before any request is sent. After that,
    nothing a single run does can abort the benchmark: QA, trace and judge
    failures become partial RunResults.
    """

    def __init__(
        self,
        execution: ExecutionConfig,
        resolver: EnvironmentResolver,
        prompt_loader: SystemPromptLoader,
        qa_client: QAClient,
        trace_fetcher: TraceFetcher,
        judge: Judge,
        judge_observer: JudgeObserver,
        observer: EvaluationObserver,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self._execution = execution
        self._resolver = resolver
        self._prompt_loader = prompt_loader
        self._qa_client = qa_client
        self._trace_fetcher = trace_fetcher
        self._judge = judge
        self._judge_observer = judge_observer
        self._observer = observer
        self._now = now

        self._question_scheduler = BatchScheduler(
            concurrency=execution.concurrency,
            batch_size=execution.batch_size,
            rate_limiter=RateLimiter(
                requests_per_second=execution.rate_limit, clock=clock, sleep=sleep
            ),
        )
        self._run_scheduler = BatchScheduler(
            concurrency=execution.runs,
            batch_size=execution.runs,
            rate_limiter=RateLimiter(requests_per_second=0),
            batch_delay_seconds=execution.batch_delay,
            sleep=sleep,
        )

    def prepare(self, targets: list[EnvironmentTarget]) -> list[PreparedEnvironment]:
        """Resolve every target and load its system prompt.

        Raises:
            ConfigurationError: if any target is missing configuration or its
                prompt cannot be read.
        """
        configs = self._resolver.resolve_all(targets=targets)
        return [
            PreparedEnvironment(
                target=target,
                config=config,
                system_prompt=self._prompt_loader.load(target=target),
            )
            for target, config in zip(targets, configs, strict=True)
        ]

    async def run(
        self, questions: list[Question], targets: list[EnvironmentTarget]
    ) -> BenchmarkOutcome:
        """Execute the benchmark and return every RunResult, grouped.

        Each (environment, question) slot is written once, by the coroutine
        handling that question.
        """
        environments = self.prepare(targets=targets)
        started_at = self._now()

        self._observer.benchmark_started(
            environments=[env.target.display_name for env in environments],
            total_questions=len(questions),
            runs_per_question=self._execution.total_runs,
            concurrency=self._execution.concurrency,
            batch_size=self._execution.batch_size,
            rate_limit=self._execution.rate_limit,
            accuracy_enabled=not self._execution.skip_accuracy
            and any(env.config.judge_enabled for env in environments),
        )
        start = time.monotonic()

        results: dict[str, dict[int, list[RunResult]]] = {
            env.target.display_name: {} for env in environments
        }

        async def process_question(question: Question) -> None:
            self._observer.question_started(
                question_index=question.index, question=question.text
            )
            for env in environments:
                runs = await self._run_question(question=question, environment=env)
                results[env.target.display_name][question.index] = runs

        await self._question_scheduler.process_all(
            items=questions, processor=process_question
        )

        all_runs = [
            run
            for by_question in results.values()
            for runs in by_question.values()
            for run in runs
        ]
        successful = sum(1 for run in all_runs if run.measured)
        elapsed_seconds = time.monotonic() - start
        self._observer.benchmark_completed(
            successful_runs=successful,
            failed_runs=len(all_runs) - successful,
            elapsed_seconds=elapsed_seconds,
        )

        return BenchmarkOutcome(
            started_at=started_at,
            elapsed_seconds=elapsed_seconds,
            environments=[
                EnvironmentRuns(
                    display_name=env.target.display_name,
                    backend_url=env.config.backend_url,
                    questions=[
                        QuestionRuns(
                            question=question,
                            runs=results[env.target.display_name][question.index],
                        )
                        for question in questions
                    ],
                )
                for env in environments
            ],
        )

    async def _run_question(
        self, question: Question, environment: PreparedEnvironment
    ) -> list[RunResult]:
        display_name = environment.target.display_name

        def on_batch_delay(completed_batch: int, total_batches: int) -> None:
            self._observer.run_batch_waiting(
                question_index=question.index,
                environment=display_name,
                completed_batch=completed_batch,
                total_batches=total_batches,
                delay_seconds=self._execution.batch_delay,
            )

        async def process_run(run_number: int) -> RunResult:
            return await self._run_once(
                question=question, environment=environment, run_number=run_number
            )

        runs = await self._run_scheduler.process_all(
            items=range(1, self._execution.total_runs + 1),
            processor=process_run,
            on_batch_delay=on_batch_delay,
        )

        successful = sum(1 for run in runs if run.measured)
        self._observer.question_completed(
            question_index=question.index,
            environment=display_name,
            successful_runs=successful,
            failed_runs=len(runs) - successful,
        )
        return runs

    async def _run_once(
        self,
        question: Question,
        environment: PreparedEnvironment,
        run_number: int,
    ) -> RunResult:
        """Send one request, fetch its trace and judge the answer.

        Never raises for failures of the external services; they are recorded
        on the returned RunResult instead.
        """
        display_name = environment.target.display_name
        config = environment.config
        timestamp = self._now()
        self._observer.run_started(
            question_index=question.index,
            environment=display_name,
            run_number=run_number,
        )

        try:
            response = await self._qa_client.ask(
                question=question.text,
                config=config,
                system_prompt=environment.system_prompt,
            )
        except QATransportError as exc:
            return self._failed(
                question=question,
                environment=display_name,
                result=RunResult(
                    run_number=run_number,
                    timestamp=timestamp,
                    success=False,
                    failure=RunFailure.QA_TRANSPORT,
                    error=str(exc),
                    raw_request=exc.raw_request,
                    raw_response=exc.raw_response,
                ),
            )
        except TraceHeaderMissingError as exc:
            return self._failed(
                question=question,
                environment=display_name,
                result=RunResult(
                    run_number=run_number,
                    timestamp=timestamp,
                    success=False,
                    failure=RunFailure.TRACE_HEADER_MISSING,
                    error=str(exc),
                    raw_request=exc.raw_request,
                    raw_response=exc.raw_response,
                ),
            )

        failure: RunFailure | None = None
        error: str | None = None
        breakdown = None
        try:
            spans = await self._trace_fetcher.fetch(
                trace_id=response.trace_id, config=config
            )
            breakdown = derive_breakdown(spans=spans)
            if breakdown is None:
                failure = RunFailure.TRACE_NOT_FOUND
                error = f"Root span missing from trace {response.trace_id}"
        except TraceNotFoundError as exc:
            failure, error = RunFailure.TRACE_NOT_FOUND, str(exc)
        except TraceQueryError as exc:
            failure, error = RunFailure.TRACE_QUERY, str(exc)

        if breakdown is None:
            return self._failed(
                question=question,
                environment=display_name,
                result=RunResult(
                    run_number=run_number,
                    timestamp=timestamp,
                    success=True,
                    trace_id=response.trace_id,
                    failure=failure,
                    error=error,
                    raw_request=response.raw_request,
                    raw_response=response.raw_response,
                ),
            )

        accuracy = None
        if not self._execution.skip_accuracy and config.judge_enabled:
            accuracy = await evaluate_accuracy(
                judge=self._judge,
                observer=self._judge_observer,
                question=question.text,
                answer=response.raw_response,
                gold_answer=question.gold_answer,
                config=config,
            )

        self._observer.run_completed(
            question_index=question.index,
            environment=display_name,
            run_number=run_number,
            duration_seconds=breakdown.total_seconds,
        )
        return RunResult(
            run_number=run_number,
            timestamp=timestamp,
            success=True,
            duration_seconds=breakdown.total_seconds,
            trace_id=response.trace_id,
            iterations=breakdown.iterations,
            span_durations=breakdown.span_durations,
            span_information=breakdown.span_information,
            accuracy=accuracy,
            raw_request=response.raw_request,
            raw_response=response.raw_response,
        )

    def _failed(
        self, question: Question, environment: str, result: RunResult
    ) -> RunResult:
        self._observer.run_failed(
            question_index=question.index,
            environment=environment,
            run_number=result.run_number,
            failure=str(result.failure),
            reason=result.error or "",
        )
        return result

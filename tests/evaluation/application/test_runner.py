"""Tests for BenchmarkRunner — driven entirely by fakes, no network."""

from datetime import UTC, datetime
from pathlib import Path

import pytest

from pql_bench.config.domain.execution import ExecutionConfig
from pql_bench.dataset.domain.question import Question
from pql_bench.environment.domain.config import ResolvedConfig
from pql_bench.environment.domain.target import BaseEnvironment, EnvironmentTarget
from pql_bench.environment.infrastructure.errors import MissingConfigurationError
from pql_bench.environment.infrastructure.resolver import EnvironmentResolver
from pql_bench.environment.infrastructure.system_prompt import SystemPromptLoader
from pql_bench.evaluation.application.runner import BenchmarkRunner
from pql_bench.evaluation.domain.run import RunFailure
from pql_bench.judge.application.accuracy import (
    DATA_ACCURACY_CRITERIA,
    FUZZY_MATCH_CRITERIA,
)
from pql_bench.judge.domain.score import CriterionResult
from pql_bench.qa.domain.response import QAResponse
from pql_bench.qa.infrastructure.errors import QATransportError, TraceHeaderMissingError
from pql_bench.tracing.infrastructure.errors import TraceNotFoundError, TraceQueryError
from tests.environment.fake_observer import FakeEnvironmentObserver
from tests.evaluation.fake_observer import FakeEvaluationObserver
from tests.judge.fake_judge import FakeJudge
from tests.judge.fake_observer import FakeJudgeObserver
from tests.qa.fake_client import FakeQAClient
from tests.tracing.fake_fetcher import FakeTraceFetcher, make_span

_NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=UTC)

_ENVIRON = {
    "PROMPTQL_DATA_PLANE_URL_MAIN": "https://promptql.example.com/query",
    "PROMPTQL_API_KEY_PRODUCTION": "prod-key",
    "DDN_URL_PRODUCTION": "https://ur-production.example.com/graphql",
    "DDN_AUTH_TOKEN": "ddn-token",
    "HASURA_PAT": "pat-token",
}

_JUDGE_ENVIRON = {
    **_ENVIRON,
    "PATRONUS_BASE_URL": "https://judge.example.com",
    "PATRONUS_API_KEY": "judge-key",
    "PATRONUS_PROJECT_ID": "project-1",
}

_PASS = CriterionResult(passed=True, score=1.0, details="match")

_PRODUCTION = EnvironmentTarget(base_name=BaseEnvironment.PRODUCTION)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class _Harness:
    """A BenchmarkRunner wired to fakes, with every collaborator exposed."""

    def __init__(
        self,
        prompts_dir: Path,
        execution: ExecutionConfig | None = None,
        environ: dict[str, str] | None = None,
        qa_client: FakeQAClient | None = None,
        trace_fetcher: FakeTraceFetcher | None = None,
        judge: FakeJudge | None = None,
    ) -> None:
        (prompts_dir / "production.txt").write_text("Answer with data.")
        environment_observer = FakeEnvironmentObserver()
        loader = SystemPromptLoader(
            prompts_dir=prompts_dir, observer=environment_observer
        )
        self.qa_client = qa_client or FakeQAClient()
        self.trace_fetcher = trace_fetcher or FakeTraceFetcher()
        self.judge = judge or FakeJudge()
        self.judge_observer = FakeJudgeObserver()
        self.observer = FakeEvaluationObserver()
        self.sleeps: list[float] = []
        self.clock = 0.0

        async def sleep(seconds: float) -> None:
            self.sleeps.append(seconds)
            self.clock += seconds

        self.runner = BenchmarkRunner(
            execution=execution or ExecutionConfig(runs=2),
            resolver=EnvironmentResolver(
                prompt_loader=loader,
                observer=environment_observer,
                environ=environ if environ is not None else _ENVIRON,
            ),
            prompt_loader=loader,
            qa_client=self.qa_client,
            trace_fetcher=self.trace_fetcher,
            judge=self.judge,
            judge_observer=self.judge_observer,
            observer=self.observer,
            sleep=sleep,
            clock=lambda: self.clock,
            now=lambda: _NOW,
        )


def _make_questions(count: int) -> list[Question]:
    return [
        Question(index=i, text=f"Question {i}?", gold_answer=f"Answer {i}")
        for i in range(1, count + 1)
    ]


def _raise(error: Exception):
    def behaviour(question: str, config: ResolvedConfig) -> QAResponse:
        raise error

    return behaviour


# ---------------------------------------------------------------------------
# Successful runs
# ---------------------------------------------------------------------------


class TestSuccessfulRuns:
    async def test_every_question_gets_every_run(self, tmp_path: Path) -> None:
        harness = _Harness(prompts_dir=tmp_path)

        outcome = await harness.runner.run(
            questions=_make_questions(3), targets=[_PRODUCTION]
        )

        env = outcome.environments[0]
        assert env.display_name == "production"
        assert env.backend_url == "https://ur-production.example.com/graphql"
        assert [entry.question.index for entry in env.questions] == [1, 2, 3]
        for entry in env.questions:
            assert [run.run_number for run in entry.runs] == [1, 2]
        assert len(harness.qa_client.calls) == 6

    async def test_run_carries_breakdown(self, tmp_path: Path) -> None:
        harness = _Harness(prompts_dir=tmp_path)

        outcome = await harness.runner.run(
            questions=_make_questions(1), targets=[_PRODUCTION]
        )

        run = outcome.environments[0].questions[0].runs[0]
        assert run.success is True
        assert run.duration_seconds == pytest.approx(10.0)
        assert run.iterations == 2
        assert run.span_durations.pure_code_execution == pytest.approx(5.0)
        assert run.span_information.sql_engine_execute_sql == "SELECT 1"
        assert run.trace_id is not None
        assert run.timestamp == _NOW
        assert run.failure is None

    async def test_system_prompt_is_sent(self, tmp_path: Path) -> None:
        harness = _Harness(prompts_dir=tmp_path)

        await harness.runner.run(questions=_make_questions(1), targets=[_PRODUCTION])

        assert harness.qa_client.calls[0][2] == "Answer with data."

    async def test_observer_sees_started_and_completed(self, tmp_path: Path) -> None:
        harness = _Harness(prompts_dir=tmp_path)

        await harness.runner.run(questions=_make_questions(2), targets=[_PRODUCTION])

        started = harness.observer.started[0]
        assert started.environments == ["production"]
        assert started.total_questions == 2
        assert started.runs_per_question == 2
        assert started.accuracy_enabled is False
        completed = harness.observer.completed[0]
        assert completed.successful_runs == 4
        assert completed.failed_runs == 0
        assert len(harness.observer.runs_completed) == 4
        assert len(harness.observer.questions_completed) == 2

    async def test_multiple_environments_are_kept_apart(self, tmp_path: Path) -> None:
        harness = _Harness(prompts_dir=tmp_path)
        versioned = EnvironmentTarget(
            base_name=BaseEnvironment.PRODUCTION, version="v9"
        )

        outcome = await harness.runner.run(
            questions=_make_questions(2), targets=[_PRODUCTION, versioned]
        )

        assert [env.display_name for env in outcome.environments] == [
            "production",
            "production(v9)",
        ]
        assert outcome.environments[1].backend_url == (
            "https://ur-production-v9.example.com/graphql"
        )
        backends = {call[1] for call in harness.qa_client.calls}
        assert backends == {
            "https://ur-production.example.com/graphql",
            "https://ur-production-v9.example.com/graphql",
        }
        assert len(harness.qa_client.calls) == 8


# ---------------------------------------------------------------------------
# Failure handling
# ---------------------------------------------------------------------------


class TestRunFailures:
    """Per-run failures are recorded, never raised."""

    async def test_qa_transport_failure(self, tmp_path: Path) -> None:
        error = QATransportError(
            reason="HTTP 500 Internal Server Error",
            raw_request={"version": "v1"},
            status_code=500,
            raw_response={"error": "boom"},
        )
        harness = _Harness(
            prompts_dir=tmp_path, qa_client=FakeQAClient(behaviour=_raise(error))
        )

        outcome = await harness.runner.run(
            questions=_make_questions(1), targets=[_PRODUCTION]
        )

        run = outcome.environments[0].questions[0].runs[0]
        assert run.success is False
        assert run.failure is RunFailure.QA_TRANSPORT
        assert run.duration_seconds is None
        assert run.raw_request == {"version": "v1"}
        assert run.raw_response == {"error": "boom"}
        assert harness.trace_fetcher.fetched == []
        assert harness.observer.runs_failed[0].failure == "qa_transport"
        assert harness.observer.completed[0].failed_runs == 2

    async def test_missing_trace_header(self, tmp_path: Path) -> None:
        error = TraceHeaderMissingError(
            traceparent=None, raw_request={"version": "v1"}, raw_response={}
        )
        harness = _Harness(
            prompts_dir=tmp_path, qa_client=FakeQAClient(behaviour=_raise(error))
        )

        outcome = await harness.runner.run(
            questions=_make_questions(1), targets=[_PRODUCTION]
        )

        run = outcome.environments[0].questions[0].runs[0]
        assert run.success is False
        assert run.failure is RunFailure.TRACE_HEADER_MISSING

    async def test_trace_not_found_keeps_success(self, tmp_path: Path) -> None:
        harness = _Harness(
            prompts_dir=tmp_path,
            trace_fetcher=FakeTraceFetcher(
                error=TraceNotFoundError(trace_id="t", attempts=10)
            ),
        )

        outcome = await harness.runner.run(
            questions=_make_questions(1), targets=[_PRODUCTION]
        )

        run = outcome.environments[0].questions[0].runs[0]
        assert run.success is True
        assert run.duration_seconds is None
        assert run.measured is False
        assert run.failure is RunFailure.TRACE_NOT_FOUND
        assert run.trace_id is not None
        assert run.raw_response is not None
        assert harness.observer.completed[0].successful_runs == 0

    async def test_trace_query_error(self, tmp_path: Path) -> None:
        harness = _Harness(
            prompts_dir=tmp_path,
            trace_fetcher=FakeTraceFetcher(
                error=TraceQueryError(trace_id="t", reason="HTTP 503")
            ),
        )

        outcome = await harness.runner.run(
            questions=_make_questions(1), targets=[_PRODUCTION]
        )

        run = outcome.environments[0].questions[0].runs[0]
        assert run.failure is RunFailure.TRACE_QUERY
        assert "HTTP 503" in (run.error or "")

    async def test_spans_without_root_count_as_not_found(self, tmp_path: Path) -> None:
        harness = _Harness(
            prompts_dir=tmp_path,
            trace_fetcher=FakeTraceFetcher(
                spans=[make_span("call_llm_streaming", 1_000)]
            ),
        )

        outcome = await harness.runner.run(
            questions=_make_questions(1), targets=[_PRODUCTION]
        )

        run = outcome.environments[0].questions[0].runs[0]
        assert run.failure is RunFailure.TRACE_NOT_FOUND
        assert run.duration_seconds is None

    async def test_missing_configuration_stops_before_any_request(
        self, tmp_path: Path
    ) -> None:
        environ = {k: v for k, v in _ENVIRON.items() if k != "DDN_AUTH_TOKEN"}
        harness = _Harness(prompts_dir=tmp_path, environ=environ)

        with pytest.raises(MissingConfigurationError):
            await harness.runner.run(
                questions=_make_questions(1), targets=[_PRODUCTION]
            )

        assert harness.qa_client.calls == []
        assert harness.observer.started == []


# ---------------------------------------------------------------------------
# Accuracy
# ---------------------------------------------------------------------------


class TestAccuracy:
    async def test_accuracy_recorded_when_judge_configured(
        self, tmp_path: Path
    ) -> None:
        judge = FakeJudge(
            verdicts={FUZZY_MATCH_CRITERIA: _PASS, DATA_ACCURACY_CRITERIA: _PASS}
        )
        harness = _Harness(prompts_dir=tmp_path, environ=_JUDGE_ENVIRON, judge=judge)

        outcome = await harness.runner.run(
            questions=_make_questions(1), targets=[_PRODUCTION]
        )

        run = outcome.environments[0].questions[0].runs[0]
        assert run.accuracy is not None
        assert run.accuracy.fuzzy_match == _PASS
        assert harness.observer.started[0].accuracy_enabled is True
        assert judge.calls[0][3] == "Answer 1"

    async def test_skip_accuracy_never_calls_judge(self, tmp_path: Path) -> None:
        judge = FakeJudge(
            verdicts={FUZZY_MATCH_CRITERIA: _PASS, DATA_ACCURACY_CRITERIA: _PASS}
        )
        harness = _Harness(
            prompts_dir=tmp_path,
            execution=ExecutionConfig(runs=1, skip_accuracy=True),
            environ=_JUDGE_ENVIRON,
            judge=judge,
        )

        outcome = await harness.runner.run(
            questions=_make_questions(1), targets=[_PRODUCTION]
        )

        assert outcome.environments[0].questions[0].runs[0].accuracy is None
        assert judge.calls == []

    async def test_unjudged_run_is_still_measured(self, tmp_path: Path) -> None:
        harness = _Harness(prompts_dir=tmp_path, environ=_JUDGE_ENVIRON)

        outcome = await harness.runner.run(
            questions=_make_questions(1), targets=[_PRODUCTION]
        )

        run = outcome.environments[0].questions[0].runs[0]
        assert run.accuracy is None
        assert run.measured is True
        assert len(harness.judge_observer.incomplete) == 2


# ---------------------------------------------------------------------------
# Run batches
# ---------------------------------------------------------------------------


class TestRunBatches:
    async def test_run_numbers_span_every_batch(self, tmp_path: Path) -> None:
        harness = _Harness(
            prompts_dir=tmp_path,
            execution=ExecutionConfig(runs=2, num_batches=3, batch_delay=0.5),
        )

        outcome = await harness.runner.run(
            questions=_make_questions(1), targets=[_PRODUCTION]
        )

        runs = outcome.environments[0].questions[0].runs
        assert [run.run_number for run in runs] == [1, 2, 3, 4, 5, 6]
        assert harness.sleeps == [0.5, 0.5]
        assert [
            (w.completed_batch, w.total_batches) for w in harness.observer.batch_waits
        ] == [(1, 3), (2, 3)]
        assert harness.observer.started[0].runs_per_question == 6

    async def test_no_delay_without_batch_delay(self, tmp_path: Path) -> None:
        harness = _Harness(
            prompts_dir=tmp_path, execution=ExecutionConfig(runs=1, num_batches=3)
        )

        await harness.runner.run(questions=_make_questions(1), targets=[_PRODUCTION])

        assert harness.sleeps == []
        assert harness.observer.batch_waits == []


# ---------------------------------------------------------------------------
# Question rate limit
# ---------------------------------------------------------------------------


class TestQuestionRateLimit:
    async def test_question_starts_are_spaced_by_rate_limit(
        self, tmp_path: Path
    ) -> None:
        sent: list[tuple[str, float]] = []

        def record(question: str, config: ResolvedConfig) -> QAResponse:
            sent.append((question, harness.clock))
            return QAResponse(
                trace_id=f"trace-{len(sent)}",
                raw_request={},
                raw_response={"assistant_actions": [{"message": "ok"}]},
            )

        harness = _Harness(
            prompts_dir=tmp_path,
            execution=ExecutionConfig(runs=1, concurrency=3, rate_limit=2),
            qa_client=FakeQAClient(behaviour=record),
        )

        outcome = await harness.runner.run(
            questions=_make_questions(3), targets=[_PRODUCTION]
        )

        assert sent == [
            ("Question 1?", 0.0),
            ("Question 2?", 0.5),
            ("Question 3?", 1.0),
        ]
        assert harness.sleeps == [0.5, 0.5]
        entries = outcome.environments[0].questions
        assert [entry.question.index for entry in entries] == [1, 2, 3]
        assert all(entry.runs[0].measured for entry in entries)

    async def test_zero_rate_limit_never_sleeps(self, tmp_path: Path) -> None:
        harness = _Harness(
            prompts_dir=tmp_path,
            execution=ExecutionConfig(runs=1, concurrency=3, rate_limit=0),
        )

        await harness.runner.run(questions=_make_questions(3), targets=[_PRODUCTION])

        assert harness.sleeps == []

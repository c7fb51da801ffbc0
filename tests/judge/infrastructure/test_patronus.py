"""Tests for PatronusJudge over an httpx.MockTransport."""

import json
from typing import Any

import httpx
import pytest

from pql_bench.environment.domain.config import ResolvedConfig
from pql_bench.judge.infrastructure.errors import JudgeEvaluationError
from pql_bench.judge.infrastructure.patronus import (
    PatronusJudge,
    build_request,
    normalize_base_url,
    parse_evaluation,
)
from tests.judge.fake_observer import FakeJudgeObserver


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_config(
    judge_base_url: str | None = "http://judge.example.com",
) -> ResolvedConfig:
    return ResolvedConfig(
        qa_endpoint_url="https://promptql.example.com/query",
        qa_api_key="qa-key",
        backend_url="https://ur-production.example.com/graphql",
        backend_auth_token="ddn-token",
        trace_auth_token="pat-token",
        judge_base_url=judge_base_url,
        judge_api_key="judge-key",
        judge_project_id="project-1",
    )


def _verdict(**fields: Any) -> dict[str, Any]:
    return {"results": [{"evaluation_result": fields}]}


def _error_body(message: str = "evaluator overloaded") -> dict[str, Any]:
    return {"results": [{"error_message": message}]}


class _ScriptedEvaluator:
    """Serves one scripted (status, body) pair per request, repeating the last."""

    def __init__(self, responses: list[tuple[int, Any]]) -> None:
        self._responses = responses
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self._responses[
            min(len(self.requests), len(self._responses)) - 1
        ]
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)


def _make_judge(
    evaluator: _ScriptedEvaluator,
) -> tuple[PatronusJudge, FakeJudgeObserver, list[float], httpx.AsyncClient]:
    observer = FakeJudgeObserver()
    sleeps: list[float] = []

    async def sleep(seconds: float) -> None:
        sleeps.append(seconds)

    http = httpx.AsyncClient(transport=httpx.MockTransport(evaluator))
    judge = PatronusJudge(client=http, observer=observer, sleep=sleep)
    return judge, observer, sleeps, http


async def _judge_once(judge: PatronusJudge, config: ResolvedConfig | None = None):
    return await judge.judge(
        criteria="fuzzy-match-v2",
        question="How many orders?",
        answer={"assistant_actions": [{"message": "1523"}]},
        gold_answer="1523 orders",
        config=config or _make_config(),
    )


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


class TestNormalizeBaseUrl:
    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("http://judge.example.com", "https://judge.example.com"),
            ("https://judge.example.com", "https://judge.example.com"),
            ("judge.example.com", "https://judge.example.com"),
        ],
    )
    def test_forces_https(self, url: str, expected: str) -> None:
        assert normalize_base_url(url=url) == expected


class TestBuildRequest:
    def test_formats_answer_and_gold_answer(self) -> None:
        body = build_request(
            criteria="check-data-accuracy",
            question="Q?",
            answer={"assistant_actions": [{"message": "A"}]},
            gold_answer="gold",
        )

        assert body["evaluators"] == [
            {
                "evaluator": "judge",
                "criteria": "check-data-accuracy",
                "explain_strategy": "always",
            }
        ]
        assert body["evaluated_model_input"] == "Q?"
        assert json.loads(body["evaluated_model_output"])["final_message"] == "A"
        assert body["evaluated_model_gold_answer"] == "gold"


class TestParseEvaluation:
    def test_score_raw_and_pass_variant(self) -> None:
        result = parse_evaluation(
            body=_verdict(score_raw=1, **{"pass": True}, explanation="Matches.")
        )

        assert result.passed is True
        assert result.score == 1.0
        assert result.details == "Matches."

    def test_score_and_passed_variant(self) -> None:
        result = parse_evaluation(
            body=_verdict(score=0.25, passed=False, details="Off by one.")
        )

        assert result.passed is False
        assert result.score == 0.25
        assert result.details == "Off by one."

    def test_first_variant_wins_when_both_present(self) -> None:
        result = parse_evaluation(
            body=_verdict(score_raw=0.9, score=0.1, **{"pass": True}, passed=False)
        )

        assert result.score == 0.9
        assert result.passed is True

    def test_missing_fields_use_defaults(self) -> None:
        result = parse_evaluation(body=_verdict())

        assert result.passed is False
        assert result.score == 0.0
        assert result.details == "No details provided"

    def test_error_message_raises(self) -> None:
        with pytest.raises(JudgeEvaluationError, match="evaluator overloaded"):
            parse_evaluation(body=_error_body())


# ---------------------------------------------------------------------------
# judge()
# ---------------------------------------------------------------------------


class TestJudge:
    async def test_success_on_first_attempt(self) -> None:
        evaluator = _ScriptedEvaluator([(200, _verdict(score_raw=1, **{"pass": True}))])
        judge, observer, sleeps, http = _make_judge(evaluator)

        async with http:
            result = await _judge_once(judge)

        assert result is not None
        assert result.passed is True
        assert sleeps == []
        assert observer.completed[0].criteria == "fuzzy-match-v2"

    async def test_request_uses_https_and_credentials(self) -> None:
        evaluator = _ScriptedEvaluator([(200, _verdict(passed=True))])
        judge, _, _, http = _make_judge(evaluator)

        async with http:
            await _judge_once(judge)

        request = evaluator.requests[0]
        assert str(request.url) == "https://judge.example.com/v1/evaluate"
        assert request.headers["X-API-KEY"] == "judge-key"
        assert request.headers["X-Project-ID"] == "project-1"

    async def test_success_on_second_attempt(self) -> None:
        evaluator = _ScriptedEvaluator(
            [(200, _error_body()), (200, _verdict(score=1.0, passed=True))]
        )
        judge, observer, sleeps, http = _make_judge(evaluator)

        async with http:
            result = await _judge_once(judge)

        assert result is not None
        assert result.score == 1.0
        assert sleeps == [1.0]
        assert [f.attempt for f in observer.failed] == [1]

    async def test_returns_none_after_three_failures(self) -> None:
        evaluator = _ScriptedEvaluator([(200, _error_body())])
        judge, observer, sleeps, http = _make_judge(evaluator)

        async with http:
            result = await _judge_once(judge)

        assert result is None
        assert len(evaluator.requests) == 3
        assert sleeps == [1.0, 1.0]
        assert observer.exhausted[0].attempts == 3

    async def test_non_200_status_consumes_an_attempt(self) -> None:
        evaluator = _ScriptedEvaluator(
            [(500, "upstream error"), (200, _verdict(passed=True, score=1))]
        )
        judge, observer, _, http = _make_judge(evaluator)

        async with http:
            result = await _judge_once(judge)

        assert result is not None
        assert "HTTP 500" in observer.failed[0].reason

    async def test_client_error_status_is_not_retried(self) -> None:
        evaluator = _ScriptedEvaluator(
            [(401, "invalid api key"), (200, _verdict(passed=True, score=1))]
        )
        judge, observer, sleeps, http = _make_judge(evaluator)

        async with http:
            result = await _judge_once(judge)

        assert result is None
        assert len(evaluator.requests) == 1
        assert sleeps == []
        assert observer.exhausted[0].attempts == 1

    @pytest.mark.parametrize("status", [408, 429, 503])
    async def test_throttling_and_server_errors_are_retried(self, status: int) -> None:
        evaluator = _ScriptedEvaluator(
            [(status, "try later"), (200, _verdict(passed=True, score=1))]
        )
        judge, _, sleeps, http = _make_judge(evaluator)

        async with http:
            result = await _judge_once(judge)

        assert result is not None
        assert len(evaluator.requests) == 2
        assert sleeps == [1.0]

    async def test_transport_error_consumes_an_attempt(self) -> None:
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            if len(calls) == 1:
                raise httpx.ReadTimeout("timed out", request=request)
            return httpx.Response(200, json=_verdict(passed=True, score=1))

        observer = FakeJudgeObserver()

        async def sleep(seconds: float) -> None:
            return None

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            judge = PatronusJudge(client=http, observer=observer, sleep=sleep)
            result = await _judge_once(judge)

        assert result is not None
        assert len(calls) == 2

    async def test_disabled_judge_sends_nothing(self) -> None:
        evaluator = _ScriptedEvaluator([(200, _verdict(passed=True))])
        judge, observer, _, http = _make_judge(evaluator)

        async with http:
            result = await _judge_once(judge, config=_make_config(judge_base_url=None))

        assert result is None
        assert evaluator.requests == []
        assert observer.started == []

    def test_rejects_zero_attempts(self) -> None:
        with pytest.raises(ValueError):
            PatronusJudge(
                client=httpx.AsyncClient(),
                observer=FakeJudgeObserver(),
                max_attempts=0,
            )

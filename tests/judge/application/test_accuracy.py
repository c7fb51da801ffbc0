"""Tests for evaluate_accuracy."""

from pql_bench.environment.domain.config import ResolvedConfig
from pql_bench.judge.application.accuracy import (
    DATA_ACCURACY_CRITERIA,
    FUZZY_MATCH_CRITERIA,
    evaluate_accuracy,
)
from pql_bench.judge.domain.score import CriterionResult
from tests.judge.fake_judge import FakeJudge
from tests.judge.fake_observer import FakeJudgeObserver

_PASS = CriterionResult(passed=True, score=1.0, details="match")
_FAIL = CriterionResult(passed=False, score=0.0, details="mismatch")


def _make_config() -> ResolvedConfig:
    return ResolvedConfig(
        qa_endpoint_url="https://promptql.example.com/query",
        qa_api_key="qa-key",
        backend_url="https://ur-production.example.com/graphql",
        backend_auth_token="ddn-token",
        trace_auth_token="pat-token",
        judge_base_url="https://judge.example.com",
        judge_api_key="judge-key",
        judge_project_id="project-1",
    )


async def _evaluate(judge: FakeJudge, observer: FakeJudgeObserver):
    return await evaluate_accuracy(
        judge=judge,
        observer=observer,
        question="How many orders?",
        answer={"assistant_actions": [{"message": "1523"}]},
        gold_answer="1523 orders",
        config=_make_config(),
    )


class TestEvaluateAccuracy:
    async def test_both_verdicts_present(self) -> None:
        judge = FakeJudge(
            verdicts={FUZZY_MATCH_CRITERIA: _PASS, DATA_ACCURACY_CRITERIA: _FAIL}
        )
        observer = FakeJudgeObserver()

        accuracy = await _evaluate(judge=judge, observer=observer)

        assert accuracy is not None
        assert accuracy.fuzzy_match == _PASS
        assert accuracy.data_accuracy == _FAIL
        assert observer.incomplete == []

    async def test_both_criteria_are_requested(self) -> None:
        judge = FakeJudge(
            verdicts={FUZZY_MATCH_CRITERIA: _PASS, DATA_ACCURACY_CRITERIA: _PASS}
        )

        await _evaluate(judge=judge, observer=FakeJudgeObserver())

        assert sorted(call[0] for call in judge.calls) == [
            "check-data-accuracy",
            "fuzzy-match-v2",
        ]
        assert all(call[3] == "1523 orders" for call in judge.calls)

    async def test_one_missing_verdict_drops_accuracy(self) -> None:
        judge = FakeJudge(verdicts={FUZZY_MATCH_CRITERIA: _PASS})
        observer = FakeJudgeObserver()

        accuracy = await _evaluate(judge=judge, observer=observer)

        assert accuracy is None
        assert observer.incomplete[0].failed_criteria == [DATA_ACCURACY_CRITERIA]

    async def test_both_missing(self) -> None:
        observer = FakeJudgeObserver()

        accuracy = await _evaluate(judge=FakeJudge(), observer=observer)

        assert accuracy is None
        assert observer.incomplete[0].failed_criteria == [
            FUZZY_MATCH_CRITERIA,
            DATA_ACCURACY_CRITERIA,
        ]

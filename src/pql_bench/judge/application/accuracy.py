"""Accuracy evaluation — runs both judge criteria for one answer concurrently."""

import asyncio
from typing import Any

from pql_bench.environment.domain.config import ResolvedConfig
from pql_bench.judge.domain.judge import Judge
from pql_bench.judge.domain.observer import JudgeObserver
from pql_bench.judge.domain.score import AccuracyResult

FUZZY_MATCH_CRITERIA = "fuzzy-match-v2"
DATA_ACCURACY_CRITERIA = "check-data-accuracy"


async def evaluate_accuracy(
    judge: Judge,
    observer: JudgeObserver,
    question: str,
    answer: Any,
    gold_answer: Any,
    config: ResolvedConfig,
) -> AccuracyResult | None:
    """Judge answer for both criteria; None unless both verdicts came back."""
    fuzzy_match, data_accuracy = await asyncio.gather(
        judge.judge(
            criteria=FUZZY_MATCH_CRITERIA,
            question=question,
            answer=answer,
            gold_answer=gold_answer,
            config=config,
        ),
        judge.judge(
            criteria=DATA_ACCURACY_CRITERIA,
            question=question,
            answer=answer,
            gold_answer=gold_answer,
            config=config,
        ),
    )

    if fuzzy_match is None or data_accuracy is None:
        failed = [
            criteria
            for criteria, verdict in (
                (FUZZY_MATCH_CRITERIA, fuzzy_match),
                (DATA_ACCURACY_CRITERIA, data_accuracy),
            )
            if verdict is None
        ]
        observer.accuracy_incomplete(question=question, failed_criteria=failed)
        return None

    return AccuracyResult(fuzzy_match=fuzzy_match, data_accuracy=data_accuracy)

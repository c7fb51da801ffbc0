"""Judge Protocol — structural interface for scoring an answer against a gold answer."""

from typing import Any, Protocol

from pql_bench.environment.domain.config import ResolvedConfig
from pql_bench.judge.domain.score import CriterionResult


class Judge(Protocol):
    """Any object with a matching judge() method satisfies this protocol.

    Implementations own their retry policy and return None once it is
    exhausted, so a judging failure never aborts the caller.
    """

    async def judge(
        self,
        criteria: str,
        question: str,
        answer: Any,
        gold_answer: Any,
        config: ResolvedConfig,
    ) -> CriterionResult | None: ...

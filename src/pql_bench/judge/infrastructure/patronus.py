"""PatronusJudge — Judge implementation backed by the Patronus evaluation API."""

import asyncio
import re
import time
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
from pydantic import ValidationError

from pql_bench.environment.domain.config import ResolvedConfig
from pql_bench.judge.domain.observer import JudgeObserver
from pql_bench.judge.domain.payload import format_for_judge
from pql_bench.judge.domain.score import CriterionResult
from pql_bench.judge.infrastructure.errors import JudgeEvaluationError

MAX_ATTEMPTS = 3
RETRY_DELAY_SECONDS = 1.0
TIMEOUT_SECONDS = 30.0

_NO_DETAILS = "No details provided"


def normalize_base_url(url: str) -> str:
    """Force the https scheme on url, replacing http:// if present."""
    if url.startswith("https://"):
        return url
    return f"https://{re.sub(r'^https?://', '', url)}"


def build_request(
    criteria: str, question: str, answer: Any, gold_answer: Any
) -> dict[str, Any]:
    return {
        "evaluators": [
            {
                "evaluator": "judge",
                "criteria": criteria,
                "explain_strategy": "always",
            }
        ],
        "evaluated_model_input": question,
        "evaluated_model_output": format_for_judge(data=answer),
        "evaluated_model_gold_answer": format_for_judge(data=gold_answer),
        "capture": "all",
        "tags": {},
    }


def _is_retriable_status(status_code: int) -> bool:
    """4xx statuses are final, except 408 and 429."""
    if status_code in (408, 429):
        return True
    return not 400 <= status_code < 500


def _first_present(result: dict[str, Any], keys: tuple[str, ...], default: Any) -> Any:
    for key in keys:
        if result.get(key) is not None:
            return result[key]
    return default


def parse_evaluation(body: Any) -> CriterionResult:
    """Extract the verdict from an evaluate response body.

    Two field-name variants exist: ``score_raw``/``pass`` and
    ``score``/``passed``; the first present wins.

    Raises:
        JudgeEvaluationError: if the first result carries an error_message or
            the verdict fields have unusable types.
    """
    results = body.get("results") if isinstance(body, dict) else None
    first = results[0] if isinstance(results, list) and results else None
    first = first if isinstance(first, dict) else {}

    if first.get("error_message"):
        raise JudgeEvaluationError(reason=str(first["error_message"]))

    result = first.get("evaluation_result") or first
    if not isinstance(result, dict):
        raise JudgeEvaluationError(reason="evaluation_result is not an object")

    try:
        return CriterionResult(
            passed=_first_present(result, ("pass", "passed"), False),
            score=_first_present(result, ("score_raw", "score"), 0),
            details=result.get("explanation") or result.get("details") or _NO_DETAILS,
        )
    except ValidationError as exc:
        raise JudgeEvaluationError(reason=str(exc)) from exc


class PatronusJudge:
    """Scores one answer for one criterion, retrying failed attempts.

    Every failure (transport error, non-200 status, an error_message inside a
    200 body, or an unusable verdict) consumes one attempt. After max_attempts
    the judge gives up and returns None. A non-retriable failure (a 4xx other
    than 408 or 429, such as bad credentials) gives up at once.

    Satisfies the Judge protocol structurally.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        observer: JudgeObserver,
        max_attempts: int = MAX_ATTEMPTS,
        retry_delay_seconds: float = RETRY_DELAY_SECONDS,
        timeout_seconds: float = TIMEOUT_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        self._client = client
        self._observer = observer
        self._max_attempts = max_attempts
        self._retry_delay_seconds = retry_delay_seconds
        self._timeout_seconds = timeout_seconds
        self._sleep = sleep

    async def judge(
        self,
        criteria: str,
        question: str,
        answer: Any,
        gold_answer: Any,
        config: ResolvedConfig,
    ) -> CriterionResult | None:
        """Return the verdict for criteria, or None once every attempt failed."""
        if not config.judge_enabled:
            return None

        for attempt in range(1, self._max_attempts + 1):
            self._observer.judge_attempt_started(criteria=criteria, attempt=attempt)
            start = time.monotonic()
            try:
                result = await self._evaluate(
                    criteria=criteria,
                    question=question,
                    answer=answer,
                    gold_answer=gold_answer,
                    config=config,
                )
            except JudgeEvaluationError as exc:
                self._observer.judge_attempt_failed(
                    criteria=criteria,
                    attempt=attempt,
                    max_attempts=self._max_attempts,
                    reason=str(exc),
                )
                if not exc.retriable:
                    self._observer.judge_exhausted(criteria=criteria, attempts=attempt)
                    return None
                if attempt < self._max_attempts:
                    await self._sleep(self._retry_delay_seconds)
                continue

            self._observer.judge_completed(
                criteria=criteria,
                passed=result.passed,
                score=result.score,
                duration_ms=int((time.monotonic() - start) * 1000),
            )
            return result

        self._observer.judge_exhausted(criteria=criteria, attempts=self._max_attempts)
        return None

    async def _evaluate(
        self,
        criteria: str,
        question: str,
        answer: Any,
        gold_answer: Any,
        config: ResolvedConfig,
    ) -> CriterionResult:
        base_url = normalize_base_url(url=config.judge_base_url or "")
        body = build_request(
            criteria=criteria,
            question=question,
            answer=answer,
            gold_answer=gold_answer,
        )
        headers = {
            "X-API-KEY": config.judge_api_key or "",
            "X-Project-ID": config.judge_project_id or "",
        }
        try:
            response = await self._client.post(
                f"{base_url}/v1/evaluate",
                json=body,
                headers=headers,
                timeout=self._timeout_seconds,
            )
        except httpx.HTTPError as exc:
            raise JudgeEvaluationError(reason=str(exc) or type(exc).__name__) from exc

        if response.status_code != 200:
            raise JudgeEvaluationError(
                reason=f"HTTP {response.status_code}: {response.text}",
                retriable=_is_retriable_status(status_code=response.status_code),
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise JudgeEvaluationError(reason=f"invalid JSON body: {exc}") from exc

        return parse_evaluation(body=payload)

"""BenchmarkOutcome — every RunResult of a benchmark, grouped for reporting."""

from datetime import datetime

from pydantic import BaseModel

from pql_bench.dataset.domain.question import Question
from pql_bench.evaluation.domain.run import RunResult


class QuestionRuns(BaseModel, frozen=True):
    question: Question
    runs: list[RunResult]


class EnvironmentRuns(BaseModel, frozen=True):
    """All runs against one environment, in question order."""

    display_name: str
    backend_url: str
    questions: list[QuestionRuns]


class BenchmarkOutcome(BaseModel, frozen=True):
    started_at: datetime
    elapsed_seconds: float
    environments: list[EnvironmentRuns]

"""Aggregator — summarizes the runs of one (environment, question) pair."""

import statistics

from pydantic import BaseModel, Field

from pql_bench.evaluation.domain.run import RunResult


class SpanStats(BaseModel, frozen=True):
    sql_engine_execute_sql: float = 0.0
    call_llm_streaming: float = 0.0
    pure_code_execution: float = 0.0


class AccuracyStats(BaseModel, frozen=True):
    """Pass rates over the runs that received both judge verdicts."""

    evaluated_runs: int = 0
    fuzzy_match_pass_rate: float = 0.0
    data_accuracy_pass_rate: float = 0.0
    combined_pass_rate: float = 0.0


class QuestionStats(BaseModel, frozen=True):
    """Statistics for one question against one environment.

    Every statistic over an empty set is 0. A run counts as successful when it
    produced a latency measurement; failed runs remain in ``runs``.
    """

    runs: list[RunResult]
    average: float
    min: float
    max: float
    successful_runs: int = Field(ge=0)
    failed_runs: int = Field(ge=0)
    average_iterations: float
    min_iterations: float
    max_iterations: float
    span_averages: SpanStats
    span_mins: SpanStats
    span_maxs: SpanStats
    accuracy: AccuracyStats


def _summary(values: list[float]) -> tuple[float, float, float]:
    """Return (mean, min, max) of values, or zeros for an empty list."""
    if not values:
        return 0.0, 0.0, 0.0
    return statistics.mean(values), min(values), max(values)


def _rate(passed: int, total: int) -> float:
    return passed / total if total else 0.0


def accuracy_stats(runs: list[RunResult]) -> AccuracyStats:
    judged = [run.accuracy for run in runs if run.accuracy is not None]
    fuzzy = sum(1 for a in judged if a.fuzzy_match.passed)
    data = sum(1 for a in judged if a.data_accuracy.passed)
    combined = sum(
        1 for a in judged if a.fuzzy_match.passed and a.data_accuracy.passed
    )
    return AccuracyStats(
        evaluated_runs=len(judged),
        fuzzy_match_pass_rate=_rate(passed=fuzzy, total=len(judged)),
        data_accuracy_pass_rate=_rate(passed=data, total=len(judged)),
        combined_pass_rate=_rate(passed=combined, total=len(judged)),
    )


def aggregate(runs: list[RunResult]) -> QuestionStats:
    """Compute QuestionStats over runs, ignoring unmeasured fields."""
    durations = [
        run.duration_seconds for run in runs if run.duration_seconds is not None
    ]
    iterations = [float(run.iterations) for run in runs if run.iterations is not None]

    span_values: dict[str, list[float]] = {
        name: [
            value
            for run in runs
            if (value := getattr(run.span_durations, name)) is not None
        ]
        for name in SpanStats.model_fields
    }
    span_summaries = {
        name: _summary(values=values) for name, values in span_values.items()
    }

    average, minimum, maximum = _summary(values=durations)
    avg_iterations, min_iterations, max_iterations = _summary(values=iterations)

    return QuestionStats(
        runs=runs,
        average=average,
        min=minimum,
        max=maximum,
        successful_runs=len(durations),
        failed_runs=len(runs) - len(durations),
        average_iterations=avg_iterations,
        min_iterations=min_iterations,
        max_iterations=max_iterations,
        span_averages=SpanStats(**{n: s[0] for n, s in span_summaries.items()}),
        span_mins=SpanStats(**{n: s[1] for n, s in span_summaries.items()}),
        span_maxs=SpanStats(**{n: s[2] for n, s in span_summaries.items()}),
        accuracy=accuracy_stats(runs=runs),
    )

"""JSON results report — the persisted output of a benchmark."""

import json
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel

from pql_bench.config.domain.execution import ExecutionConfig
from pql_bench.evaluation.domain.memory import MemoryStats
from pql_bench.evaluation.domain.outcome import BenchmarkOutcome
from pql_bench.report.aggregator import QuestionStats, aggregate


class BatchInfo(BaseModel, frozen=True):
    num_batches: int
    batch_delay: float


class ReportMetadata(BaseModel, frozen=True):
    timestamp: datetime
    num_runs: int
    runs_per_batch: int
    total_questions: int
    successful_runs: int
    failed_runs: int
    batch_info: BatchInfo
    memory_stats: MemoryStats | None = None


class EnvironmentReport(BaseModel, frozen=True):
    ddn_url: str
    questions: dict[str, QuestionStats]


class BenchmarkReport(BaseModel, frozen=True):
    """Results tree keyed by environment display name, then question text."""

    metadata: ReportMetadata
    environments: dict[str, EnvironmentReport]


def build_report(
    outcome: BenchmarkOutcome,
    execution: ExecutionConfig,
    memory_stats: MemoryStats | None = None,
) -> BenchmarkReport:
    """Aggregate every (environment, question) pair of outcome.

    Each pair gets an entry even when all of its runs failed.
    """
    environments: dict[str, EnvironmentReport] = {}
    successful = 0
    failed = 0
    total_questions = 0

    for env in outcome.environments:
        questions: dict[str, QuestionStats] = {}
        for entry in env.questions:
            stats = aggregate(runs=entry.runs)
            questions[entry.question.text] = stats
            successful += stats.successful_runs
            failed += stats.failed_runs
        total_questions = max(total_questions, len(env.questions))
        environments[env.display_name] = EnvironmentReport(
            ddn_url=env.backend_url, questions=questions
        )

    return BenchmarkReport(
        metadata=ReportMetadata(
            timestamp=outcome.started_at,
            num_runs=execution.total_runs,
            runs_per_batch=execution.runs,
            total_questions=total_questions,
            successful_runs=successful,
            failed_runs=failed,
            batch_info=BatchInfo(
                num_batches=execution.num_batches,
                batch_delay=execution.batch_delay,
            ),
            memory_stats=memory_stats,
        ),
        environments=environments,
    )


def write_report(report: BenchmarkReport, path: Path) -> None:
    """Write report to path as indented JSON, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(report.model_dump(mode="json"), indent=2, ensure_ascii=False),
        encoding="utf-8",
    )

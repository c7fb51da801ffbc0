"""RunResult — the outcome of one (question, environment, run) benchmark request."""

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from pql_bench.judge.domain.score import AccuracyResult
from pql_bench.tracing.domain.breakdown import SpanDurations, SpanInformation


class RunFailure(StrEnum):
    """Why a run has no latency measurement."""

    QA_TRANSPORT = "qa_transport"
    TRACE_HEADER_MISSING = "trace_header_missing"
    TRACE_NOT_FOUND = "trace_not_found"
    TRACE_QUERY = "trace_query"


class RunResult(BaseModel, frozen=True):
    """Immutable record of one run.

    ``success`` reflects the QA call only: a run whose trace could not be
    retrieved is still successful but has no duration. Failed runs keep their
    place in the report with null measurement fields.
    """

    run_number: int = Field(ge=1)
    timestamp: datetime
    success: bool
    duration_seconds: float | None = None
    trace_id: str | None = None
    iterations: int | None = None
    span_durations: SpanDurations = Field(default_factory=SpanDurations)
    span_information: SpanInformation = Field(default_factory=SpanInformation)
    accuracy: AccuracyResult | None = None
    failure: RunFailure | None = None
    error: str | None = None
    raw_request: dict[str, Any] | None = None
    raw_response: Any = None

    @property
    def measured(self) -> bool:
        return self.duration_seconds is not None

"""Latency breakdown derived from the spans of one QA request."""

import json
from typing import Any

from pydantic import BaseModel

from pql_bench.tracing.domain.span import Span

ROOT_SPAN_NAME = "POST:/query"
SQL_SPAN_NAME = "sql_engine_execute_sql"
LLM_SPAN_NAME = "call_llm_streaming"
CODE_SPAN_NAME = "promptql_exec_code_streaming"


class SpanDurations(BaseModel, frozen=True):
    """Component durations in seconds; None when the span was not present."""

    sql_engine_execute_sql: float | None = None
    call_llm_streaming: float | None = None
    pure_code_execution: float | None = None


class SpanInformation(BaseModel, frozen=True):
    """Payloads captured from the trace: SQL text, executed code, code error."""

    sql_engine_execute_sql: str | None = None
    code_executed: str | None = None
    error: str | None = None


class LatencyBreakdown(BaseModel, frozen=True):
    total_seconds: float
    span_durations: SpanDurations
    span_information: SpanInformation
    iterations: int


def find_span(spans: list[Span], name: str) -> Span | None:
    """Return the first span named name, in backend order."""
    return next((span for span in spans if span.span_name == name), None)


def has_root_span(spans: list[Span]) -> bool:
    return find_span(spans=spans, name=ROOT_SPAN_NAME) is not None


def pure_code_execution_seconds(
    total: float, sql: float | None, llm: float | None
) -> float:
    """Time not attributed to SQL or LLM spans.

    Derived by subtraction, not measured: overlapping or overcounted child
    spans make it negative, and it is never clamped.
    """
    return total - (sql or 0.0) - (llm or 0.0)


def _as_text(value: Any) -> str | None:
    if value is None or isinstance(value, str):
        return value
    return json.dumps(value)


def derive_breakdown(spans: list[Span]) -> LatencyBreakdown | None:
    """Build the LatencyBreakdown for spans, or None if the root span is absent."""
    root = find_span(spans=spans, name=ROOT_SPAN_NAME)
    if root is None:
        return None

    sql_span = find_span(spans=spans, name=SQL_SPAN_NAME)
    llm_span = find_span(spans=spans, name=LLM_SPAN_NAME)
    code_spans = [span for span in spans if span.span_name == CODE_SPAN_NAME]

    total = root.duration_seconds
    sql = sql_span.duration_seconds if sql_span is not None else None
    llm = llm_span.duration_seconds if llm_span is not None else None

    first_code_span = code_spans[0] if code_spans else None
    return LatencyBreakdown(
        total_seconds=total,
        span_durations=SpanDurations(
            sql_engine_execute_sql=sql,
            call_llm_streaming=llm,
            pure_code_execution=pure_code_execution_seconds(
                total=total, sql=sql, llm=llm
            ),
        ),
        span_information=SpanInformation(
            sql_engine_execute_sql=_as_text(
                sql_span.span_attributes.get("sql") if sql_span else None
            ),
            code_executed=_as_text(
                first_code_span.event_attribute(key="code")
                if first_code_span
                else None
            ),
            error=_as_text(
                first_code_span.event_attribute(key="error")
                if first_code_span
                else None
            ),
        ),
        iterations=len(code_spans),
    )

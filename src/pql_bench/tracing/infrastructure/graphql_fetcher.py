"""GraphQLTraceFetcher — polls the tracing GraphQL API until the root span appears."""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta
from typing import Any
from urllib.parse import urlsplit

import httpx
from pydantic import ValidationError

from pql_bench.environment.domain.config import ResolvedConfig
from pql_bench.tracing.domain.breakdown import has_root_span
from pql_bench.tracing.domain.observer import TraceObserver
from pql_bench.tracing.domain.polling import MAX_ATTEMPTS, backoff_delay
from pql_bench.tracing.domain.span import Span
from pql_bench.tracing.infrastructure.errors import TraceNotFoundError, TraceQueryError

DEFAULT_TRACE_URL = "https://cp-ddn.pro.hasura.io/supergraph-prod/graphql"

_OPERATION_NAME = "getPromptQLRemoteTraceWithTimeStamp"
_QUERY = """\
query getPromptQLRemoteTraceWithTimeStamp($TraceId: String!, \
$GreaterThanTimestamp: DateTime64_9_!, $LesserThanTimeStamp: DateTime64_9_!) {
  otel_traces: get_promptql_trace(
    where: {Timestamp: {_gte: $GreaterThanTimestamp, _lte: $LesserThanTimeStamp}}
    order_by: {Timestamp: asc}
    args: {trace_id: $TraceId}
  ) {
    Duration
    Events_Attributes
    Events_Name
    Events_Timestamp
    ParentSpanId
    ResourceAttributes
    ScopeName
    ServiceName
    SpanAttributes
    SpanId
    SpanKind
    SpanName
    StatusCode
    StatusMessage
    Timestamp
    TraceId
  }
}"""

_LOOKBACK = timedelta(hours=2)
_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_timestamp(moment: datetime) -> str:
    """Format moment in UTC as ``YYYY-MM-DD HH:MM:SS``."""
    return moment.astimezone(UTC).strftime(_TIMESTAMP_FORMAT)


def build_query(trace_id: str, now: datetime) -> dict[str, Any]:
    """Build the GraphQL request body for spans of trace_id in [now - 2h, now]."""
    return {
        "query": _QUERY,
        "variables": {
            "TraceId": trace_id,
            "GreaterThanTimestamp": format_timestamp(moment=now - _LOOKBACK),
            "LesserThanTimeStamp": format_timestamp(moment=now),
        },
        "operationName": _OPERATION_NAME,
    }


def build_headers(config: ResolvedConfig) -> dict[str, str]:
    return {
        "accept": "application/graphql-response+json, application/json",
        "authorization": f"pat {config.trace_auth_token}",
        "hasura-client-name": "hasura-console",
        "x-telemetry-host-header": urlsplit(config.backend_url).netloc,
    }


def _parse_spans(trace_id: str, body: Any) -> list[Span]:
    if not isinstance(body, dict):
        raise TraceQueryError(trace_id=trace_id, reason="response is not an object")
    data = body.get("data")
    if not isinstance(data, dict):
        errors = body.get("errors") or "response has no data"
        raise TraceQueryError(trace_id=trace_id, reason=str(errors))
    rows = data.get("otel_traces") or []
    try:
        return [Span.model_validate(row) for row in rows]
    except ValidationError as exc:
        raise TraceQueryError(trace_id=trace_id, reason=str(exc)) from exc


class GraphQLTraceFetcher:
    """Retrieves the spans of a trace, waiting for the collector to catch up.

    Traces are written asynchronously, so the root span may not exist yet when
    the QA response arrives. Each empty or rootless result is followed by an
    exponential backoff sleep until max_attempts polls have been made. A failed
    query is not retried.

    Satisfies the TraceFetcher protocol structurally.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        observer: TraceObserver,
        url: str = DEFAULT_TRACE_URL,
        max_attempts: int = MAX_ATTEMPTS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        now: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        self._client = client
        self._observer = observer
        self._url = url
        self._max_attempts = max_attempts
        self._sleep = sleep
        self._now = now

    async def fetch(self, trace_id: str, config: ResolvedConfig) -> list[Span]:
        """Poll until the root span of trace_id is present and return all spans.

        Raises:
            TraceQueryError: if a query fails at the transport level or returns
                an unusable body.
            TraceNotFoundError: if the root span is still missing after the
                last attempt.
        """
        headers = build_headers(config=config)

        for attempt in range(1, self._max_attempts + 1):
            self._observer.trace_poll_started(trace_id=trace_id, attempt=attempt)
            spans = await self._query(trace_id=trace_id, headers=headers)

            if has_root_span(spans=spans):
                self._observer.trace_found(
                    trace_id=trace_id, attempt=attempt, span_count=len(spans)
                )
                return spans

            if attempt < self._max_attempts:
                delay = backoff_delay(attempt=attempt)
                self._observer.trace_poll_retry(
                    trace_id=trace_id,
                    attempt=attempt,
                    max_attempts=self._max_attempts,
                    span_count=len(spans),
                    delay_seconds=delay,
                )
                await self._sleep(delay)

        self._observer.trace_not_found(trace_id=trace_id, attempts=self._max_attempts)
        raise TraceNotFoundError(trace_id=trace_id, attempts=self._max_attempts)

    async def _query(self, trace_id: str, headers: dict[str, str]) -> list[Span]:
        body = build_query(trace_id=trace_id, now=self._now())
        try:
            response = await self._client.post(self._url, json=body, headers=headers)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            reason = str(exc) or type(exc).__name__
            self._observer.trace_query_failed(trace_id=trace_id, reason=reason)
            raise TraceQueryError(trace_id=trace_id, reason=reason) from exc

        try:
            return _parse_spans(trace_id=trace_id, body=payload)
        except TraceQueryError as exc:
            self._observer.trace_query_failed(trace_id=trace_id, reason=str(exc))
            raise

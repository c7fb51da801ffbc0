"""PromptQLClient — QAClient implementation speaking the PromptQL query API over httpx."""

import time
from typing import Any

import httpx

from pql_bench.environment.domain.config import ResolvedConfig
from pql_bench.qa.domain.observer import QAObserver
from pql_bench.qa.domain.response import QAResponse
from pql_bench.qa.infrastructure.errors import QATransportError, TraceHeaderMissingError

_LLM_PROVIDER = "hasura"


def build_request(
    question: str, config: ResolvedConfig, system_prompt: str
) -> dict[str, Any]:
    """Build the non-streaming ``v1`` query body for a single user message."""
    return {
        "version": "v1",
        "promptql_api_key": config.qa_api_key,
        "llm": {"provider": _LLM_PROVIDER},
        "ddn": {
            "url": config.backend_url,
            "headers": {"authorization": f"Bearer {config.backend_auth_token}"},
        },
        "timezone": config.timezone,
        "system_instructions": system_prompt,
        "interactions": [{"user_message": {"text": question}}],
        "stream": False,
    }


def parse_traceparent(header: str | None) -> str | None:
    """Return the trace ID from a W3C ``00-{traceId}-{spanId}-{flags}`` header."""
    if not header:
        return None
    fields = header.split("-")
    if len(fields) < 2 or not fields[1]:
        return None
    return fields[1]


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text or None


class PromptQLClient:
    """Sends one question per call to an environment's PromptQL endpoint.

    Satisfies the QAClient protocol structurally. The httpx client is injected
    so that one connection pool is shared across a run (and so tests can use
    ``httpx.MockTransport``).
    """

    def __init__(self, client: httpx.AsyncClient, observer: QAObserver) -> None:
        self._client = client
        self._observer = observer

    async def ask(
        self, question: str, config: ResolvedConfig, system_prompt: str
    ) -> QAResponse:
        """Send question and return its trace ID with the raw bodies.

        Raises:
            QATransportError: on connection errors or non-2xx responses.
            TraceHeaderMissingError: if the response has no usable traceparent.
        """
        url = config.qa_endpoint_url
        request_body = build_request(
            question=question, config=config, system_prompt=system_prompt
        )
        self._observer.qa_request_sent(url=url, question=question)

        start = time.monotonic()
        try:
            response = await self._client.post(url, json=request_body)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            reason = f"HTTP {status_code} {exc.response.reason_phrase}"
            self._observer.qa_request_failed(
                url=url, status_code=status_code, reason=reason
            )
            raise QATransportError(
                reason=reason,
                raw_request=request_body,
                status_code=status_code,
                raw_response=_response_body(exc.response),
            ) from exc
        except httpx.HTTPError as exc:
            reason = str(exc) or type(exc).__name__
            self._observer.qa_request_failed(url=url, status_code=None, reason=reason)
            raise QATransportError(reason=reason, raw_request=request_body) from exc

        duration_ms = int((time.monotonic() - start) * 1000)
        raw_response = _response_body(response)

        traceparent = response.headers.get("traceparent")
        trace_id = parse_traceparent(header=traceparent)
        if trace_id is None:
            self._observer.qa_trace_header_missing(url=url, traceparent=traceparent)
            raise TraceHeaderMissingError(
                traceparent=traceparent,
                raw_request=request_body,
                raw_response=raw_response,
            )

        self._observer.qa_request_completed(
            url=url, trace_id=trace_id, duration_ms=duration_ms
        )
        return QAResponse(
            trace_id=trace_id,
            raw_request=request_body,
            raw_response=raw_response,
        )

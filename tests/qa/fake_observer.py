"""FakeQAObserver — records QA client events for assertion in tests."""

from dataclasses import dataclass


@dataclass(frozen=True)
class RequestSentEvent:
    url: str
    question: str


@dataclass(frozen=True)
class RequestCompletedEvent:
    url: str
    trace_id: str
    duration_ms: int


@dataclass(frozen=True)
class RequestFailedEvent:
    url: str
    status_code: int | None
    reason: str


@dataclass(frozen=True)
class TraceHeaderMissingEvent:
    url: str
    traceparent: str | None


class FakeQAObserver:
    def __init__(self) -> None:
        self.sent: list[RequestSentEvent] = []
        self.completed: list[RequestCompletedEvent] = []
        self.failed: list[RequestFailedEvent] = []
        self.header_missing: list[TraceHeaderMissingEvent] = []

    def qa_request_sent(self, url: str, question: str) -> None:
        self.sent.append(RequestSentEvent(url=url, question=question))

    def qa_request_completed(self, url: str, trace_id: str, duration_ms: int) -> None:
        self.completed.append(
            RequestCompletedEvent(url=url, trace_id=trace_id, duration_ms=duration_ms)
        )

    def qa_request_failed(self, url: str, status_code: int | None, reason: str) -> None:
        self.failed.append(
            RequestFailedEvent(url=url, status_code=status_code, reason=reason)
        )

    def qa_trace_header_missing(self, url: str, traceparent: str | None) -> None:
        self.header_missing.append(
            TraceHeaderMissingEvent(url=url, traceparent=traceparent)
        )

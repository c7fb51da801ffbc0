"""QAObserver port — domain events emitted while calling the QA backend."""

from typing import Protocol


class QAObserver(Protocol):
    def qa_request_sent(self, url: str, question: str) -> None: ...

    def qa_request_completed(
        self, url: str, trace_id: str, duration_ms: int
    ) -> None: ...

    def qa_request_failed(
        self, url: str, status_code: int | None, reason: str
    ) -> None: ...

    def qa_trace_header_missing(self, url: str, traceparent: str | None) -> None: ...

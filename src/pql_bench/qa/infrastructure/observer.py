"""Structlog implementation of the QAObserver port."""

import structlog


class StructlogQAObserver:
    """Delegates QA domain events to structlog.

    Satisfies the QAObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def qa_request_sent(self, url: str, question: str) -> None:
        self._log.debug("qa.request_sent", url=url, question=question)

    def qa_request_completed(self, url: str, trace_id: str, duration_ms: int) -> None:
        self._log.debug(
            "qa.request_completed",
            url=url,
            trace_id=trace_id,
            duration_ms=duration_ms,
        )

    def qa_request_failed(self, url: str, status_code: int | None, reason: str) -> None:
        self._log.error(
            "qa.request_failed",
            url=url,
            status_code=status_code,
            reason=reason,
        )

    def qa_trace_header_missing(self, url: str, traceparent: str | None) -> None:
        self._log.error("qa.trace_header_missing", url=url, traceparent=traceparent)

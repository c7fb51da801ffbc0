"""QAResponse — the outcome of one successful request to the QA backend."""

from typing import Any

from pydantic import BaseModel, Field


class QAResponse(BaseModel, frozen=True):
    """Trace identifier plus the raw request/response bodies of a QA call."""

    trace_id: str = Field(min_length=1)
    raw_request: dict[str, Any]
    raw_response: Any

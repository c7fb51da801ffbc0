"""Span — one OpenTelemetry span row as returned by the tracing backend."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Span(BaseModel):
    """Immutable view of a single span.

    Field aliases match the column names of the tracing backend's GraphQL
    schema. ``Duration`` arrives as a string of nanoseconds and is coerced to
    an int. Unknown columns are ignored.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    span_name: str = Field(alias="SpanName")
    duration_ns: int = Field(alias="Duration", ge=0)
    trace_id: str | None = Field(default=None, alias="TraceId")
    span_id: str | None = Field(default=None, alias="SpanId")
    parent_span_id: str | None = Field(default=None, alias="ParentSpanId")
    service_name: str | None = Field(default=None, alias="ServiceName")
    timestamp: str | None = Field(default=None, alias="Timestamp")
    status_code: str | None = Field(default=None, alias="StatusCode")
    span_attributes: dict[str, Any] = Field(
        default_factory=dict, alias="SpanAttributes"
    )
    events_attributes: Any = Field(default=None, alias="Events_Attributes")

    @property
    def duration_seconds(self) -> float:
        return self.duration_ns / 1_000_000_000

    def event_attribute(self, key: str) -> Any:
        """Look up key in the span's event attributes.

        The backend returns either a single map or a list of per-event maps;
        for a list the first event carrying key wins.
        """
        attributes = self.events_attributes
        if isinstance(attributes, dict):
            return attributes.get(key)
        if isinstance(attributes, list):
            for event in attributes:
                if isinstance(event, dict) and key in event:
                    return event[key]
        return None

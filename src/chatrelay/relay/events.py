"""Wire-level stream events and their text/event-stream framing.

Each event is sent as one record: ``data: <json>\n\n``.
"""

import json
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from ..errors import StreamDecodeError
from ..llm import TokenUsage

SSE_DATA_PREFIX = "data:"
SSE_RECORD_DELIMITER = "\n\n"


class _Event(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class ContentEvent(_Event):
    """Incremental assistant text."""

    type: Literal["content"] = "content"
    content: str


class DoneEvent(_Event):
    """Terminal event for a successful stream."""

    type: Literal["done"] = "done"
    token_usage: TokenUsage = Field(default_factory=TokenUsage)


class ErrorEvent(_Event):
    """Terminal event for a failed stream."""

    type: Literal["error"] = "error"
    error: str


StreamEvent = Annotated[Union[ContentEvent, DoneEvent, ErrorEvent], Field(discriminator="type")]

_event_adapter: TypeAdapter[StreamEvent] = TypeAdapter(StreamEvent)


def is_terminal(event: StreamEvent) -> bool:
    return event.type in ("done", "error")


def encode_sse(event: StreamEvent) -> str:
    """Frame an event as a text/event-stream record."""
    return f"{SSE_DATA_PREFIX} {event.model_dump_json(by_alias=True)}{SSE_RECORD_DELIMITER}"


def parse_event(data: str | dict[str, Any]) -> StreamEvent:
    """Decode one record payload into a StreamEvent.

    Raises:
        StreamDecodeError: If the payload is not JSON or not a known event
    """
    payload: Any = data
    if isinstance(data, str):
        try:
            payload = json.loads(data)
        except json.JSONDecodeError as exc:
            raise StreamDecodeError(f"Invalid JSON in event record: {exc.msg}", data) from exc
    try:
        return _event_adapter.validate_python(payload)
    except ValidationError as exc:
        raise StreamDecodeError(
            f"Unrecognized event record: {exc.error_count()} error(s)", str(data)
        ) from exc

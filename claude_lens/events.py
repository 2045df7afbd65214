"""Typed stream events – closed unions validated once per decoded payload."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, ValidatorFunctionWrapHandler, field_validator

# ---------------------------------------------------------------------------
# Shared shapes
# ---------------------------------------------------------------------------


def _none_if_invalid(value: Any, handler: ValidatorFunctionWrapHandler) -> Any:
    """Drop one badly typed field instead of rejecting the whole event."""
    try:
        return handler(value)
    except ValidationError:
        return None


class UsagePayload(BaseModel):
    input_tokens: int | None = None
    output_tokens: int | None = None
    cache_creation_input_tokens: int | None = None
    cache_read_input_tokens: int | None = None

    lenient_counters = field_validator(
        "input_tokens",
        "output_tokens",
        "cache_creation_input_tokens",
        "cache_read_input_tokens",
        mode="wrap",
    )(_none_if_invalid)

    def present(self) -> dict[str, int]:
        """Return only the counters this payload actually carries."""
        return self.model_dump(exclude_none=True)


class StreamMessage(BaseModel):
    """The message object embedded in ``message_start``."""

    id: str | None = None
    role: str | None = None
    model: str | None = None
    stop_reason: str | None = None
    stop_sequence: str | None = None
    usage: UsagePayload | None = None

    lenient_fields = field_validator("id", "role", "model", "stop_reason", "stop_sequence", "usage", mode="wrap")(
        _none_if_invalid
    )


class ErrorPayload(BaseModel):
    type: str = "error"
    message: str = ""


# ---------------------------------------------------------------------------
# Content block start shapes
# ---------------------------------------------------------------------------


class TextStart(BaseModel):
    type: Literal["text"]
    text: str = ""


class ThinkingStart(BaseModel):
    type: Literal["thinking"]
    thinking: str = ""
    signature: str = ""


class RedactedThinkingStart(BaseModel):
    type: Literal["redacted_thinking"]
    data: str = ""


class ToolUseStart(BaseModel):
    type: Literal["tool_use", "server_tool_use", "mcp_tool_use"]
    id: str | None = None
    name: str = ""
    # The start event carries an empty placeholder; arguments arrive as deltas.
    input: Any = None


BlockStart = Annotated[
    Union[TextStart, ThinkingStart, RedactedThinkingStart, ToolUseStart],
    Field(discriminator="type"),
]

# ---------------------------------------------------------------------------
# Delta sub-kinds
# ---------------------------------------------------------------------------


class TextDelta(BaseModel):
    type: Literal["text_delta"]
    text: str = ""


class ThinkingDelta(BaseModel):
    type: Literal["thinking_delta"]
    thinking: str = ""


class InputJsonDelta(BaseModel):
    type: Literal["input_json_delta"]
    partial_json: str = ""


class SignatureDelta(BaseModel):
    type: Literal["signature_delta"]
    signature: str = ""


class CitationsDelta(BaseModel):
    type: Literal["citations_delta"]
    citation: dict[str, Any] = Field(default_factory=dict)


Delta = Annotated[
    Union[TextDelta, ThinkingDelta, InputJsonDelta, SignatureDelta, CitationsDelta],
    Field(discriminator="type"),
]

# ---------------------------------------------------------------------------
# Event kinds
# ---------------------------------------------------------------------------


class MessageStart(BaseModel):
    type: Literal["message_start"]
    message: StreamMessage = Field(default_factory=StreamMessage)


class ContentBlockStart(BaseModel):
    type: Literal["content_block_start"]
    index: int
    content_block: BlockStart


class ContentBlockDelta(BaseModel):
    type: Literal["content_block_delta"]
    index: int
    delta: Delta


class ContentBlockStop(BaseModel):
    type: Literal["content_block_stop"]
    index: int


class MessageDeltaBody(BaseModel):
    stop_reason: str | None = None
    stop_sequence: str | None = None

    lenient_fields = field_validator("stop_reason", "stop_sequence", mode="wrap")(_none_if_invalid)


class MessageDelta(BaseModel):
    type: Literal["message_delta"]
    delta: MessageDeltaBody = Field(default_factory=MessageDeltaBody)
    usage: UsagePayload | None = None

    lenient_usage = field_validator("usage", mode="wrap")(_none_if_invalid)


class MessageStop(BaseModel):
    type: Literal["message_stop"]


class Ping(BaseModel):
    type: Literal["ping"]


class StreamError(BaseModel):
    type: Literal["error"]
    error: ErrorPayload = Field(default_factory=ErrorPayload)


StreamEvent = Annotated[
    Union[
        MessageStart,
        ContentBlockStart,
        ContentBlockDelta,
        ContentBlockStop,
        MessageDelta,
        MessageStop,
        Ping,
        StreamError,
    ],
    Field(discriminator="type"),
]

_stream_event_adapter: TypeAdapter[StreamEvent] = TypeAdapter(StreamEvent)


def validate_event(data: Any) -> StreamEvent | None:
    """Validate a decoded payload against the closed event union.

    Returns ``None`` for anything that is not a recognized, well-shaped
    event: non-objects, unknown ``type`` tags, unknown delta or block
    sub-kinds, missing indices.
    """
    if not isinstance(data, dict):
        return None
    try:
        return _stream_event_adapter.validate_python(data)
    except (ValidationError, RecursionError):
        return None

"""Fold an ordered event sequence into a single reconstructed message."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Union

from claude_lens.events import (
    CitationsDelta,
    ContentBlockDelta,
    ContentBlockStart,
    ContentBlockStop,
    InputJsonDelta,
    MessageDelta,
    MessageStart,
    MessageStop,
    Ping,
    RedactedThinkingStart,
    SignatureDelta,
    StreamError,
    TextDelta,
    TextStart,
    ThinkingDelta,
    ThinkingStart,
    ToolUseStart,
    UsagePayload,
)
from claude_lens.sse import SSEEvent

log = logging.getLogger("claude-lens")

USAGE_FIELDS = (
    "input_tokens",
    "output_tokens",
    "cache_creation_input_tokens",
    "cache_read_input_tokens",
)


@dataclass
class Usage:
    """Token counters. ``None`` means never observed, which is not zero."""

    input_tokens: int | None = None
    output_tokens: int | None = None
    cache_creation_input_tokens: int | None = None
    cache_read_input_tokens: int | None = None

    def merge(self, payload: UsagePayload) -> None:
        for key, value in payload.present().items():
            setattr(self, key, value)

    def to_dict(self) -> dict[str, int]:
        return {k: getattr(self, k) for k in USAGE_FIELDS if getattr(self, k) is not None}


# ---------------------------------------------------------------------------
# Content blocks
# ---------------------------------------------------------------------------


@dataclass
class ThinkingBlock:
    index: int
    content: str = ""
    signature: str = ""
    closed: bool = False
    type: str = "thinking"

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "type": self.type,
            "content": self.content,
            "signature": self.signature,
            "closed": self.closed,
        }


@dataclass
class RedactedThinkingBlock:
    index: int
    data: str = ""
    closed: bool = False
    type: str = "redacted_thinking"

    def to_dict(self) -> dict:
        return {"index": self.index, "type": self.type, "data": self.data, "closed": self.closed}


@dataclass
class TextBlock:
    index: int
    content: str = ""
    citations: list[dict[str, Any]] = field(default_factory=list)
    closed: bool = False
    type: str = "text"

    def to_dict(self) -> dict:
        out = {"index": self.index, "type": self.type, "content": self.content, "closed": self.closed}
        if self.citations:
            out["citations"] = self.citations
        return out


@dataclass
class ToolUseBlock:
    index: int
    name: str = ""
    input: str = ""
    id: str | None = None
    closed: bool = False
    type: str = "tool_use"

    def parsed_input(self) -> Any:
        """Parse the accumulated argument text; ``None`` while it is incomplete."""
        if not self.input.strip():
            return {}
        try:
            return json.loads(self.input)
        except (json.JSONDecodeError, ValueError, RecursionError):
            return None

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "type": self.type,
            "id": self.id,
            "name": self.name,
            "input": self.input,
            "closed": self.closed,
        }


ContentBlock = Union[ThinkingBlock, RedactedThinkingBlock, TextBlock, ToolUseBlock]


@dataclass
class MessageState:
    """Accumulator for one reconstruction run.

    ``blocks`` is keyed by the index the stream assigned; entries are
    replaced by a repeated start but never removed.
    """

    model: str | None = None
    id: str | None = None
    role: str | None = None
    stop_reason: str | None = None
    stop_sequence: str | None = None
    usage: Usage | None = None
    error: dict[str, str] | None = None
    blocks: dict[int, ContentBlock] = field(default_factory=dict)
    stopped: bool = False
    warnings: list[str] = field(default_factory=list)

    def ordered_blocks(self) -> list[ContentBlock]:
        return [self.blocks[i] for i in sorted(self.blocks)]

    def to_dict(self) -> dict:
        return {
            "model": self.model,
            "id": self.id,
            "role": self.role,
            "stop_reason": self.stop_reason,
            "stop_sequence": self.stop_sequence,
            "usage": self.usage.to_dict() if self.usage is not None else None,
            "error": self.error,
            "blocks": [b.to_dict() for b in self.ordered_blocks()],
            "warnings": list(self.warnings),
        }


# ---------------------------------------------------------------------------
# Reducer
# ---------------------------------------------------------------------------


class _Reducer:
    def __init__(self, strict: bool):
        self.state = MessageState()
        self.strict = strict

    def warn(self, event: SSEEvent, msg: str) -> None:
        log.debug(f"event #{event.id}: {msg}")
        if self.strict:
            self.state.warnings.append(f"event #{event.id} ({event.name or 'anonymous'}): {msg}")

    def apply(self, event: SSEEvent) -> None:
        if event.failed:
            self.warn(event, "payload is not valid JSON")
            return
        typed = event.event
        if typed is None:
            self.warn(event, f"unrecognized event kind {event.kind!r}")
            return
        if self.state.stopped:
            self.warn(event, "event after message_stop")
        if event.name and event.name != typed.type:
            self.warn(event, f"frame name {event.name!r} disagrees with payload type {typed.type!r}")

        if isinstance(typed, MessageStart):
            self._message_start(typed)
        elif isinstance(typed, ContentBlockStart):
            self._block_start(event, typed)
        elif isinstance(typed, ContentBlockDelta):
            self._block_delta(event, typed)
        elif isinstance(typed, ContentBlockStop):
            self._block_stop(event, typed)
        elif isinstance(typed, MessageDelta):
            self._message_delta(typed)
        elif isinstance(typed, MessageStop):
            self.state.stopped = True
        elif isinstance(typed, StreamError):
            self.state.error = {"type": typed.error.type, "message": typed.error.message}
        elif isinstance(typed, Ping):
            pass

    def _merge_usage(self, payload: UsagePayload | None) -> None:
        if payload is None or not payload.present():
            return
        if self.state.usage is None:
            self.state.usage = Usage()
        self.state.usage.merge(payload)

    def _message_start(self, typed: MessageStart) -> None:
        msg = typed.message
        state = self.state
        if msg.model is not None:
            state.model = msg.model
        if msg.id is not None:
            state.id = msg.id
        if msg.role is not None:
            state.role = msg.role
        if msg.stop_reason is not None:
            state.stop_reason = msg.stop_reason
        self._merge_usage(msg.usage)

    def _block_start(self, event: SSEEvent, typed: ContentBlockStart) -> None:
        index = typed.index
        if index in self.state.blocks:
            self.warn(event, f"block {index} started again, replacing it")
        start = typed.content_block
        if isinstance(start, ThinkingStart):
            block: ContentBlock = ThinkingBlock(index)
        elif isinstance(start, TextStart):
            block = TextBlock(index)
        elif isinstance(start, ToolUseStart):
            block = ToolUseBlock(index, name=start.name, id=start.id, type=start.type)
        else:
            block = RedactedThinkingBlock(index, data=start.data)
        self.state.blocks[index] = block

    def _block_delta(self, event: SSEEvent, typed: ContentBlockDelta) -> None:
        block = self.state.blocks.get(typed.index)
        if block is None:
            self.warn(event, f"delta for unknown block {typed.index}")
            return
        if block.closed:
            self.warn(event, f"delta for closed block {typed.index}")
            return
        delta = typed.delta
        if isinstance(delta, ThinkingDelta) and isinstance(block, ThinkingBlock):
            block.content += delta.thinking
        elif isinstance(delta, SignatureDelta) and isinstance(block, ThinkingBlock):
            block.signature += delta.signature
        elif isinstance(delta, TextDelta) and isinstance(block, TextBlock):
            block.content += delta.text
        elif isinstance(delta, CitationsDelta) and isinstance(block, TextBlock):
            block.citations.append(delta.citation)
        elif isinstance(delta, InputJsonDelta) and isinstance(block, ToolUseBlock):
            block.input += delta.partial_json
        else:
            self.warn(event, f"{delta.type} does not apply to {block.type} block {typed.index}")

    def _block_stop(self, event: SSEEvent, typed: ContentBlockStop) -> None:
        block = self.state.blocks.get(typed.index)
        if block is None:
            self.warn(event, f"stop for unknown block {typed.index}")
            return
        block.closed = True

    def _message_delta(self, typed: MessageDelta) -> None:
        if typed.delta.stop_reason is not None:
            self.state.stop_reason = typed.delta.stop_reason
        if typed.delta.stop_sequence is not None:
            self.state.stop_sequence = typed.delta.stop_sequence
        self._merge_usage(typed.usage)


def reconstruct_message(events: Iterable[SSEEvent], *, strict: bool = False) -> MessageState:
    """Replay events left to right into a fresh :class:`MessageState`.

    Never raises. Anything the reducer cannot apply is skipped; with
    ``strict=True`` each skip is also recorded in ``state.warnings``.
    """
    reducer = _Reducer(strict)
    for event in events:
        reducer.apply(event)
    return reducer.state

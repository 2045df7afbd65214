"""Decide whether pasted text is a stream transcript or a finished dialogue."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Literal

from claude_lens.reducer import MessageState, reconstruct_message
from claude_lens.sse import SSEEvent, parse_raw_sse

log = logging.getLogger("claude-lens")

Mode = Literal["sse", "dialogue"]


@dataclass
class Classification:
    mode: Mode
    dialogue: dict | None = None


def classify_input(raw_text: str) -> Classification:
    """A whole-input JSON object with a ``messages`` list is a dialogue;
    everything else, including unparseable text, is a transcript."""
    try:
        value: Any = json.loads(raw_text)
    except (json.JSONDecodeError, ValueError, RecursionError):
        return Classification("sse")
    if isinstance(value, dict) and isinstance(value.get("messages"), list):
        return Classification("dialogue", value)
    return Classification("sse")


@dataclass
class Inspection:
    """Result of one full pipeline run over a piece of input text."""

    mode: Mode
    events: list[SSEEvent] = field(default_factory=list)
    state: MessageState = field(default_factory=MessageState)
    dialogue: dict | None = None

    def to_dict(self) -> dict:
        return {
            "mode": self.mode,
            "events": [e.to_dict() for e in self.events],
            "message": self.state.to_dict() if self.mode == "sse" else None,
            "dialogue": self.dialogue,
        }


def inspect_text(raw_text: str, *, strict: bool = False) -> Inspection:
    """Classify and run the matching path from scratch. Never raises."""
    if not raw_text.strip():
        return Inspection("sse")
    classification = classify_input(raw_text)
    if classification.mode == "dialogue":
        log.debug(f"dialogue input with {len(classification.dialogue['messages'])} messages")
        return Inspection("dialogue", dialogue=classification.dialogue)
    events = parse_raw_sse(raw_text)
    return Inspection("sse", events=events, state=reconstruct_message(events, strict=strict))

"""Frame splitting and event decoding for raw SSE transcripts."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from claude_lens.events import StreamEvent, validate_event

log = logging.getLogger("claude-lens")


@dataclass(frozen=True)
class Frame:
    """One blank-line-delimited unit: event name plus raw payload text."""

    event_name: str
    payload_text: str


@dataclass(frozen=True)
class ParseFailure:
    """Marker for a payload that is not valid JSON; keeps the original text."""

    text: str
    error: str


@dataclass
class SSEEvent:
    """A decoded frame.

    ``data`` is the parsed JSON value or a :class:`ParseFailure`. ``event``
    is the typed view of ``data`` when it matches a known event kind, else
    ``None``. ``id`` only gives renderers a stable key.
    """

    id: int
    name: str
    data: Any
    event: StreamEvent | None = field(default=None, repr=False)

    @property
    def failed(self) -> bool:
        return isinstance(self.data, ParseFailure)

    @property
    def kind(self) -> str | None:
        """The payload's own ``type`` tag, which the reducer trusts over ``name``."""
        if isinstance(self.data, dict) and isinstance(self.data.get("type"), str):
            return self.data["type"]
        return None

    def to_dict(self) -> dict:
        if isinstance(self.data, ParseFailure):
            data: Any = {"parse_error": self.data.error, "raw": self.data.text}
        else:
            data = self.data
        return {"id": self.id, "event": self.name, "data": data}


class FrameSplitter:
    """Line-oriented state machine that turns transcript text into frames.

    Lines that are not ``event:``/``data:`` fields are skipped, which is how
    a leading HTTP status line and headers get discarded.
    """

    def __init__(self):
        self.frames: list[Frame] = []
        self._buf = ""
        self._current_event: str | None = None
        self._current_data: list[str] = []

    def feed(self, text: str) -> None:
        self._buf += text
        while "\n" in self._buf:
            line, self._buf = self._buf.split("\n", 1)
            self._feed_line(line)

    def close(self) -> list[Frame]:
        """Flush a trailing line and any frame left open by a truncated stream."""
        if self._buf:
            line, self._buf = self._buf, ""
            self._feed_line(line)
        self._dispatch()
        return self.frames

    def _feed_line(self, line: str) -> None:
        line = line.rstrip("\r")
        if line == "":
            self._dispatch()
        elif line.startswith(":"):
            return
        elif line.startswith("event:"):
            if self._current_data:
                self._dispatch()
            self._current_event = _field_value(line, "event:").strip()
        elif line.startswith("data:"):
            self._current_data.append(_field_value(line, "data:"))

    def _dispatch(self) -> None:
        if self._current_data:
            self.frames.append(Frame(self._current_event or "", "".join(self._current_data)))
        elif self._current_event is not None:
            log.debug(f"dropping frame {self._current_event!r} with no data lines")
        self._current_event = None
        self._current_data = []


def _field_value(line: str, prefix: str) -> str:
    value = line[len(prefix) :]
    if value.startswith(" "):
        value = value[1:]
    return value


def split_frames(text: str) -> list[Frame]:
    # Old Mac line endings become newlines; \r\n is handled per line.
    splitter = FrameSplitter()
    splitter.feed(text.replace("\r\n", "\n").replace("\r", "\n"))
    return splitter.close()


def decode_frame(frame: Frame, event_id: int) -> SSEEvent:
    """Decode one frame; a bad payload only affects this event."""
    try:
        data: Any = json.loads(frame.payload_text)
    except (json.JSONDecodeError, ValueError, RecursionError) as exc:
        return SSEEvent(event_id, frame.event_name, ParseFailure(frame.payload_text, str(exc)))
    return SSEEvent(event_id, frame.event_name, data, validate_event(data))


def parse_raw_sse(raw_text: str) -> list[SSEEvent]:
    """Split and decode a buffered transcript. Never raises."""
    if not raw_text or not raw_text.strip():
        return []
    events = [decode_frame(frame, i) for i, frame in enumerate(split_frames(raw_text))]
    failures = sum(1 for e in events if e.failed)
    log.debug(f"decoded {len(events)} events ({failures} parse failures)")
    return events

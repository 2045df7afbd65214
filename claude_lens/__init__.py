"""claude-lens: inspect Claude streaming transcripts.

Splits a pasted Server-Sent-Events transcript into protocol events and
replays their deltas into a reconstructed message (model, content
blocks, token usage). Complete dialogue JSON objects are recognized and
passed through untouched.
"""

from __future__ import annotations

__version__ = "0.1.0"
__all__ = [
    "__version__",
    "main_entry",
    "parse_raw_sse",
    "reconstruct_message",
    "classify_input",
    "inspect_text",
    "SSEEvent",
    "ParseFailure",
    "MessageState",
    "InspectServer",
]

from claude_lens.classify import classify_input, inspect_text
from claude_lens.cli import main_entry
from claude_lens.reducer import MessageState, reconstruct_message
from claude_lens.server import InspectServer
from claude_lens.sse import ParseFailure, SSEEvent, parse_raw_sse

"""Render an inspection as Markdown, JSON or an event listing."""

from __future__ import annotations

import json

from claude_lens.classify import Inspection
from claude_lens.reducer import MessageState, RedactedThinkingBlock, TextBlock, ThinkingBlock, ToolUseBlock
from claude_lens.sse import ParseFailure

FORMATS = ("markdown", "json", "events")


def render(inspection: Inspection, fmt: str = "markdown") -> str:
    if fmt == "json":
        return _export_json(inspection)
    if fmt == "events":
        return _export_events(inspection)
    if inspection.mode == "dialogue":
        return _export_dialogue_markdown(inspection.dialogue or {})
    return _export_message_markdown(inspection.state)


def _export_json(inspection: Inspection) -> str:
    return _pretty(inspection.to_dict())


def _pretty(value) -> str:
    # The indenting encoder is pure Python and recurses deeper than the C one.
    try:
        return json.dumps(value, indent=2, ensure_ascii=False)
    except RecursionError:
        return json.dumps(value, ensure_ascii=False)


def _text(value) -> str:
    """Dialogue fields are free-form JSON; render null as empty, others as text."""
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _export_events(inspection: Inspection) -> str:
    """One line per event: id, frame name, payload type or parse error."""
    lines: list[str] = []
    for ev in inspection.events:
        if isinstance(ev.data, ParseFailure):
            detail = f"PARSE ERROR ({ev.data.error}): {ev.data.text[:200]}"
        else:
            detail = ev.kind or type(ev.data).__name__
        lines.append(f"#{ev.id:<4} {ev.name or '(anonymous)':<22} {detail}")
    return "\n".join(lines)


def _export_message_markdown(state: MessageState) -> str:
    lines: list[str] = []
    lines.append("# Reconstructed Message\n")
    lines.append(f"- **Model**: `{state.model or 'unknown'}`")
    lines.append(f"- **Stop reason**: {state.stop_reason or 'streaming...'}")
    if state.error:
        lines.append(f"- **Error**: {state.error['type']}: {state.error['message']}")
    lines.append("")

    for block in state.ordered_blocks():
        if isinstance(block, ThinkingBlock):
            lines.append(f"## Thinking block #{block.index}\n")
            lines.append(block.content + "\n")
            if block.signature:
                lines.append(f"*Signature*: `{block.signature[:64]}`\n")
        elif isinstance(block, TextBlock):
            lines.append(f"## Text block #{block.index}\n")
            lines.append(block.content + "\n")
        elif isinstance(block, ToolUseBlock):
            lines.append(f"## Tool use block #{block.index}: `{block.name}`\n")
            parsed = block.parsed_input()
            body = _pretty(parsed) if parsed is not None else block.input
            lines.append(f"```json\n{body[:3000]}\n```\n")
        elif isinstance(block, RedactedThinkingBlock):
            lines.append(f"## Redacted thinking block #{block.index}\n")

    if state.usage is not None:
        parts = [f"{k}={v:,}" for k, v in state.usage.to_dict().items()]
        lines.append(f"*Tokens: {' / '.join(parts)}*\n")

    if state.warnings:
        lines.append("## Warnings\n")
        lines.extend(f"- {w}" for w in state.warnings)
        lines.append("")

    return "\n".join(lines)


def _export_dialogue_markdown(dialogue: dict) -> str:
    lines: list[str] = []
    lines.append("# Dialogue\n")
    if dialogue.get("model"):
        lines.append(f"**Model**: `{_text(dialogue['model'])}`\n")

    for msg in dialogue.get("messages", []):
        if not isinstance(msg, dict):
            continue
        role = str(msg.get("role", "unknown"))
        lines.append(f"## {role.title()}\n")
        content = msg.get("content", "")
        if isinstance(content, str):
            lines.append(content + "\n")
            continue
        if not isinstance(content, list):
            continue
        for block in content:
            if not isinstance(block, dict):
                continue
            btype = block.get("type")
            if btype == "text":
                lines.append(_text(block.get("text")) + "\n")
            elif btype == "thinking":
                lines.append(f"<details>\n<summary>Thinking</summary>\n\n{_text(block.get('thinking'))[:5000]}\n\n</details>\n")
            elif btype == "tool_use":
                inp = _pretty(block.get("input", {}))
                lines.append(f"**Tool Use**: `{_text(block.get('name', 'unknown'))}`\n")
                lines.append(f"```json\n{inp[:3000]}\n```\n")
            elif btype == "tool_result":
                flag = " (error)" if block.get("is_error") else ""
                lines.append(f"**Tool Result**{flag} (`{_text(block.get('tool_use_id'))}`)\n")
                rc = block.get("content", "")
                if isinstance(rc, str):
                    lines.append(f"```\n{rc[:2000]}\n```\n")
                elif isinstance(rc, list):
                    for sub in rc:
                        if isinstance(sub, dict) and sub.get("type") == "text":
                            lines.append(f"```\n{_text(sub.get('text'))[:2000]}\n```\n")

    return "\n".join(lines)

"""Pytest configuration and shared fixtures."""

import json
from pathlib import Path

import pytest

EXAMPLE_SSE = """HTTP/1.1 200 OK
Date: Thu, 22 Jan 2026 07:47:40 GMT
Content-Type: text/event-stream

event: message_start
data: {"type":"message_start","message":{"model":"claude-haiku-4-5-20251001","id":"msg_018cm4M9aUKGUBQVjTopFThQ","type":"message","role":"assistant","content":[],"stop_reason":null,"stop_sequence":null,"usage":{"input_tokens":9,"cache_creation_input_tokens":5646,"cache_read_input_tokens":13370,"output_tokens":1}} }

event: content_block_start
data: {"type":"content_block_start","index":0,"content_block":{"type":"thinking","thinking":"","signature":""} }

event: content_block_delta
data: {"type":"content_block_delta","index":0,"delta":{"type":"thinking_delta","thinking":"用"} }

event: content_block_delta
data: {"type":"content_block_delta","index":0,"delta":{"type":"thinking_delta","thinking":"户"} }

event: content_block_delta
data: {"type":"content_block_delta","index":0,"delta":{"type":"thinking_delta","thinking":"请求"} }

event: content_block_stop
data: {"type":"content_block_stop","index":0 }

event: message_stop
data: {"type":"message_stop"}
"""

EXAMPLE_DIALOGUE = {
    "model": "claude-haiku-4-5-20251001",
    "messages": [
        {
            "role": "user",
            "content": [{"type": "text", "text": "@src/Hello.java 有错误，告诉我原因，我应该怎么修复"}],
        },
        {
            "role": "assistant",
            "content": [
                {"type": "thinking", "thinking": "用户要求我检查文件中的错误。", "signature": "EtQCCkYICxgCKkBd7b7b"},
                {
                    "type": "tool_use",
                    "id": "toolu_01X2snB1Lu3u4464Q3Zf8cqe",
                    "name": "Read",
                    "input": {"file_path": "/Users/tommy/temp/myProject/src/Hello.java"},
                },
            ],
        },
        {
            "role": "user",
            "content": [
                {
                    "type": "tool_result",
                    "content": "<tool_use_error>File does not exist.</tool_use_error>",
                    "is_error": True,
                    "tool_use_id": "toolu_01X2snB1Lu3u4464Q3Zf8cqe",
                }
            ],
        },
    ],
}


def sse(*events: dict) -> str:
    """Build a transcript from payload dicts, naming each frame after its type."""
    return "".join(f"event: {e.get('type', '')}\ndata: {json.dumps(e, ensure_ascii=False)}\n\n" for e in events)


def message_start(model="claude-test-model", **usage) -> dict:
    return {
        "type": "message_start",
        "message": {
            "id": "msg_1",
            "type": "message",
            "role": "assistant",
            "content": [],
            "model": model,
            "stop_reason": None,
            "usage": usage or {"input_tokens": 10, "output_tokens": 1},
        },
    }


def block_start(index: int, block: dict) -> dict:
    return {"type": "content_block_start", "index": index, "content_block": block}


def delta(index: int, body: dict) -> dict:
    return {"type": "content_block_delta", "index": index, "delta": body}


def text_delta(index: int, text: str) -> dict:
    return delta(index, {"type": "text_delta", "text": text})


def json_delta(index: int, fragment: str) -> dict:
    return delta(index, {"type": "input_json_delta", "partial_json": fragment})


def block_stop(index: int) -> dict:
    return {"type": "content_block_stop", "index": index}


MESSAGE_STOP = {"type": "message_stop"}


@pytest.fixture
def example_sse():
    return EXAMPLE_SSE


@pytest.fixture
def example_dialogue_text():
    return json.dumps(EXAMPLE_DIALOGUE, ensure_ascii=False, indent=4)


@pytest.fixture
def tool_use_sse():
    """Thinking, text and a tool call with arguments split mid-token."""
    return sse(
        message_start(input_tokens=20, output_tokens=1, cache_read_input_tokens=100),
        block_start(0, {"type": "thinking", "thinking": "", "signature": ""}),
        delta(0, {"type": "thinking_delta", "thinking": "Need to read "}),
        delta(0, {"type": "thinking_delta", "thinking": "the file."}),
        delta(0, {"type": "signature_delta", "signature": "EtQC"}),
        delta(0, {"type": "signature_delta", "signature": "CkYI"}),
        block_stop(0),
        block_start(1, {"type": "text", "text": ""}),
        text_delta(1, "Let me "),
        text_delta(1, "check."),
        block_stop(1),
        block_start(2, {"type": "tool_use", "id": "toolu_1", "name": "Read", "input": {}}),
        json_delta(2, '{"file_'),
        json_delta(2, 'path": "/src/'),
        json_delta(2, 'Hello.java"}'),
        block_stop(2),
        {"type": "message_delta", "delta": {"stop_reason": "tool_use", "stop_sequence": None}, "usage": {"output_tokens": 42}},
        MESSAGE_STOP,
    )


@pytest.fixture
def project_dir():
    """Return the project root directory."""
    return Path(__file__).parent.parent

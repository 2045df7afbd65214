"""Tests for the paste-and-inspect web app, run in-process."""

import asyncio

from aiohttp import test_utils

from claude_lens.server import InspectServer, create_app


def _run(coro_fn, strict=False):
    async def runner():
        client = test_utils.TestClient(test_utils.TestServer(create_app(strict=strict)))
        await client.start_server()
        try:
            return await coro_fn(client)
        finally:
            await client.close()

    return asyncio.run(runner())


def test_index_serves_viewer():
    async def go(client):
        resp = await client.get("/")
        assert resp.status == 200
        assert "/api/inspect" in await resp.text()

    _run(go)


def test_inspect_stream(example_sse):
    async def go(client):
        resp = await client.post("/api/inspect", data=example_sse.encode("utf-8"))
        assert resp.status == 200
        return await resp.json()

    body = _run(go)
    assert body["mode"] == "sse"
    assert len(body["events"]) == 7
    assert body["message"]["blocks"][0]["content"] == "用户请求"
    assert body["message"]["warnings"] == []


def test_inspect_dialogue(example_dialogue_text):
    async def go(client):
        resp = await client.post("/api/inspect", data=example_dialogue_text.encode("utf-8"))
        return await resp.json()

    body = _run(go)
    assert body["mode"] == "dialogue"
    assert body["message"] is None
    assert body["dialogue"]["messages"][1]["content"][1]["name"] == "Read"


def test_each_request_is_independent(example_sse):
    async def go(client):
        first = await (await client.post("/api/inspect", data=example_sse)).json()
        empty = await (await client.post("/api/inspect", data="")).json()
        again = await (await client.post("/api/inspect", data=example_sse)).json()
        return first, empty, again

    first, empty, again = _run(go)
    assert empty["events"] == []
    assert empty["message"]["blocks"] == []
    assert first == again


def test_strict_query_and_app_default():
    odd = 'event: odd\ndata: {"type":"odd"}\n\n'

    async def go(client):
        lenient = await (await client.post("/api/inspect", data=odd)).json()
        strict = await (await client.post("/api/inspect?strict=1", data=odd)).json()
        return lenient, strict

    lenient, strict = _run(go)
    assert lenient["message"]["warnings"] == []
    assert strict["message"]["warnings"]

    async def go_strict_app(client):
        return await (await client.post("/api/inspect", data=odd)).json()

    assert _run(go_strict_app, strict=True)["message"]["warnings"]


def test_non_utf8_body():
    async def go(client):
        resp = await client.post("/api/inspect", data=b"event: x\ndata: \xff\n\n")
        assert resp.status == 200
        return await resp.json()

    body = _run(go)
    assert body["events"][0]["data"]["raw"] == "�"


def test_inspect_server_start_stop():
    async def go():
        server = InspectServer(port=0)
        port = await server.start()
        try:
            assert port > 0
            assert server.url == f"http://127.0.0.1:{port}"
        finally:
            await server.stop()

    asyncio.run(go())

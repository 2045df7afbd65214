"""InspectServer – local page for pasting transcripts and viewing the result."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from aiohttp import web

from claude_lens.classify import inspect_text

log = logging.getLogger("claude-lens")

_TRUTHY = ("1", "true", "yes", "on")


async def _handle_index(request: web.Request) -> web.Response:
    template = Path(__file__).parent / "viewer.html"
    if not template.exists():
        return web.Response(status=404, text="viewer.html not found")
    return web.Response(text=template.read_text(encoding="utf-8"), content_type="text/html")


async def _handle_inspect(request: web.Request) -> web.Response:
    """Run the whole pipeline on the request body. Each call starts from scratch."""
    body = await request.read()
    text = body.decode("utf-8", errors="replace")
    strict = request.query.get("strict", "").lower() in _TRUTHY or request.app["strict"]
    result = inspect_text(text, strict=strict)
    log.debug(f"inspect: {len(body)} bytes -> mode={result.mode}, {len(result.events)} events")
    return web.json_response(result.to_dict(), dumps=_dumps)


def _dumps(obj) -> str:
    return json.dumps(obj, ensure_ascii=False, separators=(",", ":"))


def create_app(strict: bool = False) -> web.Application:
    app = web.Application()
    app["strict"] = strict
    app.router.add_get("/", _handle_index)
    app.router.add_post("/api/inspect", _handle_inspect)
    return app


class InspectServer:
    """Owns the runner/site pair for the inspect app."""

    def __init__(self, host: str = "127.0.0.1", port: int = 0, strict: bool = False):
        self.host = host
        self.port = port
        self.strict = strict
        self._runner: web.AppRunner | None = None
        self._actual_port: int = 0

    async def start(self) -> int:
        """Start the server and return the actual port."""
        self._runner = web.AppRunner(create_app(self.strict))
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        await site.start()

        try:
            self._actual_port = site._server.sockets[0].getsockname()[1]
        except (AttributeError, IndexError, OSError):
            self._actual_port = self.port

        return self._actual_port

    async def stop(self) -> None:
        if self._runner:
            await self._runner.cleanup()
            self._runner = None

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self._actual_port}"

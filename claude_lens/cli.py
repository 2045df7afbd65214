"""CLI entry points for claude-lens."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
import webbrowser
from pathlib import Path

from claude_lens import __version__
from claude_lens.classify import inspect_text
from claude_lens.export import FORMATS, render
from claude_lens.server import InspectServer

log = logging.getLogger("claude-lens")


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes", "on")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="claude-lens",
        description="Reconstruct a Claude streaming (SSE) transcript into a message, "
        "or pass through a complete dialogue JSON object.",
    )
    parser.add_argument("-v", "--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("input", nargs="?", default="-", help="Transcript file (default: stdin)")
    parser.add_argument("-o", "--output", type=Path, help="Output file path (default: stdout)")
    parser.add_argument(
        "--format",
        choices=FORMATS,
        default="markdown",
        help="Output format (default: markdown)",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        default=_env_flag("CLAUDE_LENS_STRICT"),
        help="Report ignored or out-of-order events as warnings (env: CLAUDE_LENS_STRICT)",
    )
    parser.add_argument("--serve", action="store_true", help="Start the paste-and-inspect web page instead")
    parser.add_argument(
        "--host",
        default=os.environ.get("CLAUDE_LENS_HOST", "127.0.0.1"),
        help="Web page host (default: 127.0.0.1, env: CLAUDE_LENS_HOST)",
    )
    parser.add_argument(
        "--port",
        type=int,
        # A string default goes through type=int, so a bad env value is a usage error.
        default=os.environ.get("CLAUDE_LENS_PORT", "0"),
        help="Web page port (default: 0 = auto, env: CLAUDE_LENS_PORT)",
    )
    parser.add_argument("--open", action="store_true", dest="open_browser", help="Open the web page in a browser")
    parser.add_argument("--debug", action="store_true", help="Log debug details to stderr")
    parser.add_argument("--log-file", type=Path, help="Also write logs to this file")
    return parser.parse_args(argv)


def setup_logging(args: argparse.Namespace) -> None:
    for handler in list(log.handlers):
        log.removeHandler(handler)
        handler.close()
    log.setLevel(logging.DEBUG)
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setLevel(logging.DEBUG if args.debug else logging.WARNING)
    log.addHandler(stream_handler)
    if args.log_file:
        file_handler = logging.FileHandler(args.log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(message)s", datefmt="%H:%M:%S"))
        log.addHandler(file_handler)
    # Suppress aiohttp access logs
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)


def _read_input(source: str) -> str:
    if source == "-":
        return sys.stdin.buffer.read().decode("utf-8", errors="replace")
    return Path(source).read_bytes().decode("utf-8", errors="replace")


def run_inspect(args: argparse.Namespace) -> int:
    if args.input != "-" and not Path(args.input).is_file():
        print(f"Error: input file not found: {args.input}", file=sys.stderr)
        return 1

    result = inspect_text(_read_input(args.input), strict=args.strict)
    log.info(f"mode={result.mode} events={len(result.events)} blocks={len(result.state.blocks)}")
    output = render(result, args.format)

    if args.output:
        args.output.write_text(output + "\n", encoding="utf-8")
        print(f"Wrote {args.format} output to {args.output}")
    else:
        print(output)
    return 0


async def run_server(args: argparse.Namespace) -> int:
    server = InspectServer(args.host, args.port, strict=args.strict)
    await server.start()
    print(f"🔍 claude-lens v{__version__} listening on {server.url}")
    if args.open_browser:
        webbrowser.open(server.url)
    try:
        while True:
            await asyncio.sleep(3600)
    except asyncio.CancelledError:
        pass
    finally:
        await server.stop()
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args)
    if not args.serve:
        return run_inspect(args)
    try:
        return asyncio.run(run_server(args))
    except KeyboardInterrupt:
        return 0


def main_entry() -> None:
    """Entry point for the claude-lens CLI."""
    sys.exit(main())

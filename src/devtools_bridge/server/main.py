"""stdio MCP server exposing the browser tools.

Run ``devtools-bridge`` (or ``python -m devtools_bridge``). stdout carries
the RPC stream, so logs go to stderr.
"""
import argparse
import asyncio
import logging
import sys
import time

from mcp.server import Server
from mcp.server.stdio import stdio_server

from .. import __version__
from ..config import CDPConfig
from ..engine.controller import BrowserController
from ..telemetry.logger import ToolEventLogger
from .tools import create_tools, handle_tool_call

log = logging.getLogger(__name__)

SERVER_NAME = "devtools-bridge"


def build_server(controller: BrowserController, events: ToolEventLogger | None = None) -> Server:
    app = Server(SERVER_NAME, version=__version__)

    @app.list_tools()
    async def list_tools():
        return create_tools()

    @app.call_tool()
    async def call_tool(name: str, arguments: dict):
        return await handle_tool_call(controller, name, arguments, events)

    return app


async def serve(config: CDPConfig, event_log_dir: str = "") -> None:
    controller = BrowserController(config=config)
    events = None
    if event_log_dir:
        events = ToolEventLogger(time.strftime("%Y%m%d-%H%M%S"), log_dir=event_log_dir)
        events.log_session_event("server_start", host=config.host, port=config.port)
    app = build_server(controller, events)
    log.info("%s %s serving on stdio (CDP %s)", SERVER_NAME, __version__, config.base_url)
    try:
        async with stdio_server() as (read_stream, write_stream):
            await app.run(read_stream, write_stream, app.create_initialization_options())
    finally:
        await controller.close()
        if events is not None:
            events.log_session_event("server_stop")
            events.close()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog=SERVER_NAME,
        description="Expose a Chrome DevTools session as MCP tools over stdio.",
    )
    parser.add_argument("--host", default=None, help="CDP host (default: localhost)")
    parser.add_argument("--port", type=int, default=None, help="CDP port (default: 9222)")
    parser.add_argument("--chrome", default=None, help="Chrome executable to launch")
    parser.add_argument("--event-log-dir", default="",
                        help="Write one JSONL event per tool call into this directory")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = CDPConfig.from_env(host=args.host, port=args.port, chrome_path=args.chrome)
    try:
        asyncio.run(serve(config, args.event_log_dir))
    except KeyboardInterrupt:
        log.info("Interrupted, shutting down")
    return 0


if __name__ == "__main__":
    sys.exit(main())

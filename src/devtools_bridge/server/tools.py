"""MCP tool declarations and dispatch onto :class:`BrowserController`.

This is the only layer that turns exceptions into error-flagged text.
"""
import json
import logging
import time
from typing import Any, Awaitable, Callable

from mcp.types import CallToolResult, ImageContent, TextContent, Tool

from ..engine.controller import DEFAULT_SCROLL, DEFAULT_WAIT_MS, DEFAULT_ZOOM, BrowserController
from ..errors import InvalidArguments
from ..human.gestures import DIRECTIONS, MODIFIER_BITS
from ..telemetry.logger import ToolEventLogger

log = logging.getLogger(__name__)

Content = TextContent | ImageContent


def _object(properties: dict, required: list[str] | None = None) -> dict:
    return {"type": "object", "properties": properties, "required": required or []}


def create_tools() -> list[Tool]:
    """All browser tools exposed to the agent."""
    return [
        Tool(
            name="launch_chrome",
            description=(
                "Launch Chrome with debugging port enabled. Use this if Chrome is not "
                "running or not responding. Creates a fresh temporary profile unless "
                "a profile is given."
            ),
            inputSchema=_object({
                "url": {"type": "string", "description": "Optional URL to open (default: about:blank)"},
                "profile": {
                    "type": "string",
                    "description": "Existing Chrome profile directory (e.g. 'Default', 'Profile 1')",
                },
            }),
        ),
        Tool(
            name="screenshot",
            description="Take a screenshot of the current Chrome tab. Returns a PNG image.",
            inputSchema=_object({}),
        ),
        Tool(
            name="click",
            description="Click an element by CSS selector or x,y coordinates.",
            inputSchema=_object({
                "selector": {"type": "string", "description": "CSS selector to click"},
                "x": {"type": "number", "description": "X coordinate to click"},
                "y": {"type": "number", "description": "Y coordinate to click"},
            }),
        ),
        Tool(
            name="type",
            description="Type text into the focused element or a specific element.",
            inputSchema=_object({
                "text": {"type": "string", "description": "Text to type"},
                "selector": {"type": "string", "description": "Optional CSS selector to focus before typing"},
            }, ["text"]),
        ),
        Tool(
            name="navigate",
            description="Navigate to a URL in the current tab and wait for it to load.",
            inputSchema=_object({
                "url": {"type": "string", "description": "URL to navigate to"},
                "timeout": {"type": "number", "description": "Load timeout in seconds (default: 30)"},
            }, ["url"]),
        ),
        Tool(
            name="evaluate",
            description="Execute JavaScript in the page context and return the result.",
            inputSchema=_object({
                "script": {"type": "string", "description": "JavaScript code to execute"},
            }, ["script"]),
        ),
        Tool(
            name="get_content",
            description="Get the page content as text or HTML.",
            inputSchema=_object({
                "format": {
                    "type": "string",
                    "enum": ["text", "html"],
                    "description": "'text' for visible text, 'html' for full HTML",
                },
            }, ["format"]),
        ),
        Tool(
            name="list_tabs",
            description="List all open Chrome tabs with their IDs, titles, and URLs.",
            inputSchema=_object({}),
        ),
        Tool(
            name="switch_tab",
            description="Switch to a specific Chrome tab by its ID.",
            inputSchema=_object({
                "tabId": {"type": "string", "description": "Tab ID to switch to (from list_tabs)"},
            }, ["tabId"]),
        ),
        Tool(
            name="scroll",
            description=(
                "Smart scroll that tries a wheel event first (for canvas apps), then falls "
                "back to DOM-based scroll detection (for apps like Slack or Notion)."
            ),
            inputSchema=_object({
                "direction": {"type": "string", "enum": list(DIRECTIONS), "description": "Direction to scroll"},
                "amount": {"type": "number", "description": f"Pixels to scroll (default: {DEFAULT_SCROLL})"},
            }, ["direction"]),
        ),
        Tool(
            name="mouse_move",
            description="Move the mouse to specific coordinates.",
            inputSchema=_object({
                "x": {"type": "number", "description": "X coordinate"},
                "y": {"type": "number", "description": "Y coordinate"},
            }, ["x", "y"]),
        ),
        Tool(
            name="drag_and_drop",
            description="Perform a drag and drop operation from (startX, startY) to (endX, endY).",
            inputSchema=_object({
                "startX": {"type": "number", "description": "Starting X coordinate"},
                "startY": {"type": "number", "description": "Starting Y coordinate"},
                "endX": {"type": "number", "description": "Ending X coordinate"},
                "endY": {"type": "number", "description": "Ending Y coordinate"},
            }, ["startX", "startY", "endX", "endY"]),
        ),
        Tool(
            name="smart_type",
            description="Send a key with modifiers (e.g. 'Enter', or 'c' with Cmd).",
            inputSchema=_object({
                "key": {"type": "string", "description": "Key to press (e.g. 'a', 'Enter', 'Backspace')"},
                "modifiers": {
                    "type": "array",
                    "items": {"type": "string", "enum": list(MODIFIER_BITS)},
                    "description": "Modifiers to hold down",
                },
            }, ["key"]),
        ),
        Tool(
            name="wait_for",
            description="Wait for an element to appear on the page.",
            inputSchema=_object({
                "selector": {"type": "string", "description": "CSS selector to wait for"},
                "timeout": {
                    "type": "number",
                    "description": f"Maximum wait time in milliseconds (default: {DEFAULT_WAIT_MS})",
                },
            }, ["selector"]),
        ),
        Tool(
            name="canvas_zoom",
            description=(
                "Zoom in/out on canvas-based apps like Figma or Miro using Ctrl+scroll, "
                "the standard zoom gesture for these applications."
            ),
            inputSchema=_object({
                "zoomIn": {"type": "boolean", "description": "True to zoom in, false to zoom out (default: true)"},
                "amount": {
                    "type": "number",
                    "description": f"Zoom intensity in scroll delta units (default: {DEFAULT_ZOOM})",
                },
            }),
        ),
    ]


def _text(text: str) -> list[Content]:
    return [TextContent(type="text", text=text)]


def _arg(args: dict, key: str, default):
    """*key* from *args*, with an explicit JSON null treated as absent."""
    value = args.get(key)
    return default if value is None else value


async def _launch_chrome(c: BrowserController, args: dict) -> list[Content]:
    return _text(await c.launch(args.get("url"), args.get("profile")))


async def _screenshot(c: BrowserController, args: dict) -> list[Content]:
    data = await c.screenshot()
    return [ImageContent(type="image", data=data, mimeType="image/png")]


async def _click(c: BrowserController, args: dict) -> list[Content]:
    selector, x, y = args.get("selector"), args.get("x"), args.get("y")
    await c.click(selector=selector, x=x, y=y)
    if selector:
        return _text(f"Clicked element: {selector}")
    return _text(f"Clicked at coordinates ({x}, {y})")


async def _type(c: BrowserController, args: dict) -> list[Content]:
    text, selector = args["text"], args.get("selector")
    await c.type(text, selector)
    return _text(f'Typed "{text}"' + (f" into {selector}" if selector else ""))


async def _navigate(c: BrowserController, args: dict) -> list[Content]:
    await c.navigate(args["url"], args.get("timeout"))
    return _text(f"Navigated to: {args['url']}")


async def _evaluate(c: BrowserController, args: dict) -> list[Content]:
    result = await c.evaluate(args["script"])
    return _text(json.dumps(result, indent=2, ensure_ascii=False))


async def _get_content(c: BrowserController, args: dict) -> list[Content]:
    return _text(await c.get_content(_arg(args, "format", "text")))


async def _list_tabs(c: BrowserController, args: dict) -> list[Content]:
    tabs = await c.list_tabs()
    return _text(json.dumps([t.to_dict() for t in tabs], indent=2, ensure_ascii=False))


async def _switch_tab(c: BrowserController, args: dict) -> list[Content]:
    await c.switch_tab(args["tabId"])
    return _text(f"Switched to tab: {args['tabId']}")


async def _scroll(c: BrowserController, args: dict) -> list[Content]:
    return _text(await c.scroll(args["direction"], _arg(args, "amount", DEFAULT_SCROLL)))


async def _mouse_move(c: BrowserController, args: dict) -> list[Content]:
    await c.mouse_move(args["x"], args["y"])
    return _text(f"Moved mouse to ({args['x']}, {args['y']})")


async def _drag_and_drop(c: BrowserController, args: dict) -> list[Content]:
    sx, sy, ex, ey = args["startX"], args["startY"], args["endX"], args["endY"]
    await c.drag(sx, sy, ex, ey)
    return _text(f"Dragged from ({sx}, {sy}) to ({ex}, {ey})")


async def _smart_type(c: BrowserController, args: dict) -> list[Content]:
    key, modifiers = args["key"], args.get("modifiers") or []
    await c.send_key(key, modifiers)
    suffix = f" with modifiers [{', '.join(modifiers)}]" if modifiers else ""
    return _text(f'Sent key "{key}"{suffix}')


async def _wait_for(c: BrowserController, args: dict) -> list[Content]:
    await c.wait_for(args["selector"], _arg(args, "timeout", DEFAULT_WAIT_MS))
    return _text(f"Element found: {args['selector']}")


async def _canvas_zoom(c: BrowserController, args: dict) -> list[Content]:
    return _text(await c.canvas_zoom(
        _arg(args, "zoomIn", True),
        _arg(args, "amount", DEFAULT_ZOOM),
    ))


TOOL_HANDLERS: dict[str, Callable[[BrowserController, dict], Awaitable[list[Content]]]] = {
    "launch_chrome": _launch_chrome,
    "screenshot": _screenshot,
    "click": _click,
    "type": _type,
    "navigate": _navigate,
    "evaluate": _evaluate,
    "get_content": _get_content,
    "list_tabs": _list_tabs,
    "switch_tab": _switch_tab,
    "scroll": _scroll,
    "mouse_move": _mouse_move,
    "drag_and_drop": _drag_and_drop,
    "smart_type": _smart_type,
    "wait_for": _wait_for,
    "canvas_zoom": _canvas_zoom,
}

REQUIRED_ARGUMENTS: dict[str, list[str]] = {
    tool.name: list(tool.inputSchema.get("required", [])) for tool in create_tools()
}


async def handle_tool_call(
    controller: BrowserController,
    name: str,
    arguments: dict[str, Any] | None,
    events: ToolEventLogger | None = None,
) -> CallToolResult:
    """Run tool *name*; any failure becomes an ``isError`` text result."""
    arguments = arguments or {}
    t0 = time.monotonic()
    try:
        handler = TOOL_HANDLERS.get(name)
        if handler is None:
            raise ValueError(f"Unknown tool: {name}")
        missing = [k for k in REQUIRED_ARGUMENTS[name] if arguments.get(k) is None]
        if missing:
            raise InvalidArguments(f"Missing required argument: {', '.join(missing)}")
        content = await handler(controller, arguments)
    except Exception as e:
        if isinstance(e, KeyError):
            # arguments are checked above, so this is a malformed CDP reply
            message = f"Unexpected response from Chrome: missing key {e}"
        else:
            message = str(e) or type(e).__name__
        log.warning("Tool %s failed: %s", name, message)
        if events is not None:
            events.log_tool_call(name, arguments, "error", time.monotonic() - t0, error=message)
        return CallToolResult(content=_text(f"Error: {message}"), isError=True)

    if events is not None:
        events.log_tool_call(name, arguments, "ok", time.monotonic() - t0)
    return CallToolResult(content=content, isError=False)

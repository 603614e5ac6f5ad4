"""Page-interaction primitives on top of the managed CDP session.

Every public method fetches the current session through
``ConnectionManager.ensure_connected()``, which may launch Chrome and
retry the handshake, then issues raw CDP commands in sequence.
"""
import asyncio
import json
import logging

from ..browser import scripts
from ..browser.chrome import LaunchOutcome, TabInfo, activate_tab, list_tabs
from ..config import CDPConfig
from ..errors import (
    ElementNotFound,
    InvalidArguments,
    NavigationError,
    ScriptError,
    Timeout,
)
from ..human.gestures import (
    CTRL,
    interpolate,
    modifier_mask,
    viewport_center,
    wheel_delta,
)
from .connection import ConnectionManager, Session

log = logging.getLogger(__name__)

TYPE_SETTLE = 0.1
SCROLL_SETTLE = 0.05
ZOOM_SETTLE = 0.05
DRAG_STEP_DELAY = 0.01
WAIT_POLL = 0.1

DEFAULT_SCROLL = 300
DEFAULT_WAIT_MS = 5000
DEFAULT_ZOOM = 100

NOTHING_SCROLLABLE = "No scrollable content found or already at scroll limit"

CONTENT_EXPRESSIONS = {
    "text": scripts.PAGE_TEXT,
    "html": scripts.PAGE_HTML,
}


def _exception_text(details: dict) -> str:
    exception = details.get("exception") or {}
    return exception.get("description") or details.get("text") or "Unknown error"


class BrowserController:
    """Public browser API used by the tool shell."""

    def __init__(self, connection: ConnectionManager | None = None,
                 config: CDPConfig | None = None):
        self._connection = connection or ConnectionManager(config)

    @property
    def config(self) -> CDPConfig:
        return self._connection.config

    @property
    def target_id(self) -> str | None:
        return self._connection.target_id

    async def close(self) -> None:
        await self._connection.close()

    # -- lifecycle / tabs ---------------------------------------------------

    async def launch(self, url: str | None = None, profile: str | None = None) -> str:
        outcome: LaunchOutcome = await self._connection.launch(url=url, profile=profile)
        return outcome.message(self.config.port)

    async def list_tabs(self) -> list[TabInfo]:
        return await list_tabs(self.config)

    async def switch_tab(self, tab_id: str) -> None:
        await activate_tab(tab_id, self.config)
        await self._connection.connect(tab_id)

    # -- page primitives ----------------------------------------------------

    async def screenshot(self) -> str:
        """Base64-encoded PNG of the current tab."""
        session = await self._connection.ensure_connected()
        result = await session.send("Page.captureScreenshot", {"format": "png"})
        return result["data"]

    async def navigate(self, url: str, timeout: float | None = None) -> None:
        """Navigate and wait for ``Page.loadEventFired``.

        *timeout* is in seconds and defaults to ``config.navigation_timeout``.
        """
        timeout = self.config.navigation_timeout if timeout is None else timeout
        session = await self._connection.ensure_connected()
        loaded = session.expect_event("Page.loadEventFired")
        try:
            result = await session.send("Page.navigate", {"url": url})
            if result.get("errorText"):
                raise NavigationError(url, result["errorText"])
            if not result.get("loaderId"):
                # same-document navigation, no load event follows
                return
            await asyncio.wait_for(loaded, timeout)
        except asyncio.TimeoutError:
            raise Timeout(f"Timed out after {timeout:g}s waiting for {url} to load") from None
        finally:
            if not loaded.done():
                loaded.cancel()

    async def click(self, selector: str | None = None,
                    x: float | None = None, y: float | None = None) -> None:
        has_point = x is not None and y is not None
        if selector and (x is not None or y is not None):
            raise InvalidArguments("Pass either a selector or x,y coordinates, not both")
        if not selector and not has_point:
            raise InvalidArguments("Either selector or x,y coordinates required")

        session = await self._connection.ensure_connected()
        if selector:
            x, y = await self._element_center(session, selector)
        await self._press(session, x, y)

    async def type(self, text: str, selector: str | None = None) -> None:
        if selector:
            await self.click(selector=selector)
            await asyncio.sleep(TYPE_SETTLE)
        session = await self._connection.ensure_connected()
        for char in text:
            await session.send("Input.dispatchKeyEvent", {"type": "keyDown", "text": char})
            await session.send("Input.dispatchKeyEvent", {"type": "keyUp", "text": char})

    async def evaluate(self, script: str):
        """Run *script* in the page, awaiting promises; returns the JSON value."""
        session = await self._connection.ensure_connected()
        result = await session.send("Runtime.evaluate", {
            "expression": script,
            "returnByValue": True,
            "awaitPromise": True,
        })
        details = result.get("exceptionDetails")
        if details:
            raise ScriptError(_exception_text(details))
        return (result.get("result") or {}).get("value")

    async def get_content(self, format: str = "text") -> str:
        try:
            expression = CONTENT_EXPRESSIONS[format]
        except KeyError:
            raise InvalidArguments(
                f"Invalid content format {format!r}; expected 'text' or 'html'"
            ) from None
        session = await self._connection.ensure_connected()
        result = await session.send("Runtime.evaluate", {
            "expression": expression,
            "returnByValue": True,
        })
        return (result.get("result") or {}).get("value") or ""

    async def wait_for(self, selector: str, timeout: float = DEFAULT_WAIT_MS) -> None:
        """Poll until *selector* matches; *timeout* is in milliseconds."""
        session = await self._connection.ensure_connected()
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout / 1000
        while loop.time() < deadline:
            try:
                if await self._query_selector(session, selector):
                    return
            except Exception as e:
                log.debug("wait_for(%s) poll failed: %s", selector, e)
            await asyncio.sleep(WAIT_POLL)
        raise Timeout(f"Timeout waiting for element: {selector} ({timeout:g}ms)")

    # -- gestures -----------------------------------------------------------

    async def mouse_move(self, x: float, y: float) -> None:
        session = await self._connection.ensure_connected()
        await session.send("Input.dispatchMouseEvent", {"type": "mouseMoved", "x": x, "y": y})

    async def drag(self, start_x: float, start_y: float, end_x: float, end_y: float) -> None:
        session = await self._connection.ensure_connected()
        await session.send("Input.dispatchMouseEvent", {
            "type": "mouseMoved", "x": start_x, "y": start_y,
        })
        await session.send("Input.dispatchMouseEvent", {
            "type": "mousePressed", "x": start_x, "y": start_y,
            "button": "left", "clickCount": 1,
        })
        for step in interpolate((start_x, start_y), (end_x, end_y)):
            await session.send("Input.dispatchMouseEvent", {
                "type": "mouseMoved", "x": step.x, "y": step.y, "button": "left",
            })
            await asyncio.sleep(DRAG_STEP_DELAY)
        await session.send("Input.dispatchMouseEvent", {
            "type": "mouseReleased", "x": end_x, "y": end_y,
            "button": "left", "clickCount": 1,
        })
        log.debug("drag (%s,%s) -> (%s,%s)", start_x, start_y, end_x, end_y)

    async def send_key(self, key: str, modifiers=()) -> None:
        """Press and release *key* holding *modifiers* (Alt, Ctrl, Cmd/Meta, Shift)."""
        if not key:
            raise InvalidArguments("key must not be empty")
        mask = modifier_mask(modifiers)
        session = await self._connection.ensure_connected()
        down = {"type": "keyDown", "modifiers": mask, "key": key}
        if len(key) == 1:
            down["text"] = key
            down["unmodifiedText"] = key
        await session.send("Input.dispatchKeyEvent", down)
        await session.send("Input.dispatchKeyEvent", {
            "type": "keyUp", "modifiers": mask, "key": key,
        })

    async def canvas_zoom(self, zoom_in: bool = True, amount: float = DEFAULT_ZOOM) -> str:
        """Ctrl+wheel over the first canvas (or the viewport center).

        Canvas editors treat Ctrl+wheel, not a plain wheel, as zoom;
        negative ``deltaY`` zooms in.
        """
        session = await self._connection.ensure_connected()
        pos = await self._evaluate_json(session, scripts.CANVAS_CENTER)
        x, y = pos["x"], pos["y"]
        await session.send("Input.dispatchMouseEvent", {"type": "mouseMoved", "x": x, "y": y})
        await asyncio.sleep(ZOOM_SETTLE)
        await session.send("Input.dispatchMouseEvent", {
            "type": "mouseWheel", "x": x, "y": y,
            "deltaX": 0, "deltaY": -amount if zoom_in else amount,
            "modifiers": CTRL,
        })
        return f"Zoomed {'in' if zoom_in else 'out'} at ({x}, {y}) with Ctrl+scroll"

    async def scroll(self, direction: str, amount: float = DEFAULT_SCROLL) -> str:
        """Scroll with a wheel event, falling back to DOM scroll mutation.

        Wheel first covers canvas/WebGL surfaces and native scrolling
        without scanning the document. The DOM pass covers apps that only
        react to explicit ``scrollTop``/``scrollLeft`` changes.
        """
        delta_x, delta_y = wheel_delta(direction, amount)
        if amount <= 0:
            raise InvalidArguments(f"Scroll amount must be positive, got {amount}")
        session = await self._connection.ensure_connected()

        if await self._wheel_scroll(session, delta_x, delta_y):
            return f"Scrolled {direction} by {amount}px (wheel event)"

        result = await self._evaluate_json(
            session, scripts.build_dom_scroll_script(direction, amount)
        )
        if result.get("success"):
            return f"Scrolled {direction} {amount}px on {result.get('element')}"
        return NOTHING_SCROLLABLE

    # -- helpers ------------------------------------------------------------

    async def _wheel_scroll(self, session: Session, delta_x: float, delta_y: float) -> bool:
        before = await self._evaluate_json(session, scripts.SCROLL_SNAPSHOT)
        center = viewport_center(before["width"], before["height"])
        await session.send("Input.dispatchMouseEvent", {
            "type": "mouseMoved", "x": center.x, "y": center.y,
        })
        await session.send("Input.dispatchMouseEvent", {
            "type": "mouseWheel", "x": center.x, "y": center.y,
            "deltaX": delta_x, "deltaY": delta_y,
        })
        await asyncio.sleep(SCROLL_SETTLE)
        after = await self._evaluate_json(session, scripts.SCROLL_POSITION)
        return (after["scrollX"], after["scrollY"]) != (before["scrollX"], before["scrollY"])

    @staticmethod
    async def _evaluate_json(session: Session, expression: str) -> dict:
        result = await session.send("Runtime.evaluate", {
            "expression": expression,
            "returnByValue": True,
        })
        details = result.get("exceptionDetails")
        if details:
            raise ScriptError(_exception_text(details))
        value = (result.get("result") or {}).get("value")
        return json.loads(value) if value else {}

    @staticmethod
    async def _query_selector(session: Session, selector: str) -> int:
        doc = await session.send("DOM.getDocument")
        found = await session.send("DOM.querySelector", {
            "nodeId": doc["root"]["nodeId"],
            "selector": selector,
        })
        return found.get("nodeId", 0)

    async def _element_center(self, session: Session, selector: str) -> tuple[float, float]:
        node_id = await self._query_selector(session, selector)
        if not node_id:
            raise ElementNotFound(selector)
        box = await session.send("DOM.getBoxModel", {"nodeId": node_id})
        quad = box["model"]["content"]
        return (quad[0] + quad[2]) / 2, (quad[1] + quad[5]) / 2

    @staticmethod
    async def _press(session: Session, x: float, y: float) -> None:
        for kind in ("mousePressed", "mouseReleased"):
            await session.send("Input.dispatchMouseEvent", {
                "type": kind, "x": x, "y": y, "button": "left", "clickCount": 1,
            })

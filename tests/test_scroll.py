"""Tests for the two-tier scroll: wheel event first, DOM mutation as fallback."""
import json
from unittest.mock import AsyncMock, patch

import pytest

from conftest import evaluate_result
from devtools_bridge.browser import scripts
from devtools_bridge.engine import controller as controller_mod
from devtools_bridge.engine.controller import NOTHING_SCROLLABLE
from devtools_bridge.errors import InvalidArguments


def page(before=(0, 0), after=(0, 0), dom=None, size=(1280, 720)):
    """Responder for a page whose window scroll moves from *before* to *after*."""
    def responder(method, params):
        if method != "Runtime.evaluate":
            return {}
        expression = params["expression"]
        if expression == scripts.SCROLL_SNAPSHOT:
            return evaluate_result(json.dumps({
                "scrollX": before[0], "scrollY": before[1],
                "width": size[0], "height": size[1],
            }))
        if expression == scripts.SCROLL_POSITION:
            return evaluate_result(json.dumps({"scrollX": after[0], "scrollY": after[1]}))
        return evaluate_result(json.dumps(dom or {"success": False, "element": None}))
    return responder


def dom_scripts(fake_cdp):
    return [
        p["expression"] for m, p in fake_cdp.calls
        if m == "Runtime.evaluate"
        and p["expression"] not in (scripts.SCROLL_SNAPSHOT, scripts.SCROLL_POSITION)
    ]


@pytest.fixture(autouse=True)
def no_sleep():
    with patch.object(controller_mod.asyncio, "sleep", new_callable=AsyncMock) as sleep:
        yield sleep


@pytest.mark.asyncio
async def test_wheel_success_skips_dom_fallback(controller, fake_cdp, no_sleep):
    fake_cdp.responder = page(before=(0, 0), after=(0, 300))
    message = await controller.scroll("down")

    assert message == "Scrolled down by 300px (wheel event)"
    assert dom_scripts(fake_cdp) == []
    move, wheel = [p for _, p in fake_cdp.sent("Input.")]
    assert move == {"type": "mouseMoved", "x": 640, "y": 360}
    assert wheel == {
        "type": "mouseWheel", "x": 640, "y": 360, "deltaX": 0, "deltaY": 300,
    }
    no_sleep.assert_awaited_once_with(controller_mod.SCROLL_SETTLE)


@pytest.mark.asyncio
async def test_wheel_left_uses_negative_delta_x(controller, fake_cdp):
    fake_cdp.responder = page(before=(500, 0), after=(380, 0))
    assert await controller.scroll("left", 120) == "Scrolled left by 120px (wheel event)"
    wheel = fake_cdp.sent("Input.")[-1][1]
    assert (wheel["deltaX"], wheel["deltaY"]) == (-120, 0)


@pytest.mark.asyncio
async def test_dom_fallback_reports_element(controller, fake_cdp):
    fake_cdp.responder = page(dom={"success": True, "element": "chat-scroller"})
    message = await controller.scroll("down", 200)

    assert message == "Scrolled down 200px on chat-scroller"
    [script] = dom_scripts(fake_cdp)
    assert 'const direction = "down";' in script
    assert "const amount = 200;" in script


@pytest.mark.asyncio
async def test_dom_fallback_on_window(controller, fake_cdp):
    fake_cdp.responder = page(dom={"success": True, "element": "window"})
    assert await controller.scroll("up") == "Scrolled up 300px on window"


@pytest.mark.asyncio
async def test_nothing_scrollable(controller, fake_cdp):
    fake_cdp.responder = page()
    assert await controller.scroll("right") == NOTHING_SCROLLABLE
    assert len(dom_scripts(fake_cdp)) == 1


@pytest.mark.asyncio
async def test_invalid_direction_makes_no_calls(controller, fake_cdp):
    with pytest.raises(InvalidArguments):
        await controller.scroll("diagonal")
    assert fake_cdp.calls == []


@pytest.mark.asyncio
async def test_non_positive_amount_is_rejected(controller, fake_cdp):
    with pytest.raises(InvalidArguments, match="positive"):
        await controller.scroll("down", 0)
    assert fake_cdp.calls == []


def test_dom_script_escapes_arguments():
    script = scripts.build_dom_scroll_script("down'; alert(1); '", 50)
    assert "const direction = \"down'; alert(1); '\";" in script

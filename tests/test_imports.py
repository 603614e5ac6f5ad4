"""Smoke tests: all public modules are importable."""


def test_browser_imports():
    from devtools_bridge.browser import (
        resolve_chrome_path,
        build_launch_spec,
        is_cdp_available,
        list_tabs,
        activate_tab,
        launch_chrome,
        TabInfo,
        LaunchOutcome,
    )
    assert callable(resolve_chrome_path)
    assert callable(build_launch_spec)
    assert callable(is_cdp_available)
    assert callable(list_tabs)
    assert callable(activate_tab)
    assert callable(launch_chrome)
    assert TabInfo.__name__ == "TabInfo"
    assert LaunchOutcome.ALREADY_RUNNING.value == "already_running"


def test_human_imports():
    from devtools_bridge.human import (
        interpolate,
        modifier_mask,
        wheel_delta,
        viewport_center,
        DRAG_STEPS,
    )
    assert callable(interpolate)
    assert callable(modifier_mask)
    assert callable(wheel_delta)
    assert callable(viewport_center)
    assert DRAG_STEPS == 20


def test_telemetry_imports():
    from devtools_bridge.telemetry import ToolEventLogger
    assert callable(ToolEventLogger)


def test_engine_imports():
    from devtools_bridge.engine import BrowserController, ConnectionManager, ConnectionState
    from devtools_bridge import ErrorKind, BrowserError
    assert callable(BrowserController)
    assert callable(ConnectionManager)
    assert ConnectionState.CONNECTED.value == "connected"
    assert ErrorKind.TIMEOUT.value == "timeout"
    assert issubclass(BrowserError, Exception)


def test_server_imports():
    from devtools_bridge.server import create_tools, handle_tool_call
    from devtools_bridge.server.main import build_server, main
    assert callable(create_tools)
    assert callable(handle_tool_call)
    assert callable(build_server)
    assert callable(main)

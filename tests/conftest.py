"""Shared fakes: a recording CDP session and a controller wired to it."""
from unittest.mock import AsyncMock

import pytest

from devtools_bridge.config import CDPConfig
from devtools_bridge.engine.connection import ConnectionManager, Session
from devtools_bridge.engine.controller import BrowserController


class FakeCDP:
    """Records every ``send`` and answers through a responder callable.

    The responder gets ``(method, params)`` and returns a result dict, or an
    exception instance to raise.
    """

    def __init__(self, responder=None):
        self.calls: list[tuple[str, dict]] = []
        self.responder = responder or (lambda method, params: {})
        self.listeners: dict[str, list] = {}
        self.detached = False

    async def send(self, method, params=None):
        params = params or {}
        self.calls.append((method, params))
        result = self.responder(method, params)
        if isinstance(result, BaseException):
            raise result
        return result if result is not None else {}

    def once(self, event, handler):
        self.listeners.setdefault(event, []).append(handler)

    def remove_listener(self, event, handler):
        handlers = self.listeners.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event, params=None):
        for handler in self.listeners.pop(event, []):
            handler(params or {})

    async def detach(self):
        self.detached = True

    def sent(self, prefix: str = "") -> list[tuple[str, dict]]:
        """Calls whose method starts with *prefix*, excluding domain enables."""
        return [
            (m, p) for m, p in self.calls
            if m.startswith(prefix) and not m.endswith(".enable")
        ]


def evaluate_result(value) -> dict:
    return {"result": {"type": "string", "value": value}}


@pytest.fixture
def fake_cdp():
    return FakeCDP()


@pytest.fixture
def session_factory(fake_cdp):
    async def factory(config, target_id):
        return Session(cdp=fake_cdp, target_id=target_id)

    return AsyncMock(side_effect=factory)


@pytest.fixture
def connection(session_factory):
    return ConnectionManager(
        CDPConfig(retry_delay=0),
        session_factory=session_factory,
        probe=AsyncMock(return_value=True),
        launcher=AsyncMock(),
    )


@pytest.fixture
def controller(connection):
    return BrowserController(connection)

"""CDP session lifecycle: lazy connect, bounded retry, teardown.

The :class:`ConnectionManager` is the only owner of the live
:class:`Session`. Callers fetch it through ``ensure_connected()`` for every
operation and never keep it across a ``close()`` or re-``connect()``.
"""
import asyncio
import logging
from contextlib import suppress
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable

from ..browser.chrome import is_cdp_available, launch_chrome
from ..config import CDPConfig
from ..errors import ConnectionFailed, TabNotFound

log = logging.getLogger(__name__)

REQUIRED_DOMAINS = ("Page", "Runtime", "DOM")


class ConnectionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclass
class Session:
    """One open CDP connection scoped to a single tab.

    ``target_id`` is the identifier requested at connect time; ``None``
    means the first page tab.
    """
    cdp: Any
    target_id: str | None = None
    page: Any = None
    browser: Any = None
    playwright: Any = None
    domains: set[str] = field(default_factory=set)

    async def send(self, method: str, params: dict | None = None) -> dict:
        return await self.cdp.send(method, params or {})

    def expect_event(self, event: str) -> asyncio.Future:
        """Future resolved with the params of the next *event*.

        Subscribe before sending the command that triggers the event.
        """
        fut = asyncio.get_running_loop().create_future()

        def _handler(params=None):
            if not fut.done():
                fut.set_result(params or {})

        self.cdp.once(event, _handler)
        fut.add_done_callback(lambda _: _remove_listener(self.cdp, event, _handler))
        return fut

    async def close(self) -> None:
        """Detach from the tab and disconnect; the browser keeps running."""
        if self.cdp is not None:
            try:
                await self.cdp.detach()
            except Exception as e:
                log.debug("CDP detach failed: %s", e)
        if self.browser is not None:
            try:
                # For connect_over_cdp this only drops the connection.
                await self.browser.close()
            except Exception as e:
                log.debug("Browser disconnect failed: %s", e)
        if self.playwright is not None:
            try:
                await self.playwright.stop()
            except Exception as e:
                log.debug("Playwright stop failed: %s", e)
        self.domains.clear()


def _remove_listener(emitter: Any, event: str, handler: Callable) -> None:
    with suppress(Exception):
        emitter.remove_listener(event, handler)


async def _target_id_of(cdp: Any) -> str:
    info = await cdp.send("Target.getTargetInfo")
    return info.get("targetInfo", {}).get("targetId", "")


async def open_playwright_session(config: CDPConfig, target_id: str | None) -> Session:
    """Attach to Chrome over CDP with Playwright and open a CDP session on a tab.

    With *target_id* the tab whose ``Target.getTargetInfo`` matches is
    used; otherwise the first page, creating one if the browser has none.
    """
    from playwright.async_api import async_playwright

    pw = await async_playwright().start()
    browser = None
    try:
        browser = await pw.chromium.connect_over_cdp(config.base_url)
        pages = [p for ctx in browser.contexts for p in ctx.pages]
        if target_id is None:
            if pages:
                page = pages[0]
            elif browser.contexts:
                page = await browser.contexts[0].new_page()
            else:
                page = await (await browser.new_context()).new_page()
            cdp = await page.context.new_cdp_session(page)
        else:
            page = cdp = None
            for candidate in pages:
                candidate_cdp = await candidate.context.new_cdp_session(candidate)
                if await _target_id_of(candidate_cdp) == target_id:
                    page, cdp = candidate, candidate_cdp
                    break
                await candidate_cdp.detach()
            if cdp is None:
                raise TabNotFound(target_id)
        return Session(cdp=cdp, target_id=target_id, page=page, browser=browser, playwright=pw)
    except BaseException:
        if browser is not None:
            with suppress(Exception):
                await browser.close()
        with suppress(Exception):
            await pw.stop()
        raise


def _is_refused(error: BaseException | None) -> bool:
    if error is None:
        return False
    if isinstance(error, ConnectionRefusedError):
        return True
    text = str(error)
    return "ECONNREFUSED" in text or "Connection refused" in text


SessionFactory = Callable[[CDPConfig, "str | None"], Awaitable[Session]]


class ConnectionManager:
    """Owns the single CDP session: ``Disconnected -> Connecting -> Connected``.

    ``session_factory``, ``launcher`` and ``probe`` are injectable so the
    retry logic can run without a browser.
    """

    def __init__(
        self,
        config: CDPConfig | None = None,
        *,
        session_factory: SessionFactory | None = None,
        launcher: Callable[..., Awaitable[Any]] | None = None,
        probe: Callable[[CDPConfig], Awaitable[bool]] | None = None,
    ):
        self.config = config or CDPConfig()
        self._session_factory = session_factory or open_playwright_session
        self._launcher = launcher or launch_chrome
        self._probe = probe or is_cdp_available
        self._session: Session | None = None
        self._target_id: str | None = None
        self._state = ConnectionState.DISCONNECTED
        self._lock = asyncio.Lock()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def target_id(self) -> str | None:
        return self._target_id

    @property
    def connected(self) -> bool:
        return self._session is not None

    async def connect(self, target_id: str | None = None) -> None:
        """(Re)connect to *target_id*, or the first tab when ``None``."""
        async with self._lock:
            await self._connect(target_id)

    async def ensure_connected(self) -> Session:
        async with self._lock:
            if self._session is None:
                await self._connect(None)
            return self._session

    async def close(self) -> None:
        async with self._lock:
            await self._discard_session()

    async def launch(self, url: str | None = None, profile: str | None = None):
        """Start Chrome through the configured launcher; returns its outcome."""
        return await self._launcher(url=url, profile=profile, config=self.config)

    async def _ensure_browser(self) -> None:
        try:
            if await self._probe(self.config):
                return
            outcome = await self.launch()
            log.info("Chrome launch before connect: %s", outcome)
        except Exception as e:
            # the connection attempts below carry the real diagnostic
            log.warning("Chrome launch before connect failed: %s", e)

    async def _connect(self, target_id: str | None) -> None:
        await self._discard_session()
        await self._ensure_browser()

        attempts = self.config.max_retries
        last_error: BaseException | None = None
        for attempt in range(1, attempts + 1):
            await self._discard_session()
            self._state = ConnectionState.CONNECTING
            try:
                session = await self._session_factory(self.config, target_id)
            except Exception as e:
                last_error = e
            else:
                try:
                    await self._enable_domains(session)
                except Exception as e:
                    last_error = e
                    await self._close_quietly(session)
                else:
                    self._session = session
                    self._target_id = target_id
                    self._state = ConnectionState.CONNECTED
                    log.info(
                        "Connected to Chrome on %s (target %s, attempt %d)",
                        self.config.base_url, target_id or "default", attempt,
                    )
                    return

            log.warning("CDP connect attempt %d/%d failed: %s", attempt, attempts, last_error)
            if attempt < attempts:
                await asyncio.sleep(self.config.retry_delay * attempt)

        self._state = ConnectionState.DISCONNECTED
        raise self._failure(last_error, attempts)

    @staticmethod
    async def _enable_domains(session: Session) -> None:
        # all three or nothing; the caller discards the session on failure
        await asyncio.gather(*(session.send(f"{d}.enable") for d in REQUIRED_DOMAINS))
        session.domains.update(REQUIRED_DOMAINS)

    async def _discard_session(self) -> None:
        session, self._session = self._session, None
        self._state = ConnectionState.DISCONNECTED
        if session is not None:
            await self._close_quietly(session)

    @staticmethod
    async def _close_quietly(session: Session) -> None:
        try:
            await session.close()
        except Exception as e:
            log.warning("Ignoring error while closing CDP session: %s", e)

    def _failure(self, error: BaseException | None, attempts: int) -> ConnectionFailed:
        port = self.config.port
        if _is_refused(error):
            return ConnectionFailed(
                f"Chrome not reachable at all: connection refused on "
                f"{self.config.host}:{port} after {attempts} attempts. Make sure "
                f"Chrome is running with --remote-debugging-port={port} "
                f"(or call launch_chrome first).",
                attempts=attempts, refused=True, cause=error,
            )
        return ConnectionFailed(
            f"Failed to connect to Chrome after {attempts} attempts: "
            f"{error or 'Unknown error'}",
            attempts=attempts, cause=error,
        )

"""Chrome discovery, detached launch, debug-port probing and tab listing.

All HTTP traffic goes to the DevTools JSON endpoints (``/json/version``,
``/json/list``, ``/json/activate``) on the configured host and port.
"""
import asyncio
import json
import logging
import math
import os
import platform
import subprocess
import tempfile
import time
import urllib.error
import urllib.request
from dataclasses import dataclass
from enum import Enum

from ..config import CDPConfig
from ..errors import LaunchError, LaunchTimeout, NotAvailable, TabNotFound

log = logging.getLogger(__name__)

_DEFAULT_CONFIG = CDPConfig()


@dataclass(frozen=True)
class TabInfo:
    """A browser tab as reported by ``/json/list``."""
    id: str
    title: str
    url: str
    type: str

    @classmethod
    def from_target(cls, target: dict) -> "TabInfo":
        return cls(
            id=target.get("id", ""),
            title=target.get("title") or "Untitled",
            url=target.get("url", ""),
            type=target.get("type", ""),
        )

    def to_dict(self) -> dict:
        return {"id": self.id, "title": self.title, "url": self.url, "type": self.type}


@dataclass(frozen=True)
class LaunchSpec:
    executable: str
    args: list[str]
    user_data_dir: str

    @property
    def argv(self) -> list[str]:
        return [self.executable, *self.args]


class LaunchOutcome(Enum):
    ALREADY_RUNNING = "already_running"
    LAUNCHED = "launched"
    LAUNCHED_NO_TAB = "launched_no_tab"

    def message(self, port: int) -> str:
        if self is LaunchOutcome.ALREADY_RUNNING:
            return f"Chrome is already running with debugging port {port}"
        if self is LaunchOutcome.LAUNCHED:
            return f"Chrome launched successfully with debugging port {port}"
        return (
            f"Chrome launched with debugging port {port}, "
            "but no page tab appeared yet"
        )


def resolve_chrome_path(system: str | None = None) -> str:
    """Return the fixed Chrome executable for the current platform."""
    system = system or platform.system()
    if system == "Darwin":
        return "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome"
    if system == "Windows":
        return r"C:\Program Files\Google\Chrome\Application\chrome.exe"
    return "google-chrome"


def chrome_data_dir(system: str | None = None) -> str:
    """Root of the user's real Chrome profiles (holds Default, Profile 1, ...)."""
    system = system or platform.system()
    home = os.path.expanduser("~")
    if system == "Darwin":
        return os.path.join(home, "Library", "Application Support", "Google", "Chrome")
    if system == "Windows":
        local = os.environ.get("LOCALAPPDATA") or os.path.join(home, "AppData", "Local")
        return os.path.join(local, "Google", "Chrome", "User Data")
    return os.path.join(home, ".config", "google-chrome")


def build_launch_spec(
    url: str | None = None,
    profile: str | None = None,
    config: CDPConfig = _DEFAULT_CONFIG,
    *,
    system: str | None = None,
    now: float | None = None,
) -> LaunchSpec:
    """Build the Chrome command line.

    With *profile* the user's real data directory is reused so history,
    sessions and extensions survive. Without it a fresh temporary profile
    is created, suffixed with the current time in milliseconds.
    """
    executable = config.chrome_path or resolve_chrome_path(system)
    args = [f"--remote-debugging-port={config.port}"]
    if profile:
        user_data_dir = chrome_data_dir(system)
        args.append(f"--user-data-dir={user_data_dir}")
        args.append(f"--profile-directory={profile}")
    else:
        stamp = int((time.time() if now is None else now) * 1000)
        user_data_dir = os.path.join(tempfile.gettempdir(), f"chrome-debug-profile-{stamp}")
        args.append(f"--user-data-dir={user_data_dir}")
        args.append("--no-first-run")
        args.append("--no-default-browser-check")
    args.append(url or "about:blank")
    return LaunchSpec(executable=executable, args=args, user_data_dir=user_data_dir)


def _http_get(url: str, timeout: float) -> bytes:
    with urllib.request.urlopen(url, timeout=timeout) as resp:
        return resp.read()


async def is_cdp_available(config: CDPConfig = _DEFAULT_CONFIG) -> bool:
    """True if the debug port answers ``/json/version``. Never raises."""
    try:
        await asyncio.to_thread(
            _http_get, f"{config.base_url}/json/version", config.probe_timeout
        )
        return True
    except Exception as e:
        log.debug("CDP probe of %s failed: %s", config.base_url, e)
        return False


async def fetch_targets(config: CDPConfig = _DEFAULT_CONFIG) -> list[dict]:
    raw = await asyncio.to_thread(
        _http_get, f"{config.base_url}/json/list", config.probe_timeout
    )
    return json.loads(raw)


async def list_tabs(config: CDPConfig = _DEFAULT_CONFIG) -> list[TabInfo]:
    """List page-type targets."""
    try:
        targets = await fetch_targets(config)
    except Exception as e:
        raise NotAvailable(f"Failed to list tabs: {e}") from e
    return [TabInfo.from_target(t) for t in targets if t.get("type") == "page"]


async def activate_tab(tab_id: str, config: CDPConfig = _DEFAULT_CONFIG) -> None:
    """Bring *tab_id* to the foreground."""
    try:
        await asyncio.to_thread(
            _http_get, f"{config.base_url}/json/activate/{tab_id}", config.probe_timeout
        )
    except urllib.error.HTTPError as e:
        raise TabNotFound(tab_id, f"Cannot activate tab {tab_id}: HTTP {e.code}") from e
    except Exception as e:
        raise TabNotFound(tab_id, f"Cannot activate tab {tab_id}: {e}") from e


async def wait_for_page_tab(config: CDPConfig = _DEFAULT_CONFIG) -> bool:
    """Poll until at least one page tab exists.

    Tabs can lag behind the debug port. Returns False when ``tab_wait``
    elapses; polling errors are ignored.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + config.tab_wait
    while loop.time() < deadline:
        try:
            targets = await fetch_targets(config)
            if any(t.get("type") == "page" for t in targets):
                await asyncio.sleep(config.tab_settle)
                return True
        except Exception as e:
            log.debug("Waiting for page tab: %s", e)
        await asyncio.sleep(config.poll_interval)
    return False


def spawn_detached(spec: LaunchSpec) -> int:
    """Start Chrome in its own session and forget about it.

    The browser must outlive this process, so the handle is never waited
    on or terminated. Returns the pid.
    """
    kwargs: dict = {
        "stdin": subprocess.DEVNULL,
        "stdout": subprocess.DEVNULL,
        "stderr": subprocess.DEVNULL,
        "close_fds": True,
    }
    if platform.system() == "Windows":
        kwargs["creationflags"] = (
            subprocess.DETACHED_PROCESS | subprocess.CREATE_NEW_PROCESS_GROUP
        )
    else:
        kwargs["start_new_session"] = True
    try:
        proc = subprocess.Popen(spec.argv, **kwargs)
    except OSError as e:
        raise LaunchError(f"Failed to launch Chrome: {e}") from e
    log.info("Launched Chrome (pid %d): %s", proc.pid, os.path.basename(spec.executable))
    return proc.pid


async def launch_chrome(
    url: str | None = None,
    profile: str | None = None,
    config: CDPConfig = _DEFAULT_CONFIG,
) -> LaunchOutcome:
    """Launch Chrome with remote debugging unless the port already answers.

    Raises :class:`LaunchTimeout` if the port never comes up within
    ``launch_wait``. A missing page tab only degrades the outcome.
    """
    if await is_cdp_available(config):
        log.debug("CDP already available on port %d", config.port)
        return LaunchOutcome.ALREADY_RUNNING

    spec = build_launch_spec(url, profile, config)
    spawn_detached(spec)

    attempts = max(1, math.ceil(config.launch_wait / config.poll_interval))
    for _ in range(attempts):
        await asyncio.sleep(config.poll_interval)
        if await is_cdp_available(config):
            if await wait_for_page_tab(config):
                return LaunchOutcome.LAUNCHED
            log.warning("Chrome debug port is up but no page tab appeared")
            return LaunchOutcome.LAUNCHED_NO_TAB

    raise LaunchTimeout(
        f"Failed to launch Chrome: started but debugging port {config.port} "
        f"is not responding after {config.launch_wait:.1f}s"
    )

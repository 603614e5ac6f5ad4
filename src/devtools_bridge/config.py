"""Fixed CDP endpoint, retry and polling constants.

Values are runtime-injected through :class:`CDPConfig`; nothing is derived
from the package location.
"""
import os
from dataclasses import dataclass

CDP_HOST = "localhost"
CDP_PORT = 9222

MAX_RETRIES = 3
RETRY_DELAY = 1.0         # seconds, multiplied by the attempt number
LAUNCH_WAIT = 2.0         # total budget for the debug port to come up
POLL_INTERVAL = 0.1
TAB_WAIT = 5.0            # budget for the first page tab after the port is up
TAB_SETTLE = 0.5
PROBE_TIMEOUT = 1.0
NAVIGATION_TIMEOUT = 30.0


@dataclass(frozen=True)
class CDPConfig:
    """Connection and timing settings for one Chrome instance."""
    host: str = CDP_HOST
    port: int = CDP_PORT
    chrome_path: str = ""
    max_retries: int = MAX_RETRIES
    retry_delay: float = RETRY_DELAY
    launch_wait: float = LAUNCH_WAIT
    poll_interval: float = POLL_INTERVAL
    tab_wait: float = TAB_WAIT
    tab_settle: float = TAB_SETTLE
    probe_timeout: float = PROBE_TIMEOUT
    navigation_timeout: float = NAVIGATION_TIMEOUT

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    @classmethod
    def from_env(cls, **overrides) -> "CDPConfig":
        """Build a config from ``DEVTOOLS_BRIDGE_*`` variables.

        Explicit keyword overrides win over the environment.
        """
        values: dict = {}
        host = os.environ.get("DEVTOOLS_BRIDGE_HOST")
        if host:
            values["host"] = host
        port = os.environ.get("DEVTOOLS_BRIDGE_PORT")
        if port:
            values["port"] = int(port)
        chrome = os.environ.get("DEVTOOLS_BRIDGE_CHROME")
        if chrome:
            values["chrome_path"] = chrome
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

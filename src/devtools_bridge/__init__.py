"""devtools-bridge: drive a local Chrome tab over the DevTools protocol.

Provides a detached Chrome launcher, a retrying CDP connection manager,
page-interaction primitives with a two-tier scroll fallback, and an MCP
tool shell that exposes them to an agent process.
"""
__version__ = "0.1.0"

from .config import CDPConfig  # noqa: F401,E402
from .errors import ErrorKind, BrowserError  # noqa: F401,E402
from .engine.connection import ConnectionManager  # noqa: F401,E402
from .engine.controller import BrowserController  # noqa: F401,E402

"""engine: CDP session lifecycle and page-interaction primitives."""
from .connection import ConnectionManager, ConnectionState, Session  # noqa: F401
from .controller import BrowserController  # noqa: F401

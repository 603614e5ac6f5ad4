"""Typed failures raised by the browser session controller.

The controller never formats error responses itself; the tool shell turns
any of these into an error-flagged text result.
"""
from enum import Enum


class ErrorKind(Enum):
    """Normalized failure kinds for every controller operation."""
    NOT_AVAILABLE = "not_available"         # debug port not answering
    LAUNCH_TIMEOUT = "launch_timeout"       # spawned, port never came up
    LAUNCH_FAILED = "launch_failed"         # executable could not be started
    CONNECTION_FAILED = "connection_failed" # handshake failed after all retries
    TAB_NOT_FOUND = "tab_not_found"
    ELEMENT_NOT_FOUND = "element_not_found"
    INVALID_ARGUMENTS = "invalid_arguments"
    SCRIPT_ERROR = "script_error"
    NAVIGATION_FAILED = "navigation_failed"
    TIMEOUT = "timeout"


class BrowserError(Exception):
    """Exception carrying an :class:`ErrorKind`."""

    kind = ErrorKind.CONNECTION_FAILED

    def __init__(self, message: str = "", kind: ErrorKind | None = None):
        if kind is not None:
            self.kind = kind
        super().__init__(message or self.kind.value)


class NotAvailable(BrowserError):
    kind = ErrorKind.NOT_AVAILABLE


class LaunchTimeout(BrowserError):
    kind = ErrorKind.LAUNCH_TIMEOUT


class LaunchError(BrowserError):
    kind = ErrorKind.LAUNCH_FAILED


class ConnectionFailed(BrowserError):
    """All connection attempts failed.

    ``refused`` is set when the last failure was a plain connection refusal,
    i.e. nothing is listening on the debug port.
    """
    kind = ErrorKind.CONNECTION_FAILED

    def __init__(self, message: str, *, attempts: int, refused: bool = False,
                 cause: BaseException | None = None):
        self.attempts = attempts
        self.refused = refused
        self.cause = cause
        super().__init__(message)


class TabNotFound(BrowserError):
    kind = ErrorKind.TAB_NOT_FOUND

    def __init__(self, tab_id: str, message: str = ""):
        self.tab_id = tab_id
        super().__init__(message or f"Tab not found: {tab_id}")


class ElementNotFound(BrowserError):
    kind = ErrorKind.ELEMENT_NOT_FOUND

    def __init__(self, selector: str):
        self.selector = selector
        super().__init__(f"Element not found: {selector}")


class InvalidArguments(BrowserError):
    kind = ErrorKind.INVALID_ARGUMENTS


class ScriptError(BrowserError):
    kind = ErrorKind.SCRIPT_ERROR

    def __init__(self, text: str):
        self.text = text
        super().__init__(f"JavaScript error: {text}")


class NavigationError(BrowserError):
    kind = ErrorKind.NAVIGATION_FAILED

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Navigation to {url} failed: {reason}")


class Timeout(BrowserError):
    kind = ErrorKind.TIMEOUT

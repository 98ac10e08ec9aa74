"""
Typed failures of the browser automation engine.

Every error raised below the tool layer is one of these classes. The tool envelope turns
them into an ErrorResponse, using ``next_steps`` as the remediation hints shown to the caller.
"""

from typing import Optional, Sequence


class BrowserToolError(Exception):
    """Base class; carries the remediation hints for the caller."""

    default_next_steps: Sequence[str] = ("Retry the operation",)

    def __init__(self, message: str, next_steps: Optional[Sequence[str]] = None):
        super().__init__(message)
        self.message = message
        self.next_steps = list(next_steps) if next_steps is not None else list(self.default_next_steps)


class ValidationError(BrowserToolError):
    """A required argument is missing or malformed. Raised before any browser I/O."""

    default_next_steps = ("Check the tool arguments and call the tool again",)


class BrowserUnavailableError(BrowserToolError):
    """No running instance of the requested browser flavor could be reached."""

    default_next_steps = (
        "Start the browser with remote debugging enabled (e.g. --remote-debugging-port=9222)",
        "Or set MCP_BROWSER_AUTOLAUNCH=1 and the browser executable path, then retry",
    )

    def __init__(self, message: str, flavor: Optional[str] = None, next_steps=None):
        super().__init__(message, next_steps)
        self.flavor = flavor


class BrowserDisconnectedError(BrowserUnavailableError):
    """The connection to the browser dropped in the middle of an operation."""

    default_next_steps = (
        "The browser connection was lost; use fetch_webpage to load the page again",
    )


class NavigationTimeoutError(BrowserToolError):
    """Navigation did not finish in time. The page session stays open for a retry."""

    default_next_steps = (
        "Retry fetch_webpage; the page may still be loading",
        "Use get_current_html to inspect what has loaded so far",
    )

    def __init__(self, url: str, timeout_ms: int, next_steps=None):
        super().__init__(f"Navigation to {url} timed out after {timeout_ms} ms", next_steps)
        self.url = url
        self.timeout_ms = timeout_ms


class ElementNotFoundError(BrowserToolError):
    """A selector or text locator matched nothing before the wait expired."""

    default_next_steps = (
        "Use get_interactive_elements to find a valid selector",
        "Retry with a different selector or text",
    )


class NoPageFoundError(BrowserToolError):
    """The action needs a page that fetch_webpage has not opened."""

    default_next_steps = ("Use fetch_webpage to load the page first",)

    def __init__(self, hostname: str, next_steps=None):
        super().__init__(
            f"No open page found for {hostname}. Please fetch the page first using fetch_webpage.",
            next_steps,
        )
        self.hostname = hostname


class AuthTimeoutError(BrowserToolError):
    """The page is still on a login screen after waiting for the user."""

    default_next_steps = (
        "Complete the login in the browser window",
        "Then call fetch_webpage again with the original URL",
    )


__all__ = [
    "BrowserToolError",
    "ValidationError",
    "BrowserUnavailableError",
    "BrowserDisconnectedError",
    "NavigationTimeoutError",
    "ElementNotFoundError",
    "NoPageFoundError",
    "AuthTimeoutError",
]

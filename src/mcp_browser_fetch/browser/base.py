"""
Primitives the engine needs from a browser library.

The connection manager only talks to a ``Connector``; the registry and the tools only talk to
``BrowserSession`` and ``PageHandle``. The Selenium implementation lives in driver.py; tests
substitute in-memory fakes.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional


class PageHandle(ABC):
    """One browser tab. Every primitive is a coroutine."""

    @abstractmethod
    async def navigate(self, url: str, timeout_ms: int) -> str:
        """Load ``url``; return the landed URL. Raises NavigationTimeoutError on timeout."""

    @abstractmethod
    async def evaluate(self, script: str, *args) -> Any:
        """Run JavaScript in the page and return its result."""

    @abstractmethod
    async def click(self, selector: Optional[str] = None, text: Optional[str] = None,
                    timeout_ms: int = 30000) -> None:
        """Click the element matched by CSS selector, or the smallest visible one containing text."""

    @abstractmethod
    async def type(self, selector: str, text: str, clear: bool = True, delay_ms: int = 0,
                   timeout_ms: int = 30000) -> None:
        """Type into the element matched by ``selector``."""

    @abstractmethod
    async def wait_for(self, selector: Optional[str] = None, text: Optional[str] = None,
                       timeout_ms: int = 30000) -> None:
        """Wait until an element matching selector or containing text is visible."""

    @abstractmethod
    async def content(self) -> str:
        """Serialized HTML of the current document."""

    @abstractmethod
    async def current_url(self) -> str:
        ...

    @abstractmethod
    async def is_closed(self) -> bool:
        ...

    @abstractmethod
    async def close(self) -> None:
        ...


class BrowserSession(ABC):
    """Live connection to one browser instance."""

    @abstractmethod
    async def new_page(self) -> PageHandle:
        ...

    @abstractmethod
    async def pages(self) -> List[PageHandle]:
        """Tabs that are open in the browser right now, including ones we did not create."""

    @abstractmethod
    def is_connected(self) -> bool:
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release the connection. The browser process itself keeps running."""


class Connector(ABC):
    """Finds (or starts) a browser of one flavor and attaches to it."""

    @abstractmethod
    async def probe(self, flavor: str, config: dict) -> bool:
        """True when a browser of this flavor answers on its debugging endpoint."""

    async def launch(self, flavor: str, config: dict) -> bool:
        """Start a browser of this flavor; return False when that is not possible."""
        return False

    @abstractmethod
    async def connect(self, flavor: str, config: dict) -> BrowserSession:
        ...


__all__ = [
    "PageHandle",
    "BrowserSession",
    "Connector",
]

"""
Selenium implementation of the browser primitives.

Selenium attaches to an already running browser through its remote debugging address.
One ``SeleniumSession`` wraps one WebDriver per flavor; every tab is a ``SeleniumPage``
identified by its window handle.

WebDriver is blocking and has a single "current window". Each primitive therefore runs in a
worker thread while holding the session lock, and switches to its own window first. Element
waits poll instead, so a slow selector does not keep the other tabs of the flavor waiting.
"""

import time
import asyncio
from typing import Callable, List, Optional

from selenium import webdriver
from selenium.common.exceptions import (
    TimeoutException,
    NoSuchWindowException,
    WebDriverException,
)

from ..config.paths import driver_log_path
from ..errors import BrowserDisconnectedError, ElementNotFoundError, NavigationTimeoutError
from .base import BrowserSession, Connector, PageHandle
from .devtools import is_debugger_listening
from .elements import click_element, element_present, type_into
from .launcher import launch_browser

import logging
logger = logging.getLogger(__name__)


DISCONNECT_MARKERS = (
    "not reachable",
    "disconnected",
    "invalid session id",
    "session deleted",
    "no such session",
    "target window already closed",
)

# Element waits poll so other tabs of the flavor get the driver in between
ELEMENT_POLL_SECS = 0.25
# Final lookup once polling has seen the element
ELEMENT_LOOKUP_MS = 2000


def _is_disconnect(exc: BaseException) -> bool:
    if isinstance(exc, NoSuchWindowException):
        return False
    if isinstance(exc, OSError):
        return True
    msg = str(getattr(exc, "msg", "") or exc).lower()
    return any(marker in msg for marker in DISCONNECT_MARKERS)


def create_webdriver(flavor: str, host: str, port: int):
    """Attach a WebDriver to the browser listening on ``host:port``."""
    if flavor == "edge":
        from selenium.webdriver.edge.options import Options
        from selenium.webdriver.edge.service import Service
        driver_cls = webdriver.Edge
    else:
        from selenium.webdriver.chrome.options import Options
        from selenium.webdriver.chrome.service import Service
        driver_cls = webdriver.Chrome

    options = Options()
    options.add_experimental_option("debuggerAddress", f"{host}:{port}")
    # Return from driver.get() at DOMContentLoaded
    options.page_load_strategy = "eager"

    service = Service(log_output=driver_log_path(flavor))
    return driver_cls(service=service, options=options)


class SeleniumPage(PageHandle):
    """A browser tab, addressed by its window handle."""

    def __init__(self, session: "SeleniumSession", handle: str):
        self.session = session
        self.handle = handle

    def __repr__(self):
        return f"SeleniumPage({self.session.flavor}, {self.handle})"

    async def _run(self, fn: Callable):
        return await self.session.run(self.handle, fn)

    async def navigate(self, url: str, timeout_ms: int) -> str:
        def _navigate(driver):
            driver.set_page_load_timeout(max(1.0, timeout_ms / 1000.0))
            try:
                driver.get(url)
            except TimeoutException as e:
                raise NavigationTimeoutError(url, timeout_ms) from e
            return driver.current_url

        return await self._run(_navigate)

    async def evaluate(self, script: str, *args):
        return await self._run(lambda driver: driver.execute_script(script, *args))

    async def _await_element(self, selector=None, text=None, timeout_ms: int = 30000) -> None:
        """Poll for a visible element, releasing the session lock between attempts."""
        deadline = time.monotonic() + max(0.0, float(timeout_ms or 0) / 1000.0)
        while not await self._run(lambda driver: element_present(driver, selector=selector, text=text)):
            if time.monotonic() >= deadline:
                if selector:
                    raise ElementNotFoundError(f"Element not found: {selector}")
                raise ElementNotFoundError(f'Element with text "{text}" not found')
            await asyncio.sleep(ELEMENT_POLL_SECS)

    async def click(self, selector=None, text=None, timeout_ms: int = 30000) -> None:
        await self._await_element(selector, text, timeout_ms)
        await self._run(lambda driver: click_element(
            driver, selector=selector, text=text, timeout_ms=ELEMENT_LOOKUP_MS,
        ))

    async def type(self, selector: str, text: str, clear: bool = True, delay_ms: int = 0,
                   timeout_ms: int = 30000) -> None:
        await self._await_element(selector, None, timeout_ms)
        await self._run(lambda driver: type_into(
            driver, selector, text, clear=clear, delay_ms=delay_ms, timeout_ms=ELEMENT_LOOKUP_MS, sleep=time.sleep,
        ))

    async def wait_for(self, selector=None, text=None, timeout_ms: int = 30000) -> None:
        await self._await_element(selector, text, timeout_ms)

    async def content(self) -> str:
        html = await self.evaluate("return document.documentElement ? document.documentElement.outerHTML : '';")
        return html or ""

    async def current_url(self) -> str:
        return await self._run(lambda driver: driver.current_url)

    async def is_closed(self) -> bool:
        if not self.session.is_connected():
            return True
        try:
            handles = await self.session.run(None, lambda driver: driver.window_handles)
        except BrowserDisconnectedError:
            return True
        return self.handle not in handles

    async def close(self) -> None:
        def _close(driver):
            handles = driver.window_handles
            if self.handle not in handles:
                return
            if len(handles) == 1:
                # Closing the last tab would quit the browser
                driver.switch_to.new_window("tab")
                driver.get("about:blank")
            driver.switch_to.window(self.handle)
            driver.close()
            remaining = driver.window_handles
            if remaining:
                driver.switch_to.window(remaining[0])

        await self.session.run(None, _close)


class SeleniumSession(BrowserSession):
    """One attached WebDriver; owned by the ConnectionManager."""

    def __init__(self, flavor: str, driver):
        self.flavor = flavor
        self.driver = driver
        self._lock = asyncio.Lock()
        self._connected = True

    def _run_sync(self, handle: Optional[str], fn: Callable):
        try:
            if handle is not None:
                self.driver.switch_to.window(handle)
            return fn(self.driver)
        except WebDriverException as e:
            if _is_disconnect(e):
                self._connected = False
                raise BrowserDisconnectedError(f"Lost connection to {self.flavor}: {e.msg or e}", flavor=self.flavor) from e
            raise
        except OSError as e:
            self._connected = False
            raise BrowserDisconnectedError(f"Lost connection to {self.flavor}: {e}", flavor=self.flavor) from e

    async def run(self, handle: Optional[str], fn: Callable):
        """
        Run ``fn(driver)`` in a worker thread with ``handle`` as the current window.

        The lock is held for the whole call, so a ``driver.get`` keeps other tabs of this
        flavor waiting until the page loads. A worker thread cannot be interrupted: when the
        caller is cancelled the lock stays held until the thread returns.
        """
        if not self._connected:
            raise BrowserDisconnectedError(f"Not connected to {self.flavor}", flavor=self.flavor)
        async with self._lock:
            work = asyncio.ensure_future(asyncio.to_thread(self._run_sync, handle, fn))
            try:
                return await asyncio.shield(work)
            except asyncio.CancelledError:
                await asyncio.wait([work])
                if work.exception() is not None:
                    logger.debug(f"{self.flavor}: call finished with {work.exception()!r} after its caller was cancelled")
                raise

    async def new_page(self) -> SeleniumPage:
        def _new(driver):
            driver.switch_to.new_window("tab")
            return driver.current_window_handle

        handle = await self.run(None, _new)
        return SeleniumPage(self, handle)

    async def pages(self) -> List[SeleniumPage]:
        handles = await self.run(None, lambda driver: list(driver.window_handles))
        return [SeleniumPage(self, h) for h in handles]

    def is_connected(self) -> bool:
        return self._connected

    async def close(self) -> None:
        if self.driver is None:
            return
        driver, self.driver = self.driver, None
        self._connected = False
        try:
            await asyncio.to_thread(driver.quit)
        except WebDriverException as e:
            logger.debug(f"Driver quit for {self.flavor} failed: {e}")


class SeleniumConnector(Connector):
    """Probes, launches and attaches to local Chromium-family browsers."""

    async def probe(self, flavor: str, config: dict) -> bool:
        return await asyncio.to_thread(is_debugger_listening, config["host"], config["port"])

    async def launch(self, flavor: str, config: dict) -> bool:
        proc = await asyncio.to_thread(
            launch_browser, flavor, config, config.get("headless", False), config.get("launch_wait_secs", 20.0),
        )
        return proc is not None

    async def connect(self, flavor: str, config: dict) -> SeleniumSession:
        logger.info(f"Attaching to {flavor} on {config['host']}:{config['port']}")
        driver = await asyncio.to_thread(create_webdriver, flavor, config["host"], config["port"])
        return SeleniumSession(flavor, driver)


__all__ = [
    "create_webdriver",
    "SeleniumPage",
    "SeleniumSession",
    "SeleniumConnector",
]

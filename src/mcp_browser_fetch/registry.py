"""
Page Registry: at most one live page per (browser flavor, base domain).

The registry is the only component that creates, reuses or closes page handles. Tools borrow
a PageSession for the duration of one call, inside ``registry.locked(flavor, url)`` so that
calls against the same page never interleave.

Auth classification is an explicit, monotonic state machine::

    UNCLASSIFIED -> AUTH_FLOW
    UNCLASSIFIED -> NORMAL -> AUTH_FLOW

AUTH_FLOW never reverts for the lifetime of a session; such pages refuse a regular close.
"""

import enum
import time
import asyncio
import contextlib
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, List, Optional, Tuple

from .auth import base_domain_of_url, get_hostname, is_likely_auth_url
from .browser.base import BrowserSession, PageHandle
from .browser.connection import ConnectionManager
from .constants import NAVIGATION_TIMEOUT_MS, SKIPPED_URL_PREFIXES
from .errors import NavigationTimeoutError, ValidationError

import logging
logger = logging.getLogger(__name__)


PageKey = Tuple[str, str]


class AuthState(enum.Enum):
    UNCLASSIFIED = "unclassified"
    NORMAL = "normal"
    AUTH_FLOW = "auth_flow"


@dataclass
class PageSession:
    """One open tab, keyed by (flavor, base_domain)."""

    flavor: str
    base_domain: str
    page: PageHandle
    current_url: str = ""
    auth_state: AuthState = AuthState.UNCLASSIFIED
    last_activity: float = field(default_factory=time.monotonic)

    @property
    def key(self) -> PageKey:
        return self.flavor, self.base_domain

    @property
    def is_auth_flow(self) -> bool:
        return self.auth_state is AuthState.AUTH_FLOW

    def classify(self, *urls: str) -> AuthState:
        """Re-evaluate after a navigation; AUTH_FLOW is terminal."""
        if self.auth_state is not AuthState.AUTH_FLOW:
            if any(is_likely_auth_url(u) for u in urls if u):
                logger.info(f"{self.flavor}/{self.base_domain}: page is part of an authentication flow")
                self.auth_state = AuthState.AUTH_FLOW
            else:
                self.auth_state = AuthState.NORMAL
        return self.auth_state

    def touch(self) -> None:
        self.last_activity = time.monotonic()


def page_key(flavor: str, url: str) -> PageKey:
    """
    Registry key of ``url``.

    Raises:
        ValidationError: If the URL has no hostname
    """
    base = base_domain_of_url(url)
    if not base:
        raise ValidationError(f"Invalid URL: {url}", next_steps=["Pass an absolute URL such as https://example.com"])
    return flavor, base


class PageRegistry:
    """
    Args:
        connections: Connection manager used to open new pages; the registry subscribes to
            its crash and connect notifications.
    """

    def __init__(self, connections: ConnectionManager):
        self.connections = connections
        self._sessions: Dict[PageKey, PageSession] = {}
        # Domain a tab was redirected onto -> key of that tab
        self._aliases: Dict[PageKey, PageKey] = {}
        self._locks: Dict[PageKey, asyncio.Lock] = {}
        self._lock_users: Dict[PageKey, int] = {}
        connections.add_crash_listener(self.invalidate_flavor)
        connections.add_connect_listener(self.adopt_existing_pages)

    def __len__(self):
        return len(self._sessions)

    def sessions(self, flavor: Optional[str] = None) -> List[PageSession]:
        return [s for s in self._sessions.values() if flavor is None or s.flavor == flavor]

    # ------------------------------------------------------------------ locking

    def owner_key(self, flavor: str, url: str) -> PageKey:
        """Key of the tab that serves ``url`` right now; its own key when no tab does."""
        key = page_key(flavor, url)
        if key in self._sessions:
            return key
        target = self._aliases.get(key)
        session = self._sessions.get(target) if target else None
        if session is not None and base_domain_of_url(session.current_url) == key[1]:
            return target
        return key

    @contextlib.asynccontextmanager
    async def _hold(self, key: PageKey) -> AsyncIterator[None]:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._locks[key]

    @contextlib.asynccontextmanager
    async def locked(self, flavor: str, url: str) -> AsyncIterator[PageKey]:
        """
        Serialize every action on the page that ``url`` maps to.

        Holds the lock of the requested domain and, when a redirected tab serves it, the lock
        of that tab as well (acquired in sorted order). Yields the key of the serving tab.
        """
        key = page_key(flavor, url)
        while True:
            owner = self.owner_key(flavor, url)
            async with contextlib.AsyncExitStack() as stack:
                for k in sorted({key, owner}):
                    await stack.enter_async_context(self._hold(k))
                # The domain moved to another tab while we waited
                if self.owner_key(flavor, url) != owner:
                    continue
                yield owner
                return

    # ------------------------------------------------------------------ lookup

    def _forget(self, session: PageSession) -> None:
        if self._sessions.get(session.key) is session:
            del self._sessions[session.key]
        for alias in [a for a, target in self._aliases.items() if target == session.key]:
            del self._aliases[alias]

    def _set_url(self, session: PageSession, url: str) -> None:
        """
        Record where the tab is now. A tab that lands on another base domain also serves that
        domain, unless the domain has its own tab or somebody holds its lock.
        """
        session.current_url = url
        landed = (session.flavor, base_domain_of_url(url))
        if not landed[1] or landed == session.key or landed in self._sessions:
            return
        if self._aliases.get(landed) == session.key or landed not in self._lock_users:
            self._aliases[landed] = session.key

    async def _alive(self, session: Optional[PageSession]) -> Optional[PageSession]:
        if session is None:
            return None
        if not self.connections.check_health(session.flavor):
            # check_health reported the crash, which already dropped the flavor's pages
            self._forget(session)
            return None
        if await session.page.is_closed():
            logger.info(f"{session.flavor}/{session.base_domain}: tab was closed outside of the registry")
            self._forget(session)
            return None
        return session

    async def find_session(self, flavor: str, url: str) -> Optional[PageSession]:
        """
        Session for ``url``: the one registered under its base domain, else the tab that was
        redirected onto that base domain.
        """
        owner = self.owner_key(flavor, url)
        return await self._alive(self._sessions.get(owner))

    async def has_page(self, flavor: str, url: str) -> bool:
        return await self.find_session(flavor, url) is not None

    # ------------------------------------------------------------------ create / reuse

    async def get_or_create_page(self, flavor: str, url: str,
                                 timeout_ms: int = NAVIGATION_TIMEOUT_MS) -> PageSession:
        """
        Reuse or open the page for ``url`` and make sure it shows ``url``.

        Navigates only when the page is not already on exactly this URL. A navigation
        timeout leaves the session registered so a retry can reuse it.

        Raises:
            NavigationTimeoutError: Navigation did not finish within ``timeout_ms``
            BrowserUnavailableError: No browser of this flavor could be reached
        """
        key = page_key(flavor, url)
        session = await self.find_session(flavor, url)

        if session is None:
            browser = await self.connections.ensure_connected(flavor)
            # Connecting may have adopted a tab that is already on this domain
            session = await self._alive(self._sessions.get(key))

        if session is None:
            page = await browser.new_page()
            session = PageSession(flavor=flavor, base_domain=key[1], page=page)
            self._sessions[key] = session
            logger.info(f"{flavor}/{key[1]}: opened new tab")
        else:
            self._set_url(session, await session.page.current_url())
            if session.current_url == url:
                session.touch()
                logger.debug(f"{flavor}/{key[1]}: reusing tab already on {url}")
                return session

        await self.navigate(session, url, timeout_ms)
        return session

    async def navigate(self, session: PageSession, url: str, timeout_ms: int = NAVIGATION_TIMEOUT_MS) -> str:
        """Navigate a registered session and re-classify it."""
        session.touch()
        try:
            landed = await session.page.navigate(url, timeout_ms)
        except NavigationTimeoutError:
            logger.warning(f"{session.flavor}/{session.base_domain}: navigation to {url} timed out; tab kept")
            raise
        self._set_url(session, landed or url)
        session.classify(url, session.current_url)
        return session.current_url

    async def refresh(self, session: PageSession) -> str:
        """Sync the session with what the tab shows now (after clicks and typing)."""
        current = await session.page.current_url()
        if current and current != session.current_url:
            self._set_url(session, current)
            session.classify(current)
        session.touch()
        return session.current_url

    async def adopt_existing_pages(self, flavor: str, browser: BrowserSession) -> None:
        """Register tabs that were already open when we (re)connected."""
        try:
            pages = await browser.pages()
            for page in pages:
                url = await page.current_url()
                if not url or url.startswith(SKIPPED_URL_PREFIXES) or not get_hostname(url):
                    continue
                key = (flavor, base_domain_of_url(url))
                if key in self._sessions:
                    continue
                session = PageSession(flavor=flavor, base_domain=key[1], page=page, current_url=url)
                session.classify(url)
                self._sessions[key] = session
                logger.info(f"{flavor}/{key[1]}: adopted existing tab {url}")
        except Exception as e:
            logger.warning(f"Could not list existing {flavor} tabs: {e}")

    # ------------------------------------------------------------------ close

    async def close_page(self, flavor: str, url: str, force: bool = False) -> bool:
        """
        Close the page for ``url``.

        Returns False without closing when there is no page, or when the page is part of an
        authentication flow and ``force`` is not set. ``force`` is meant for shutdown only.
        """
        session = await self.find_session(flavor, url)
        if session is None:
            return False
        if session.is_auth_flow and not force:
            logger.info(f"{flavor}/{session.base_domain}: refusing to close tab during authentication")
            return False
        await self._close_session(session)
        return True

    async def _close_session(self, session: PageSession) -> None:
        self._forget(session)
        await session.page.close()
        logger.info(f"{session.flavor}/{session.base_domain}: closed tab")

    async def close_all(self) -> None:
        """Force-close every page; used on shutdown."""
        for session in list(self._sessions.values()):
            try:
                await self._close_session(session)
            except Exception as e:
                logger.warning(f"{session.flavor}/{session.base_domain}: close failed during shutdown: {e}")

    def invalidate_flavor(self, flavor: str) -> None:
        """Forget every page of ``flavor``; their handles died with the connection."""
        dropped = [s for s in self._sessions.values() if s.flavor == flavor]
        for session in dropped:
            self._forget(session)
        if dropped:
            logger.info(f"{flavor}: invalidated {len(dropped)} page(s)")


__all__ = [
    "AuthState",
    "PageSession",
    "PageRegistry",
    "page_key",
]

"""
Process-scoped engine state with an explicit lifecycle.

The server creates one BrowserContext, calls ``init()`` before serving and ``shutdown()``
on exit. Tools receive the context as an argument (``ctx=``) and fall back to the process
context from ``get_context()``; tests build their own context around a fake connector.

Usage:
    from mcp_browser_fetch.context import BrowserContext

    ctx = BrowserContext(connector=FakeConnector()).init()
    ...
    await ctx.shutdown()
"""

from dataclasses import dataclass, field
from typing import Optional

from .browser.base import Connector
from .browser.connection import ConnectionManager
from .config.environment import get_env_config
from .registry import PageRegistry

import logging
logger = logging.getLogger(__name__)


@dataclass
class BrowserContext:
    """
    Attributes:
        config: Process settings (see config.environment.get_env_config)
        connector: Browser library adapter; SeleniumConnector when left unset
        browser_configs: Optional per-flavor overrides of host, port, executable, profile dir
        connections: ConnectionManager, created by init()
        registry: PageRegistry, created by init()
    """

    config: dict = field(default_factory=get_env_config)
    connector: Optional[Connector] = None
    browser_configs: dict = field(default_factory=dict)
    connections: Optional[ConnectionManager] = None
    registry: Optional[PageRegistry] = None

    def is_initialized(self) -> bool:
        return self.connections is not None and self.registry is not None

    def init(self) -> "BrowserContext":
        """Wire the connection manager and the page registry together. Idempotent."""
        if self.connector is None:
            from .browser.driver import SeleniumConnector
            self.connector = SeleniumConnector()
        if self.connections is None:
            self.connections = ConnectionManager(self.connector, self.config, self.browser_configs)
        if self.registry is None:
            self.registry = PageRegistry(self.connections)
        return self

    def default_browser(self) -> str:
        return self.config.get("default_browser", "chrome")

    async def shutdown(self) -> None:
        """Force-close every page (auth flows included), then every connection."""
        if self.registry is not None:
            await self.registry.close_all()
        if self.connections is not None:
            await self.connections.close_all()
        logger.info("Browser context shut down")


# ============================================================================
# Process Context
# ============================================================================

_global_context: Optional[BrowserContext] = None


def get_context() -> BrowserContext:
    """
    Get or create the process-wide, initialized browser context.

    Returns:
        The global BrowserContext instance
    """
    global _global_context

    if _global_context is None:
        _global_context = BrowserContext().init()
    return _global_context


def set_context(ctx: Optional[BrowserContext]) -> None:
    """Install ``ctx`` as the process context (the server does this at startup)."""
    global _global_context
    _global_context = ctx


def reset_context() -> None:
    """Drop the process context without closing anything. Meant for tests."""
    set_context(None)


__all__ = [
    "BrowserContext",
    "get_context",
    "set_context",
    "reset_context",
]

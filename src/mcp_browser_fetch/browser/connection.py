"""
Connection Manager: one remote-debugging connection per browser flavor.

State machine per flavor::

    DISCONNECTED -> CONNECTING -> CONNECTED -> {CRASHED, CLOSED} -> DISCONNECTED
                    CONNECTING -> DISCONNECTED   (probe window exhausted / attach failed)

``ensure_connected`` is idempotent. Concurrent callers for the same flavor share one in-flight
connect task: the first caller starts it, the others await the same result.
"""

import enum
import time
import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional

from ..config.environment import get_browser_config, get_env_config, normalize_flavor
from ..errors import BrowserToolError, BrowserUnavailableError
from .base import BrowserSession, Connector

import logging
logger = logging.getLogger(__name__)


class ConnectionState(enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CRASHED = "crashed"
    CLOSED = "closed"


_TRANSITIONS = {
    ConnectionState.DISCONNECTED: {ConnectionState.CONNECTING},
    ConnectionState.CONNECTING: {ConnectionState.CONNECTED, ConnectionState.DISCONNECTED},
    ConnectionState.CONNECTED: {ConnectionState.CRASHED, ConnectionState.CLOSED},
    ConnectionState.CRASHED: {ConnectionState.DISCONNECTED},
    ConnectionState.CLOSED: {ConnectionState.DISCONNECTED},
}


@dataclass
class BrowserConnection:
    """Connection bookkeeping of one flavor. The session never leaves the manager."""

    flavor: str
    state: ConnectionState = ConnectionState.DISCONNECTED
    session: Optional[BrowserSession] = None
    last_activity: float = 0.0
    connect_task: Optional[asyncio.Future] = field(default=None, repr=False)

    def transition(self, new_state: ConnectionState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"{self.flavor}: invalid connection transition {self.state.value} -> {new_state.value}")
        logger.debug(f"{self.flavor}: {self.state.value} -> {new_state.value}")
        self.state = new_state

    def clear_connect_task(self, task: asyncio.Future) -> None:
        if self.connect_task is task:
            self.connect_task = None


CrashListener = Callable[[str], None]
ConnectListener = Callable[[str, BrowserSession], Awaitable[None]]


class ConnectionManager:
    """
    Owns every BrowserConnection.

    Args:
        connector: Library adapter used to probe, launch and attach (SeleniumConnector in production)
        config: Process settings as returned by get_env_config()
        browser_configs: Optional per-flavor overrides of get_browser_config()
    """

    def __init__(self, connector: Connector, config: Optional[dict] = None,
                 browser_configs: Optional[Dict[str, dict]] = None):
        self.connector = connector
        self.config = config if config is not None else get_env_config()
        self._browser_configs = dict(browser_configs or {})
        self._connections: Dict[str, BrowserConnection] = {}
        self._crash_listeners: List[CrashListener] = []
        self._connect_listeners: List[ConnectListener] = []

    # ------------------------------------------------------------------ listeners

    def add_crash_listener(self, callback: CrashListener) -> None:
        self._crash_listeners.append(callback)

    def add_connect_listener(self, callback: ConnectListener) -> None:
        self._connect_listeners.append(callback)

    # ------------------------------------------------------------------ state

    def _connection(self, flavor: str) -> BrowserConnection:
        flavor = normalize_flavor(flavor)
        conn = self._connections.get(flavor)
        if conn is None:
            conn = self._connections[flavor] = BrowserConnection(flavor=flavor)
        return conn

    def browser_config(self, flavor: str) -> dict:
        cfg = dict(get_browser_config(flavor))
        cfg.update(self._browser_configs.get(flavor, {}))
        cfg.setdefault("headless", self.config.get("headless", False))
        cfg.setdefault("launch_wait_secs", self.config.get("launch_wait_secs", 20.0))
        return cfg

    def state(self, flavor: str) -> ConnectionState:
        return self._connection(flavor).state

    def last_activity(self, flavor: str) -> float:
        return self._connection(flavor).last_activity

    def check_health(self, flavor: str) -> bool:
        """True when connected; a dead session found here is reported as a crash."""
        conn = self._connection(flavor)
        if conn.state is not ConnectionState.CONNECTED:
            return False
        if conn.session is not None and conn.session.is_connected():
            return True
        self.report_crash(flavor)
        return False

    async def is_available(self, flavor: str) -> bool:
        """True when connected or when a browser of this flavor answers its DevTools probe."""
        if self.check_health(flavor):
            return True
        return await self.connector.probe(flavor, self.browser_config(flavor))

    # ------------------------------------------------------------------ connect

    async def ensure_connected(self, flavor: str) -> BrowserSession:
        """
        Return the live session of ``flavor``, connecting first when needed.

        Raises:
            BrowserUnavailableError: No browser found within the probe window
        """
        conn = self._connection(flavor)

        if self.check_health(conn.flavor):
            conn.last_activity = time.monotonic()
            return conn.session

        if conn.state is ConnectionState.CRASHED or conn.state is ConnectionState.CLOSED:
            conn.transition(ConnectionState.DISCONNECTED)

        if conn.connect_task is None:
            task = asyncio.ensure_future(self._connect(conn))
            conn.connect_task = task
            task.add_done_callback(lambda t, c=conn: c.clear_connect_task(t))

        # shield: a cancelled caller must not cancel the connect other callers wait for
        return await asyncio.shield(conn.connect_task)

    async def _probe_until(self, flavor: str, cfg: dict, window_secs: float) -> bool:
        deadline = time.monotonic() + max(0.0, window_secs)
        interval = self.config.get("probe_interval_secs", 0.25)
        while True:
            if await self.connector.probe(flavor, cfg):
                return True
            if time.monotonic() >= deadline:
                return False
            await asyncio.sleep(interval)

    async def _connect(self, conn: BrowserConnection) -> BrowserSession:
        flavor = conn.flavor
        cfg = self.browser_config(flavor)
        conn.transition(ConnectionState.CONNECTING)
        try:
            found = await self.connector.probe(flavor, cfg)
            if not found and self.config.get("autolaunch"):
                logger.info(f"No {flavor} on {cfg['host']}:{cfg['port']}; launching one")
                found = await self.connector.launch(flavor, cfg)
            if not found:
                found = await self._probe_until(flavor, cfg, self.config.get("probe_window_secs", 5.0))
            if not found:
                raise BrowserUnavailableError(
                    f"No running {flavor} with remote debugging found on {cfg['host']}:{cfg['port']}",
                    flavor=flavor,
                )
            try:
                session = await self.connector.connect(flavor, cfg)
            except BrowserToolError:
                raise
            except Exception as e:
                raise BrowserUnavailableError(f"Could not attach to {flavor}: {e}", flavor=flavor) from e
        except BaseException:
            conn.transition(ConnectionState.DISCONNECTED)
            raise

        conn.session = session
        conn.last_activity = time.monotonic()
        conn.transition(ConnectionState.CONNECTED)
        logger.info(f"Connected to {flavor} on {cfg['host']}:{cfg['port']}")

        for listener in self._connect_listeners:
            await listener(flavor, session)
        return session

    # ------------------------------------------------------------------ teardown

    def report_crash(self, flavor: str) -> None:
        """
        Record that the connection of ``flavor`` dropped mid-operation.

        Pages of that flavor are invalidated; the next ensure_connected reconnects.
        """
        conn = self._connection(flavor)
        if conn.state is not ConnectionState.CONNECTED:
            return
        logger.warning(f"Connection to {flavor} lost; invalidating its pages")
        conn.transition(ConnectionState.CRASHED)
        conn.session = None
        for listener in self._crash_listeners:
            listener(conn.flavor)

    async def close_all(self) -> None:
        """Release every session. Safe to call repeatedly."""
        for conn in list(self._connections.values()):
            task = conn.connect_task
            if task is not None and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    logger.debug(f"Cancelled pending connect to {conn.flavor}")
                except BrowserToolError as e:
                    logger.debug(f"Pending connect to {conn.flavor} failed during close: {e}")

            if conn.state is ConnectionState.CONNECTED:
                conn.transition(ConnectionState.CLOSED)
                session, conn.session = conn.session, None
                try:
                    if session is not None:
                        await session.close()
                    logger.info(f"Closed connection to {conn.flavor}")
                except Exception as e:
                    logger.warning(f"Closing the {conn.flavor} connection failed: {e}")
                finally:
                    conn.transition(ConnectionState.DISCONNECTED)

            if conn.state in (ConnectionState.CLOSED, ConnectionState.CRASHED):
                conn.transition(ConnectionState.DISCONNECTED)


__all__ = [
    "ConnectionState",
    "BrowserConnection",
    "ConnectionManager",
]

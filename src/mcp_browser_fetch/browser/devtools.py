"""DevTools HTTP endpoint probing."""

import json
import socket
import urllib.error
import urllib.request
from typing import Optional

import logging
logger = logging.getLogger(__name__)


def _is_port_open(host: str, port: int, timeout: float = 0.25) -> bool:
    """Cheap TCP check before issuing an HTTP request."""
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False


def get_version_info(host: str, port: int, timeout: float = 1.5) -> Optional[dict]:
    """
    Read ``/json/version`` of a browser started with --remote-debugging-port.

    Returns:
        The decoded JSON (Browser, Protocol-Version, webSocketDebuggerUrl, ...) or None
    """
    try:
        with urllib.request.urlopen(f"http://{host}:{port}/json/version", timeout=timeout) as resp:
            if resp.status != 200:
                return None
            return json.load(resp)
    except (urllib.error.URLError, OSError, ValueError):
        return None


def is_debugger_listening(host: str, port: int, timeout: float = 1.5) -> bool:
    """Check if a DevTools debugger is listening on a port."""
    if not _is_port_open(host, port):
        return False
    info = get_version_info(host, port, timeout=timeout)
    if info is None:
        return False
    logger.debug(f"DevTools endpoint {host}:{port} answered: {info.get('Browser')}")
    return True


__all__ = [
    "get_version_info",
    "is_debugger_listening",
]

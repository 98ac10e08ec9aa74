"""Environment configuration for the browser connection and the tool layer."""

import os

from .. import constants
from .paths import default_user_data_dir


def _env_str(name: str, default=None):
    value = (os.getenv(name) or "").strip()
    return value or default


def _env_int(name: str, default: int) -> int:
    value = (os.getenv(name) or "").strip()
    return int(value) if value.lstrip("-").isdigit() else default


def _env_float(name: str, default: float) -> float:
    value = (os.getenv(name) or "").strip()
    try:
        return float(value) if value else default
    except ValueError:
        return default


def _env_flag(name: str, default: bool) -> bool:
    value = (os.getenv(name) or "").strip()
    if not value:
        return default
    return value not in ("0", "false", "False", "no", "No")


def normalize_flavor(flavor) -> str:
    """
    Normalize a browser flavor name.

    Raises:
        ValueError: If the flavor is not one of SUPPORTED_BROWSERS
    """
    name = str(flavor or "").strip().lower()
    if name not in constants.SUPPORTED_BROWSERS:
        raise ValueError(
            f"Unsupported browser: {flavor!r}. Expected one of: {', '.join(constants.SUPPORTED_BROWSERS)}"
        )
    return name


def get_env_config() -> dict:
    """
    Read process-wide settings from the environment.

    Optional:   MCP_BROWSER_DEFAULT (chrome | edge, default chrome)
                MCP_BROWSER_AUTOLAUNCH (default 1)
                MCP_BROWSER_PROBE_SECS, MCP_BROWSER_LAUNCH_WAIT_SECS
                MCP_BROWSER_NAV_TIMEOUT_MS, MCP_BROWSER_STABILITY_WAIT_MS
                MCP_BROWSER_MANUAL_AUTH_SECS
                MCP_DEFAULT_FETCH_URL (or DEFAULT_FETCH_URL)
                MCP_HEADLESS (default 0)
    """
    default_browser = _env_str("MCP_BROWSER_DEFAULT", constants.DEFAULT_BROWSER).lower()
    if default_browser not in constants.SUPPORTED_BROWSERS:
        default_browser = "chrome"

    return {
        "default_browser": default_browser,
        "autolaunch": _env_flag("MCP_BROWSER_AUTOLAUNCH", constants.AUTOLAUNCH),
        "probe_window_secs": _env_float("MCP_BROWSER_PROBE_SECS", constants.PROBE_WINDOW_SECS),
        "probe_interval_secs": constants.PROBE_INTERVAL_SECS,
        "launch_wait_secs": _env_float("MCP_BROWSER_LAUNCH_WAIT_SECS", constants.LAUNCH_WAIT_SECS),
        "navigation_timeout_ms": _env_int("MCP_BROWSER_NAV_TIMEOUT_MS", constants.NAVIGATION_TIMEOUT_MS),
        "stability_wait_ms": _env_int("MCP_BROWSER_STABILITY_WAIT_MS", constants.STABILITY_WAIT_MS),
        "auto_auth_wait_secs": constants.AUTO_AUTH_WAIT_SECS,
        "auto_auth_poll_secs": constants.AUTO_AUTH_POLL_SECS,
        "manual_auth_wait_secs": _env_float("MCP_BROWSER_MANUAL_AUTH_SECS", constants.MANUAL_AUTH_WAIT_SECS),
        "manual_auth_poll_secs": constants.MANUAL_AUTH_POLL_SECS,
        "default_fetch_url": _env_str("MCP_DEFAULT_FETCH_URL") or _env_str("DEFAULT_FETCH_URL") or constants.DEFAULT_FETCH_URL,
        "headless": _env_flag("MCP_HEADLESS", False),
    }


def get_browser_config(flavor: str) -> dict:
    """
    Read the connection settings of one browser flavor.

    For flavor "chrome" the variables are prefixed CHROME_, for "edge" EDGE_:
        *_REMOTE_DEBUG_HOST (default 127.0.0.1)
        *_REMOTE_DEBUG_PORT (default 9222 for chrome, 9223 for edge)
        *_PATH              (browser executable, resolved per platform when unset)
        *_USER_DATA_DIR     (profile used when we launch the browser ourselves)
    """
    flavor = normalize_flavor(flavor)
    prefix = flavor.upper()

    return {
        "flavor": flavor,
        "host": _env_str(f"{prefix}_REMOTE_DEBUG_HOST", "127.0.0.1"),
        "port": _env_int(f"{prefix}_REMOTE_DEBUG_PORT", constants.DEFAULT_DEBUG_PORTS[flavor]),
        "executable_path": _env_str(f"{prefix}_PATH"),
        "user_data_dir": _env_str(f"{prefix}_USER_DATA_DIR") or default_user_data_dir(flavor),
    }


__all__ = [
    "normalize_flavor",
    "get_env_config",
    "get_browser_config",
]

"""
Global constants and configuration defaults.
No dependencies - safe to import from anywhere.

Values are read from the environment once at import time. Tests and callers that
need different values pass an explicit config dict instead of patching these.
"""

import os


# ============================================================================
# Browser Flavors
# ============================================================================

SUPPORTED_BROWSERS = ("chrome", "edge")
"""Browser flavors that can be attached to over remote debugging."""

DEFAULT_BROWSER = (os.getenv("MCP_BROWSER_DEFAULT") or "chrome").strip().lower()
"""Flavor used when a tool call does not name one."""

DEFAULT_DEBUG_PORTS = {
    "chrome": 9222,
    "edge": 9223,
}
"""Remote debugging port per flavor unless overridden by *_REMOTE_DEBUG_PORT."""


# ============================================================================
# Connection Configuration
# ============================================================================

PROBE_WINDOW_SECS = float(os.getenv("MCP_BROWSER_PROBE_SECS", "5"))
"""How long ensure_connected keeps probing the DevTools endpoint before giving up."""

PROBE_INTERVAL_SECS = 0.25
"""Delay between two DevTools probes."""

LAUNCH_WAIT_SECS = float(os.getenv("MCP_BROWSER_LAUNCH_WAIT_SECS", "20"))
"""How long to wait for a freshly launched browser to expose DevTools."""

AUTOLAUNCH = os.getenv("MCP_BROWSER_AUTOLAUNCH", "1").strip() not in ("0", "false", "False", "no")
"""Start the browser ourselves when nothing answers on the debugging port."""


# ============================================================================
# Page Timing Configuration
# ============================================================================

NAVIGATION_TIMEOUT_MS = int(os.getenv("MCP_BROWSER_NAV_TIMEOUT_MS", "30000"))
"""Upper bound for a single navigation."""

ELEMENT_TIMEOUT_MS = 30000
"""Default wait for an element to become visible."""

STABILITY_WAIT_MS = int(os.getenv("MCP_BROWSER_STABILITY_WAIT_MS", "1500"))
"""Settle time after a click or typing before the DOM is read back."""

POST_LOAD_WAIT_MS = 1000
"""Default extra wait after navigation for client-side rendering."""

TYPE_DELAY_MS = 50
"""Default delay between two keystrokes."""

INTERACTIVE_ELEMENTS_LIMIT = 50
"""Default number of entries returned by get_interactive_elements."""


# ============================================================================
# Authentication Waits
# ============================================================================

AUTO_AUTH_WAIT_SECS = 5.0
"""How long to wait for an SSO redirect to complete on its own."""

AUTO_AUTH_POLL_SECS = 0.5

MANUAL_AUTH_WAIT_SECS = float(os.getenv("MCP_BROWSER_MANUAL_AUTH_SECS", "600"))
"""How long to wait for the user to finish logging in by hand."""

MANUAL_AUTH_POLL_SECS = 2.0


# ============================================================================
# Misc
# ============================================================================

DEFAULT_FETCH_URL = (os.getenv("MCP_DEFAULT_FETCH_URL") or os.getenv("DEFAULT_FETCH_URL") or "").strip() or None
"""URL fetched when fetch_webpage is called without one."""

SKIPPED_URL_PREFIXES = ("about:blank", "chrome://", "edge://", "chrome-extension://", "devtools://")
"""Tabs with these URLs are never adopted into the page registry."""


__all__ = [
    "SUPPORTED_BROWSERS",
    "DEFAULT_BROWSER",
    "DEFAULT_DEBUG_PORTS",
    "PROBE_WINDOW_SECS",
    "PROBE_INTERVAL_SECS",
    "LAUNCH_WAIT_SECS",
    "AUTOLAUNCH",
    "NAVIGATION_TIMEOUT_MS",
    "ELEMENT_TIMEOUT_MS",
    "STABILITY_WAIT_MS",
    "POST_LOAD_WAIT_MS",
    "TYPE_DELAY_MS",
    "INTERACTIVE_ELEMENTS_LIMIT",
    "AUTO_AUTH_WAIT_SECS",
    "AUTO_AUTH_POLL_SECS",
    "MANUAL_AUTH_WAIT_SECS",
    "MANUAL_AUTH_POLL_SECS",
    "DEFAULT_FETCH_URL",
    "SKIPPED_URL_PREFIXES",
]

"""Path utilities for browser profiles and log files."""

import os
import tempfile
from pathlib import Path


def default_user_data_dir(flavor: str) -> str:
    """
    Profile directory used when we launch the browser ourselves.

    Remote debugging is refused on a browser's default profile, so every flavor
    gets its own directory under ~/.mcp_browser_fetch.
    """
    name = "EdgeDebug" if flavor == "edge" else "ChromeDebug"
    return str(Path.home() / ".mcp_browser_fetch" / name)


def launcher_log_dir() -> Path:
    """Directory for browser launch logs; created on demand."""
    log_dir = Path(tempfile.gettempdir()) / "mcp_browser_fetch_logs"
    log_dir.mkdir(exist_ok=True)
    return log_dir


def driver_log_path(flavor: str) -> str:
    """Get the path to the chromedriver / msedgedriver log file of this process."""
    return str(launcher_log_dir() / f"{flavor}driver_{os.getpid()}.log")


def server_log_path() -> str:
    """Log file of the MCP server; MCP_BROWSER_LOG_FILE overrides the temp dir default."""
    return os.getenv("MCP_BROWSER_LOG_FILE") or os.path.join(tempfile.gettempdir(), "mcp_browser_fetch.log")


__all__ = [
    "default_user_data_dir",
    "launcher_log_dir",
    "driver_log_path",
    "server_log_path",
]

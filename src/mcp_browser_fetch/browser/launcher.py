"""Browser executable resolution and launch with remote debugging enabled."""

import os
import time
import shutil
import platform
import subprocess
from pathlib import Path
from typing import Optional

import psutil

from ..config.paths import launcher_log_dir
from ..errors import BrowserUnavailableError
from .devtools import is_debugger_listening

import logging
logger = logging.getLogger(__name__)


PROCESS_NAME_HINTS = {
    "chrome": ("chrome", "chromium"),
    "edge": ("msedge", "microsoft edge"),
}


def _platform_candidates(flavor: str) -> list[str]:
    system = platform.system()
    if flavor == "edge":
        if system == "Windows":
            return [
                r"C:\Program Files (x86)\Microsoft\Edge\Application\msedge.exe",
                r"C:\Program Files\Microsoft\Edge\Application\msedge.exe",
                "msedge",
            ]
        if system == "Darwin":
            return ["/Applications/Microsoft Edge.app/Contents/MacOS/Microsoft Edge"]
        return ["microsoft-edge", "microsoft-edge-stable", "msedge"]

    if system == "Windows":
        local = os.environ.get("LOCALAPPDATA", "")
        candidates = [
            r"C:\Program Files\Google\Chrome\Application\chrome.exe",
            r"C:\Program Files (x86)\Google\Chrome\Application\chrome.exe",
        ]
        if local:
            candidates.append(str(Path(local) / "Google" / "Chrome" / "Application" / "chrome.exe"))
        return candidates + ["chrome"]
    if system == "Darwin":
        return [
            "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
            "/Applications/Chromium.app/Contents/MacOS/Chromium",
        ]
    return ["google-chrome", "google-chrome-stable", "chromium", "chromium-browser", "chrome"]


def resolve_browser_executable(flavor: str, config: dict) -> Optional[str]:
    """
    Resolve the executable of a browser flavor.

    The configured ``executable_path`` wins; otherwise the usual install locations of the
    current platform are tried, then ``PATH``.

    Returns:
        The path, or None when nothing was found
    """
    configured = config.get("executable_path")
    if configured:
        return configured if (os.path.isfile(configured) or shutil.which(configured)) else None

    for candidate in _platform_candidates(flavor):
        if os.path.isfile(candidate):
            return candidate
        found = shutil.which(candidate)
        if found:
            return found
    return None


def build_browser_command(binary: str, port: int, user_data_dir: str, headless: bool = False) -> list[str]:
    """
    Build command-line arguments for a debuggable browser.

    Args:
        binary: Path to the browser executable
        port: Remote debugging port
        user_data_dir: Dedicated profile directory
        headless: Start without a visible window

    Returns:
        list[str]: Command-line arguments
    """
    cmd = [
        binary,
        f"--remote-debugging-port={port}",
        f"--user-data-dir={user_data_dir}",
        "--no-first-run",
        "--no-default-browser-check",
        "--disable-features=ProcessPerSite",
        "--disable-dev-shm-usage",
    ]
    if headless:
        cmd.append("--headless=new")
    cmd.append("about:blank")
    return cmd


def launch_browser_process(cmd: list[str], flavor: str, port: int) -> subprocess.Popen:
    """
    Start the browser detached from our stdio.

    stdout belongs to the MCP protocol, so browser output goes to a log file in the temp dir.
    """
    log_path = launcher_log_dir() / f"{flavor}_debug_{port}.log"
    log_file = open(log_path, "ab")
    try:
        kwargs = dict(stdin=subprocess.DEVNULL, stdout=log_file, stderr=log_file)
        if platform.system() == "Windows":
            kwargs["creationflags"] = subprocess.CREATE_NO_WINDOW
        else:
            kwargs["start_new_session"] = True
        proc = subprocess.Popen(cmd, **kwargs)
    finally:
        log_file.close()

    logger.info(f"Launched {flavor} (pid {proc.pid}) with remote debugging on port {port}; log: {log_path}")
    return proc


def _name_matches(flavor: str, name: Optional[str]) -> bool:
    name = (name or "").lower()
    return any(hint in name for hint in PROCESS_NAME_HINTS.get(flavor, ()))


def find_browser_by_port(flavor: str, port: int) -> Optional[psutil.Process]:
    """
    Find the browser process listening on the specified debug port.

    Returns:
        Optional[psutil.Process]: The process if found, None otherwise
    """
    target = f"--remote-debugging-port={port}"
    for p in psutil.process_iter(["name", "cmdline"]):
        try:
            if not _name_matches(flavor, p.info["name"]):
                continue
            cmd = p.info.get("cmdline") or []
            if any(target in (arg or "") for arg in cmd):
                return p
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue
    return None


def is_browser_running_with_userdata(flavor: str, user_data_dir: str) -> bool:
    """Check if a browser process already holds the given user-data-dir."""
    for p in psutil.process_iter(["name", "cmdline"]):
        try:
            if not _name_matches(flavor, p.info["name"]):
                continue
            cmd = p.info.get("cmdline") or []
            if any((arg or "").startswith("--user-data-dir=") and arg.split("=", 1)[1].strip('"') == user_data_dir
                   for arg in cmd):
                return True
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue
    return False


def wait_for_devtools_ready(flavor: str, host: str, port: int, user_data_dir: str,
                            timeout_secs: float, interval_secs: float = 0.25) -> None:
    """
    Block until the DevTools endpoint of a freshly launched browser answers.

    Raises:
        BrowserUnavailableError: With a diagnostic message when it never appears
    """
    deadline = time.monotonic() + timeout_secs
    while time.monotonic() < deadline:
        if is_debugger_listening(host, port):
            proc = find_browser_by_port(flavor, port)
            if proc is not None:
                logger.debug(f"{flavor} DevTools ready on {host}:{port} (pid {proc.pid})")
            return
        time.sleep(interval_secs)

    if is_browser_running_with_userdata(flavor, user_data_dir):
        raise BrowserUnavailableError(
            f"{flavor} is running with profile {user_data_dir} but DevTools did not appear on port {port}. "
            "Another instance started without --remote-debugging-port is probably holding the profile.",
            flavor=flavor,
            next_steps=[
                f"Quit every {flavor} window that uses {user_data_dir} and retry",
                f"Or start {flavor} yourself with --remote-debugging-port={port}",
            ],
        )
    raise BrowserUnavailableError(
        f"Failed to start {flavor} with remote debugging on port {port}.",
        flavor=flavor,
    )


def launch_browser(flavor: str, browser_config: dict, headless: bool, wait_secs: float) -> Optional[subprocess.Popen]:
    """
    Launch a debuggable browser for ``flavor`` and wait for its DevTools endpoint.

    Returns:
        The process, or None when no executable could be found
    """
    binary = resolve_browser_executable(flavor, browser_config)
    if not binary:
        logger.warning(f"No {flavor} executable found; set {flavor.upper()}_PATH to launch it automatically")
        return None

    user_data_dir = browser_config["user_data_dir"]
    Path(user_data_dir).mkdir(parents=True, exist_ok=True)

    cmd = build_browser_command(binary, browser_config["port"], user_data_dir, headless=headless)
    proc = launch_browser_process(cmd, flavor, browser_config["port"])
    wait_for_devtools_ready(flavor, browser_config["host"], browser_config["port"], user_data_dir, wait_secs)
    return proc


__all__ = [
    "resolve_browser_executable",
    "build_browser_command",
    "launch_browser_process",
    "find_browser_by_port",
    "is_browser_running_with_userdata",
    "wait_for_devtools_ready",
    "launch_browser",
]

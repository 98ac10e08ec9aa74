"""Tests for browser executable resolution, launch commands and disconnect detection."""

import unittest
from unittest.mock import MagicMock, patch

from selenium.common.exceptions import NoSuchWindowException, WebDriverException

from mcp_browser_fetch.browser import launcher
from mcp_browser_fetch.browser.driver import _is_disconnect
from mcp_browser_fetch.browser.launcher import (
    build_browser_command,
    find_browser_by_port,
    is_browser_running_with_userdata,
    launch_browser,
    resolve_browser_executable,
    wait_for_devtools_ready,
)
from mcp_browser_fetch.errors import BrowserUnavailableError


def fake_process(name, cmdline, pid=1234):
    proc = MagicMock()
    proc.pid = pid
    proc.info = {"name": name, "cmdline": cmdline}
    return proc


class TestBuildCommand(unittest.TestCase):

    def test_debug_port_and_profile(self):
        cmd = build_browser_command("/usr/bin/google-chrome", 9222, "/tmp/profile")

        self.assertEqual(cmd[0], "/usr/bin/google-chrome")
        self.assertIn("--remote-debugging-port=9222", cmd)
        self.assertIn("--user-data-dir=/tmp/profile", cmd)
        self.assertNotIn("--headless=new", cmd)
        self.assertEqual(cmd[-1], "about:blank")

    def test_headless(self):
        cmd = build_browser_command("msedge", 9223, "/tmp/p", headless=True)
        self.assertIn("--headless=new", cmd)


class TestResolveExecutable(unittest.TestCase):

    @patch("mcp_browser_fetch.browser.launcher.os.path.isfile", return_value=True)
    def test_configured_path_wins(self, _isfile):
        path = resolve_browser_executable("chrome", {"executable_path": "/opt/chrome/chrome"})
        self.assertEqual(path, "/opt/chrome/chrome")

    @patch("mcp_browser_fetch.browser.launcher.shutil.which", return_value=None)
    @patch("mcp_browser_fetch.browser.launcher.os.path.isfile", return_value=False)
    def test_missing_configured_path(self, _isfile, _which):
        self.assertIsNone(resolve_browser_executable("chrome", {"executable_path": "/nope/chrome"}))

    @patch("mcp_browser_fetch.browser.launcher.platform.system", return_value="Linux")
    @patch("mcp_browser_fetch.browser.launcher.os.path.isfile", return_value=False)
    def test_found_on_path(self, _isfile, _system):
        with patch("mcp_browser_fetch.browser.launcher.shutil.which",
                   side_effect=lambda name: "/usr/bin/microsoft-edge" if name == "microsoft-edge" else None):
            self.assertEqual(resolve_browser_executable("edge", {}), "/usr/bin/microsoft-edge")

    def test_launch_without_executable(self):
        with patch.object(launcher, "resolve_browser_executable", return_value=None):
            self.assertIsNone(launch_browser("chrome", {"port": 9222}, headless=False, wait_secs=1))


class TestProcessLookup(unittest.TestCase):

    def test_find_by_port(self):
        procs = [
            fake_process("bash", ["bash"]),
            fake_process("chrome", ["chrome", "--remote-debugging-port=9222"], pid=42),
        ]
        with patch("mcp_browser_fetch.browser.launcher.psutil.process_iter", return_value=procs):
            self.assertEqual(find_browser_by_port("chrome", 9222).pid, 42)
            self.assertIsNone(find_browser_by_port("edge", 9222))

    def test_profile_in_use(self):
        procs = [fake_process("msedge", ["msedge", "--user-data-dir=/tmp/edge"])]
        with patch("mcp_browser_fetch.browser.launcher.psutil.process_iter", return_value=procs):
            self.assertTrue(is_browser_running_with_userdata("edge", "/tmp/edge"))
            self.assertFalse(is_browser_running_with_userdata("edge", "/tmp/other"))

    def test_devtools_never_ready_with_profile_in_use(self):
        with patch.object(launcher, "is_debugger_listening", return_value=False), \
                patch.object(launcher, "is_browser_running_with_userdata", return_value=True):
            with self.assertRaises(BrowserUnavailableError) as cm:
                wait_for_devtools_ready("chrome", "127.0.0.1", 9222, "/tmp/p", timeout_secs=0.05, interval_secs=0.01)

        self.assertIn("DevTools did not appear on port 9222", cm.exception.message)
        self.assertEqual(cm.exception.flavor, "chrome")

    def test_devtools_ready(self):
        with patch.object(launcher, "is_debugger_listening", return_value=True), \
                patch.object(launcher, "find_browser_by_port", return_value=None):
            wait_for_devtools_ready("chrome", "127.0.0.1", 9222, "/tmp/p", timeout_secs=1)


class TestDisconnectDetection(unittest.TestCase):

    def test_markers(self):
        self.assertTrue(_is_disconnect(WebDriverException("chrome not reachable")))
        self.assertTrue(_is_disconnect(WebDriverException("invalid session id")))
        self.assertTrue(_is_disconnect(ConnectionRefusedError()))
        self.assertFalse(_is_disconnect(WebDriverException("element click intercepted")))
        self.assertFalse(_is_disconnect(NoSuchWindowException("no such window")))


if __name__ == "__main__":
    unittest.main()

#region Overview
"""
## mcp-browser-fetch

MCP server that lets a language model browse with the user's own Chrome or Edge: fetch a
page with full JavaScript rendering and the user's logins, click, type, read the current
HTML and list interactive elements.

## How tabs are handled

One tab is kept per browser and base domain (mail.google.com and docs.google.com share the
google.com tab). fetch_webpage reuses the tab and only navigates when the URL differs. The
other tools operate on the tab fetch_webpage opened and fail with "No open page found" when
there is none.

## Logins

When a fetch lands on a login page, the server first waits a few seconds for an SSO redirect
and then for the user to log in by hand in the visible browser window. Such a tab is marked
as an authentication flow for the rest of its life and close_tab leaves it open.

## Connecting to the browser

The server attaches to a browser listening on its remote debugging port (chrome 9222,
edge 9223). When nothing answers and MCP_BROWSER_AUTOLAUNCH is on, the browser is started
with a dedicated profile under ~/.mcp_browser_fetch.
"""
#endregion

#region Imports
import os
import sys
import asyncio
import logging
from typing import Any, Optional

from dotenv import load_dotenv, find_dotenv
import mcp.types as types
from mcp.server import Server
from mcp.server.stdio import stdio_server
#endregion

#region Import from your package __init__.py
import mcp_browser_fetch as MBF
from mcp_browser_fetch.config.paths import server_log_path
from mcp_browser_fetch.context import BrowserContext, get_context, set_context
from mcp_browser_fetch.tools import TOOL_DEFINITIONS, call_tool
#endregion

#region Logger
logger = logging.getLogger(__name__)
#endregion

#region Logging
def configure_logging(level: Optional[str] = None) -> str:
    """
    Log to a file in the temp dir and to stderr. Stdout carries the protocol.

    Environment:
        MCP_BROWSER_LOG_LEVEL (default INFO)
        MCP_BROWSER_LOG_FILE (default <tmp>/mcp_browser_fetch.log)
    """
    level = (level or os.getenv("MCP_BROWSER_LOG_LEVEL") or "INFO").upper()
    log_file = server_log_path()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        handlers=[
            logging.FileHandler(log_file, encoding="utf-8"),
            logging.StreamHandler(sys.stderr),
        ],
    )
    return log_file
#endregion

#region Server Initialization
def create_server(ctx: Optional[BrowserContext] = None) -> Server:
    """Build the MCP server; tool calls run against ``ctx`` (the process context when None)."""
    server = Server("mcp-browser-fetch")

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return list(TOOL_DEFINITIONS)

    # Arguments are checked by the tools so that errors carry next steps
    @server.call_tool(validate_input=False)
    async def handle_call_tool(name: str, arguments: dict[str, Any]) -> types.CallToolResult:
        response = await call_tool(name, arguments, ctx=ctx)
        return response.to_call_tool_result()

    return server
#endregion

#region Entry Point
async def serve() -> None:
    ctx = get_context()
    server = create_server(ctx)
    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())
    finally:
        await ctx.shutdown()
        set_context(None)


def main() -> None:
    load_dotenv(find_dotenv(filename=".env", usecwd=True), override=True)
    log_file = configure_logging()
    logger.info(f"mcp_browser_fetch from: {getattr(MBF, '__file__', '<namespace>')}, logging to {log_file}")
    try:
        asyncio.run(serve())
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting")
#endregion


if __name__ == "__main__":
    main()

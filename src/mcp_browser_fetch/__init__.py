"""
mcp_browser_fetch: browser-backed web fetching and interaction tools for MCP clients.

Run the server with ``mcp-browser-fetch`` or ``python -m mcp_browser_fetch``.
"""

__version__ = "0.3.0"

__all__ = [
    "__version__",
]

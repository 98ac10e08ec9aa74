# mcp_browser_fetch/decorators/__init__.py
#
# Re-exports decorators from their respective modules.

from .envelope import tool_envelope
from .ensure import with_context

__all__ = [
    "tool_envelope",
    "with_context",
]

# mcp_browser_fetch/tools/__init__.py
"""
MCP tool implementations - async functions that return a SuccessResponse or ErrorResponse.

This package contains the tools advertised by the server. Each tool:
- Validates its arguments before touching the browser
- Borrows the domain's page from the PageRegistry under its per-page lock
- Converts every failure into an ErrorResponse (see decorators.tool_envelope)
"""

from .navigation import (
    fetch_webpage,
)

from .interaction import (
    click_element,
    type_text,
    wait_for_element,
)

from .extraction import (
    get_current_html,
    get_interactive_elements,
)

from .browser_management import (
    close_tab,
)

from .definitions import (
    TOOL_DEFINITIONS,
    TOOLS_BY_NAME,
)

from .dispatch import (
    TOOL_HANDLERS,
    call_tool,
)

__all__ = [
    # Navigation
    'fetch_webpage',
    # Interaction
    'click_element',
    'type_text',
    'wait_for_element',
    # Extraction
    'get_current_html',
    'get_interactive_elements',
    # Browser management
    'close_tab',
    # Server wiring
    'TOOL_DEFINITIONS',
    'TOOLS_BY_NAME',
    'TOOL_HANDLERS',
    'call_tool',
]

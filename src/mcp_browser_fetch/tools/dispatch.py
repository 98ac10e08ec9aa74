"""Route a named tool call with its argument bag to the implementation."""

import inspect
from typing import Callable, Dict, Optional

from ..responses import ErrorResponse, ToolResponse
from .browser_management import close_tab
from .definitions import TOOLS_BY_NAME
from .extraction import get_current_html, get_interactive_elements
from .interaction import click_element, type_text, wait_for_element
from .navigation import fetch_webpage

import logging
logger = logging.getLogger(__name__)


TOOL_HANDLERS: Dict[str, Callable] = {
    "fetch_webpage": fetch_webpage,
    "click_element": click_element,
    "type_text": type_text,
    "close_tab": close_tab,
    "get_current_html": get_current_html,
    "get_interactive_elements": get_interactive_elements,
    "wait_for_element": wait_for_element,
}


async def call_tool(name: str, arguments: Optional[dict] = None, ctx=None) -> ToolResponse:
    """
    Validate the argument names of a tool call and run the tool.

    Unknown tools and unknown argument names come back as an ErrorResponse; everything else
    is decided by the tool itself.
    """
    handler = TOOL_HANDLERS.get(name)
    if handler is None:
        return ErrorResponse(
            f"Unknown tool: {name}",
            [f"Use one of: {', '.join(TOOL_HANDLERS)}"],
        )

    arguments = dict(arguments or {})
    allowed = TOOLS_BY_NAME[name].inputSchema["properties"]
    unknown = sorted(set(arguments) - set(allowed))
    if unknown:
        return ErrorResponse(
            f"Unknown parameter(s): {', '.join(unknown)}",
            [f"Valid parameters for {name}: {', '.join(allowed)}"],
        )

    logger.debug(f"call_tool {name} with {sorted(arguments)}")
    result = handler(**arguments, ctx=ctx)
    if inspect.isawaitable(result):
        result = await result
    return result


__all__ = [
    "TOOL_HANDLERS",
    "call_tool",
]

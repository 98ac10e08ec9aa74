"""
Tool descriptors advertised to MCP clients.

Each descriptor carries an input schema (object, explicit ``required``, no additional
properties) and an output schema that is ``oneOf`` the tool's success shape and the shared
error shape.
"""

from typing import Dict, List

from mcp import types

from ..constants import ELEMENT_TIMEOUT_MS, INTERACTIVE_ELEMENTS_LIMIT, POST_LOAD_WAIT_MS, TYPE_DELAY_MS


_NEXT_STEPS = {
    "type": "array",
    "items": {"type": "string"},
    "description": "Suggested next actions",
}

_URL_OF_FETCHED_PAGE = {
    "type": "string",
    "description": "The URL of the page (must match a previously fetched page)",
}

_BROWSER = {
    "type": "string",
    "enum": ["chrome", "edge"],
    "description": "Browser to use; defaults to MCP_BROWSER_DEFAULT (chrome)",
}

_STRIP = {
    "type": "boolean",
    "description": "Remove scripts, styles, comments, hidden elements and noise attributes (about 90% smaller).",
    "default": True,
}

ERROR_SCHEMA = {
    "type": "object",
    "properties": {
        "success": {"const": False},
        "message": {"type": "string", "description": "What went wrong"},
        "nextSteps": _NEXT_STEPS,
    },
    "required": ["success", "message", "nextSteps"],
    "additionalProperties": False,
}


def _input_schema(properties: dict, required: List[str]) -> dict:
    return {
        "type": "object",
        "properties": {**properties, "browser": _BROWSER},
        "required": required,
        "additionalProperties": False,
    }


def _output_schema(properties: dict) -> dict:
    success = {
        "type": "object",
        "properties": {"success": {"const": True}, **properties, "nextSteps": _NEXT_STEPS},
        "required": ["success", *properties, "nextSteps"],
        "additionalProperties": False,
    }
    return {"type": "object", "oneOf": [success, ERROR_SCHEMA]}


_HTML_OR_NULL = {"type": ["string", "null"], "description": "Page HTML if returnHtml was true, null otherwise"}


TOOL_DEFINITIONS: List[types.Tool] = [
    types.Tool(
        name="fetch_webpage",
        title="Fetch Web Page",
        description=(
            "Fetches web pages using a Chrome/Edge browser with full JavaScript rendering and "
            "authentication support. Use it for sites behind login/SSO, anti-bot pages and "
            "JavaScript-heavy applications; it handles simple HTML pages too. One tab is kept per "
            "domain and reused on the next call. Opens the browser for the user to log in when needed."
        ),
        inputSchema=_input_schema(
            {
                "url": {"type": "string", "description": "The URL to fetch"},
                "removeUnnecessaryHTML": _STRIP,
                "postLoadWait": {
                    "type": "number",
                    "description": "Milliseconds to wait after page load for SPAs to render dynamic content.",
                    "default": POST_LOAD_WAIT_MS,
                },
            },
            required=["url"],
        ),
        outputSchema=_output_schema({
            "currentUrl": {"type": "string", "description": "Final URL after any redirects"},
            "html": {"type": "string", "description": "Page HTML content"},
            "isAuthFlow": {"type": "boolean", "description": "The tab is part of a login flow"},
        }),
    ),
    types.Tool(
        name="click_element",
        title="Click Element",
        description=(
            "Clicks an element on a page loaded with fetch_webpage, located by CSS selector or by "
            "its visible text. Returns the page HTML after the click. PREREQUISITE: call "
            "fetch_webpage for the URL first."
        ),
        inputSchema=_input_schema(
            {
                "url": _URL_OF_FETCHED_PAGE,
                "selector": {"type": "string", "description": "CSS selector of the element (e.g. '#submit', 'a[href=\"/next\"]')"},
                "text": {"type": "string", "description": "Visible text of the element, used when no selector is given"},
                "timeout": {"type": "number", "description": "Maximum time to wait for the element in milliseconds", "default": ELEMENT_TIMEOUT_MS},
                "returnHtml": {"type": "boolean", "description": "Wait for the page to settle and return its HTML", "default": True},
                "removeUnnecessaryHTML": _STRIP,
                "postClickWait": {"type": "number", "description": "Milliseconds to wait after the click before reading the HTML", "default": 1000},
            },
            required=["url"],
        ),
        outputSchema=_output_schema({
            "currentUrl": {"type": "string", "description": "URL after the click"},
            "message": {"type": "string", "description": "Success message"},
            "clicked": {"type": "string", "description": "Selector or text of the clicked element"},
            "html": _HTML_OR_NULL,
        }),
    ),
    types.Tool(
        name="type_text",
        title="Type Text",
        description=(
            "Types text into an input field or textarea on a page loaded with fetch_webpage. Use it "
            "to fill forms and search boxes. PREREQUISITE: call fetch_webpage for the URL first."
        ),
        inputSchema=_input_schema(
            {
                "url": _URL_OF_FETCHED_PAGE,
                "selector": {"type": "string", "description": "CSS selector for the input element (e.g. '#username', 'input[name=\"email\"]')"},
                "text": {"type": "string", "description": "Text to type into the field"},
                "clear": {"type": "boolean", "description": "Whether to clear existing text first", "default": True},
                "typeDelay": {"type": "number", "description": "Delay between keystrokes in milliseconds", "default": TYPE_DELAY_MS},
                "waitForElementTimeout": {"type": "number", "description": "Maximum time to wait for the element in milliseconds", "default": ELEMENT_TIMEOUT_MS},
                "returnHtml": {"type": "boolean", "description": "Return the page HTML after typing", "default": True},
                "removeUnnecessaryHTML": _STRIP,
                "postTypeWait": {"type": "number", "description": "Milliseconds to wait after typing before reading the HTML", "default": 1000},
            },
            required=["url", "selector", "text"],
        ),
        outputSchema=_output_schema({
            "currentUrl": {"type": "string", "description": "URL after typing"},
            "message": {"type": "string", "description": "Success message"},
            "html": _HTML_OR_NULL,
        }),
    ),
    types.Tool(
        name="close_tab",
        title="Close Tab",
        description=(
            "Closes the browser tab kept for the URL's domain so the next fetch starts a fresh "
            "page. A tab in the middle of a login is not closed."
        ),
        inputSchema=_input_schema(
            {"url": {"type": "string", "description": "The URL whose tab should be closed"}},
            required=["url"],
        ),
        outputSchema=_output_schema({
            "closed": {"type": "boolean", "description": "False when the tab was protected by a login flow"},
            "hostname": {"type": "string", "description": "Hostname of the URL"},
            "message": {"type": "string", "description": "What happened"},
        }),
    ),
    types.Tool(
        name="get_current_html",
        title="Get Current HTML",
        description=(
            "Returns the current HTML of a page already loaded with fetch_webpage, without "
            "navigating. Use it after clicks or typing to see the updated page."
        ),
        inputSchema=_input_schema(
            {"url": _URL_OF_FETCHED_PAGE, "removeUnnecessaryHTML": _STRIP},
            required=["url"],
        ),
        outputSchema=_output_schema({
            "currentUrl": {"type": "string", "description": "URL the tab is on"},
            "html": {"type": "string", "description": "Page HTML content"},
        }),
    ),
    types.Tool(
        name="get_interactive_elements",
        title="Get Interactive Elements",
        description=(
            "Lists links, buttons, inputs and other clickable elements of a page loaded with "
            "fetch_webpage, each with a CSS selector usable by click_element and type_text."
        ),
        inputSchema=_input_schema(
            {
                "url": _URL_OF_FETCHED_PAGE,
                "limit": {"type": "number", "description": "Maximum number of elements to return", "default": INTERACTIVE_ELEMENTS_LIMIT},
            },
            required=["url"],
        ),
        outputSchema=_output_schema({
            "currentUrl": {"type": "string", "description": "URL the tab is on"},
            "count": {"type": "number", "description": "Number of elements returned"},
            "elements": {"type": "array", "items": {"type": "object"}, "description": "Element descriptions with suggested selectors"},
        }),
    ),
    types.Tool(
        name="wait_for_element",
        title="Wait For Element",
        description=(
            "Waits until an element, located by CSS selector or visible text, is shown on a page "
            "loaded with fetch_webpage. Use it for content rendered after the initial load."
        ),
        inputSchema=_input_schema(
            {
                "url": _URL_OF_FETCHED_PAGE,
                "selector": {"type": "string", "description": "CSS selector of the element"},
                "text": {"type": "string", "description": "Visible text of the element"},
                "timeout": {"type": "number", "description": "Maximum time to wait in milliseconds", "default": ELEMENT_TIMEOUT_MS},
            },
            required=["url"],
        ),
        outputSchema=_output_schema({
            "found": {"type": "boolean", "description": "The element is visible"},
            "message": {"type": "string", "description": "Success message"},
            "currentUrl": {"type": "string", "description": "URL the tab is on"},
        }),
    ),
]


TOOLS_BY_NAME: Dict[str, types.Tool] = {tool.name: tool for tool in TOOL_DEFINITIONS}


__all__ = [
    "ERROR_SCHEMA",
    "TOOL_DEFINITIONS",
    "TOOLS_BY_NAME",
]

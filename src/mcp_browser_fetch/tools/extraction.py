"""Read-only tools: page HTML and interactive element discovery."""

from ..cleaners import sanitize_html
from ..constants import INTERACTIVE_ELEMENTS_LIMIT
from ..decorators import tool_envelope, with_context
from ..responses import SuccessResponse
from ..utils.html_utils import enrich_html, extract_interactive_elements
from .common import as_bool, as_int, read_html, require_session, require_url, resolve_flavor


@tool_envelope
@with_context
async def get_current_html(url=None, removeUnnecessaryHTML=True, browser=None, *, ctx):
    """Return the current HTML of an open page without navigating."""
    url = require_url(url)
    strip = as_bool(removeUnnecessaryHTML, "removeUnnecessaryHTML", True)
    flavor = resolve_flavor(browser, ctx)

    async with ctx.registry.locked(flavor, url):
        session = await require_session(ctx, flavor, url)
        current_url = await ctx.registry.refresh(session)
        html = await read_html(session, strip)

    return SuccessResponse(
        fields={"currentUrl": current_url, "html": html},
        summary=f"Current HTML of {current_url}",
        next_steps=[
            "Use click_element to interact with buttons/links on the page",
            "Use type_text to fill in form fields",
            "Use fetch_webpage to navigate to a different page",
        ],
    )


@tool_envelope
@with_context
async def get_interactive_elements(url=None, limit=INTERACTIVE_ELEMENTS_LIMIT, browser=None, *, ctx):
    """List links, buttons, inputs and other clickable elements of an open page."""
    url = require_url(url)
    limit = as_int(limit, "limit", INTERACTIVE_ELEMENTS_LIMIT, minimum=1)
    flavor = resolve_flavor(browser, ctx)

    async with ctx.registry.locked(flavor, url):
        session = await require_session(ctx, flavor, url)
        current_url = await ctx.registry.refresh(session)
        raw = await session.page.content()

    html = enrich_html(sanitize_html(raw, True), current_url)
    elements = extract_interactive_elements(html, limit=limit)

    return SuccessResponse(
        fields={"currentUrl": current_url, "count": len(elements), "elements": elements},
        summary=f"Found {len(elements)} interactive element(s) on {current_url}",
        next_steps=[
            "Use click_element with one of the selectors to click an element",
            "Use type_text with an input selector to fill in a field",
        ],
    )


__all__ = [
    "get_current_html",
    "get_interactive_elements",
]

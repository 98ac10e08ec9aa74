"""Tab management tool implementation."""

from ..auth import get_hostname
from ..decorators import tool_envelope, with_context
from ..responses import SuccessResponse
from .common import require_session, require_url, resolve_flavor


@tool_envelope
@with_context
async def close_tab(url=None, browser=None, *, ctx):
    """
    Close the tab serving ``url``'s domain.

    A tab in the middle of a login is left open and reported with ``closed: false``.
    """
    url = require_url(url)
    flavor = resolve_flavor(browser, ctx)
    hostname = get_hostname(url)

    async with ctx.registry.locked(flavor, url):
        session = await require_session(ctx, flavor, url)
        closed = await ctx.registry.close_page(flavor, url)

    if closed:
        message = f"Closed tab for {session.base_domain}"
        next_steps = ["Use fetch_webpage to open a new page"]
    else:
        message = f"Tab for {session.base_domain} not closed: an authentication flow is in progress"
        next_steps = [
            "Complete the login in the browser window",
            "Use get_current_html to check the page state",
        ]

    return SuccessResponse(
        fields={"closed": closed, "hostname": hostname, "message": message},
        summary=message,
        next_steps=next_steps,
    )


__all__ = [
    "close_tab",
]

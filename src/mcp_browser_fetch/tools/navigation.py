"""Page loading tool implementation."""

from ..auth import detect_redirect_type, wait_for_auto_auth, wait_for_manual_auth
from ..constants import NAVIGATION_TIMEOUT_MS, POST_LOAD_WAIT_MS
from ..decorators import tool_envelope, with_context
from ..errors import AuthTimeoutError
from ..responses import SuccessResponse
from .common import as_bool, as_int, read_html, require_url, resolve_flavor, settle

import logging
logger = logging.getLogger(__name__)


FETCH_NEXT_STEPS = [
    "Use click_element to interact with buttons/links on the page",
    "Use type_text to fill in form fields",
    "Use get_current_html to re-check page state after interactions",
    "Use close_tab when finished to free browser resources",
]


async def _complete_auth(ctx, session, redirect) -> str:
    """Wait for an SSO bounce, then for a manual login. Returns the URL landed on."""
    cfg = ctx.config
    logger.info(f"Authentication flow detected ({redirect.flow_type}) at {session.current_url}")

    landed = await wait_for_auto_auth(
        session.page, redirect.original_hostname, redirect.original_base,
        timeout_s=cfg.get("auto_auth_wait_secs", 5.0),
        interval_s=cfg.get("auto_auth_poll_secs", 0.5),
    )
    if landed is None:
        landed = await wait_for_manual_auth(
            session.page, redirect.original_hostname, redirect.original_base,
            timeout_s=cfg.get("manual_auth_wait_secs", 600.0),
            interval_s=cfg.get("manual_auth_poll_secs", 2.0),
        )
    if landed is None:
        raise AuthTimeoutError(
            f"Authentication timeout: still on a login page ({session.current_url}). "
            f"The tab is left open; complete the login and retry."
        )
    return await ctx.registry.refresh(session)


@tool_envelope
@with_context
async def fetch_webpage(
    url=None,
    removeUnnecessaryHTML=True,
    postLoadWait=POST_LOAD_WAIT_MS,
    browser=None,
    *,
    ctx,
):
    """Open ``url`` in the domain's tab (reused when present) and return its HTML."""
    url = require_url(url or ctx.config.get("default_fetch_url"))
    strip = as_bool(removeUnnecessaryHTML, "removeUnnecessaryHTML", True)
    post_load_wait = as_int(postLoadWait, "postLoadWait", POST_LOAD_WAIT_MS)
    flavor = resolve_flavor(browser, ctx)
    timeout_ms = ctx.config.get("navigation_timeout_ms", NAVIGATION_TIMEOUT_MS)

    async with ctx.registry.locked(flavor, url):
        session = await ctx.registry.get_or_create_page(flavor, url, timeout_ms)

        redirect = detect_redirect_type(url, session.current_url)
        if redirect.is_auth:
            await _complete_auth(ctx, session, redirect)
            await settle(ctx.config.get("stability_wait_ms", 0))
        elif redirect.kind == "permanent":
            logger.info(f"Permanent redirect: {redirect.original_hostname} -> {redirect.current_hostname}")

        await settle(post_load_wait)
        html = await read_html(session, strip)

    return SuccessResponse(
        fields={
            "currentUrl": session.current_url,
            "html": html,
            "isAuthFlow": session.is_auth_flow,
        },
        summary=f"Successfully fetched: {session.current_url}",
        next_steps=FETCH_NEXT_STEPS,
    )


__all__ = [
    "fetch_webpage",
]

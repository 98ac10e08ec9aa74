"""Element interaction tool implementations."""

from ..constants import ELEMENT_TIMEOUT_MS, TYPE_DELAY_MS
from ..decorators import tool_envelope, with_context
from ..errors import ValidationError
from ..responses import SuccessResponse
from .common import (
    as_bool,
    as_int,
    read_html,
    require_session,
    require_text,
    require_url,
    resolve_flavor,
    settle,
)

import logging
logger = logging.getLogger(__name__)


def _locator(selector, text) -> tuple:
    selector = selector if isinstance(selector, str) and selector else None
    text = text if isinstance(text, str) and text else None
    if selector is None and text is None:
        raise ValidationError(
            "Either selector or text parameter is required",
            next_steps=["Use get_interactive_elements to find a selector for the element"],
        )
    return selector, text


def _describe(selector, text) -> str:
    return selector if selector else f'text "{text}"'


@tool_envelope
@with_context
async def click_element(
    url=None,
    selector=None,
    text=None,
    timeout=ELEMENT_TIMEOUT_MS,
    returnHtml=True,
    removeUnnecessaryHTML=True,
    postClickWait=1000,
    browser=None,
    *,
    ctx,
):
    """Click an element of an open page, located by CSS selector or by its visible text."""
    url = require_url(url)
    selector, text = _locator(selector, text)
    timeout_ms = as_int(timeout, "timeout", ELEMENT_TIMEOUT_MS, minimum=1)
    return_html = as_bool(returnHtml, "returnHtml", True)
    strip = as_bool(removeUnnecessaryHTML, "removeUnnecessaryHTML", True)
    post_click_wait = as_int(postClickWait, "postClickWait", 1000)
    flavor = resolve_flavor(browser, ctx)

    async with ctx.registry.locked(flavor, url):
        session = await require_session(ctx, flavor, url)
        await session.page.click(selector=selector, text=text, timeout_ms=timeout_ms)
        logger.info(f"{flavor}/{session.base_domain}: clicked {_describe(selector, text)}")

        await settle(ctx.config.get("stability_wait_ms", 0))
        current_url = await ctx.registry.refresh(session)
        html = None
        if return_html:
            await settle(post_click_wait)
            html = await read_html(session, strip)

    message = f"Clicked element: {_describe(selector, text)}"
    return SuccessResponse(
        fields={
            "currentUrl": current_url,
            "message": message,
            "clicked": selector or text,
            "html": html,
        },
        summary=message,
        next_steps=[
            "Use get_current_html to see the updated page",
            "Use type_text to fill in form fields",
            "Use click_element again to continue navigating",
        ],
    )


@tool_envelope
@with_context
async def type_text(
    url=None,
    selector=None,
    text=None,
    clear=True,
    typeDelay=TYPE_DELAY_MS,
    waitForElementTimeout=ELEMENT_TIMEOUT_MS,
    returnHtml=True,
    removeUnnecessaryHTML=True,
    postTypeWait=1000,
    browser=None,
    *,
    ctx,
):
    """Type into an input field of an open page."""
    url = require_url(url)
    selector = require_text(selector, "selector")
    text = require_text(text, "text", allow_empty=True)
    clear = as_bool(clear, "clear", True)
    delay_ms = as_int(typeDelay, "typeDelay", TYPE_DELAY_MS)
    timeout_ms = as_int(waitForElementTimeout, "waitForElementTimeout", ELEMENT_TIMEOUT_MS, minimum=1)
    return_html = as_bool(returnHtml, "returnHtml", True)
    strip = as_bool(removeUnnecessaryHTML, "removeUnnecessaryHTML", True)
    post_type_wait = as_int(postTypeWait, "postTypeWait", 1000)
    flavor = resolve_flavor(browser, ctx)

    async with ctx.registry.locked(flavor, url):
        session = await require_session(ctx, flavor, url)
        await session.page.type(selector, text, clear=clear, delay_ms=delay_ms, timeout_ms=timeout_ms)
        logger.info(f"{flavor}/{session.base_domain}: typed {len(text)} character(s) into {selector}")

        current_url = await ctx.registry.refresh(session)
        html = None
        if return_html:
            await settle(post_type_wait)
            html = await read_html(session, strip)

    message = f"Typed text into: {selector}"
    return SuccessResponse(
        fields={
            "currentUrl": current_url,
            "message": message,
            "html": html,
        },
        summary=message,
        next_steps=[
            "Use click_element to submit the form",
            "Use type_text to fill additional fields",
            "Use get_current_html to check for validation messages",
        ],
    )


@tool_envelope
@with_context
async def wait_for_element(
    url=None,
    selector=None,
    text=None,
    timeout=ELEMENT_TIMEOUT_MS,
    browser=None,
    *,
    ctx,
):
    """Wait until an element (selector or visible text) is shown on an open page."""
    url = require_url(url)
    selector, text = _locator(selector, text)
    timeout_ms = as_int(timeout, "timeout", ELEMENT_TIMEOUT_MS, minimum=1)
    flavor = resolve_flavor(browser, ctx)

    async with ctx.registry.locked(flavor, url):
        session = await require_session(ctx, flavor, url)
        await session.page.wait_for(selector=selector, text=text, timeout_ms=timeout_ms)
        current_url = await ctx.registry.refresh(session)

    message = f"Element is visible: {_describe(selector, text)}"
    return SuccessResponse(
        fields={"found": True, "message": message, "currentUrl": current_url},
        summary=message,
        next_steps=[
            "Use click_element or type_text to interact with the element",
            "Use get_current_html to read the page",
        ],
    )


__all__ = [
    "click_element",
    "type_text",
    "wait_for_element",
]

"""Argument checks and page helpers shared by the tool implementations."""

import asyncio
from typing import Optional

from ..auth import get_hostname
from ..cleaners import sanitize_html
from ..config.environment import normalize_flavor
from ..errors import NoPageFoundError, ValidationError
from ..registry import PageSession
from ..utils.html_utils import enrich_html


def require_url(url) -> str:
    """
    Raises:
        ValidationError: ``url`` is missing or has no hostname
    """
    if not isinstance(url, str) or not url.strip():
        raise ValidationError(
            "url parameter is required",
            next_steps=["Provide the url of the page, e.g. https://example.com"],
        )
    url = url.strip()
    if not get_hostname(url):
        raise ValidationError(
            f"Invalid URL: {url}",
            next_steps=["Pass an absolute URL including the scheme, e.g. https://example.com"],
        )
    return url


def require_text(value, name: str, allow_empty: bool = False) -> str:
    if not isinstance(value, str) or (not value and not allow_empty):
        raise ValidationError(f"{name} parameter is required")
    return value


def as_int(value, name: str, default: int, minimum: int = 0) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{name} must be a number")
    if value < minimum:
        raise ValidationError(f"{name} must be at least {minimum}")
    return int(value)


def as_bool(value, name: str, default: bool) -> bool:
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValidationError(f"{name} must be true or false")
    return value


def resolve_flavor(browser: Optional[str], ctx) -> str:
    try:
        return normalize_flavor(browser or ctx.default_browser())
    except ValueError as e:
        raise ValidationError(str(e), next_steps=["Use browser \"chrome\" or \"edge\""])


async def require_session(ctx, flavor: str, url: str) -> PageSession:
    """
    The open page for ``url``.

    Raises:
        NoPageFoundError: fetch_webpage has not opened a page for this domain
    """
    session = await ctx.registry.find_session(flavor, url)
    if session is None:
        raise NoPageFoundError(get_hostname(url))
    return session


async def settle(wait_ms: int) -> None:
    if wait_ms and wait_ms > 0:
        await asyncio.sleep(wait_ms / 1000)


async def read_html(session: PageSession, strip: bool) -> str:
    """Current document of the page, sanitized on request, with absolute links."""
    raw = await session.page.content()
    return enrich_html(sanitize_html(raw, strip), session.current_url)


__all__ = [
    "require_url",
    "require_text",
    "as_int",
    "as_bool",
    "resolve_flavor",
    "require_session",
    "settle",
    "read_html",
]

"""
Authentication flow detection.

Pure URL heuristics (``is_likely_auth_url``, ``get_base_domain``, ``detect_redirect_type``)
plus two polling helpers used by fetch_webpage to wait out SSO redirects and manual logins.
"""

import re
import time
import asyncio
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

import logging
logger = logging.getLogger(__name__)


AUTH_PATH_PREFIXES = (
    "/login",
    "/signin",
    "/sign-in",
    "/auth",
    "/sso",
    "/oauth",
    "/authenticate",
    "/saml",
    "/openid",
)

AUTH_SUBDOMAIN_PREFIXES = (
    "login.",
    "auth.",
    "sso.",
    "accounts.",
    "id.",
    "identity.",
    "signin.",
    "authentication.",
    "idp.",
)

# Used when the input does not parse into a URL with a hostname.
_RAW_PATH_PAT = re.compile(
    r"(?:%s)(?=$|[/?#])" % "|".join(re.escape(p) for p in AUTH_PATH_PREFIXES)
)
_RAW_HOST_PAT = re.compile(
    r"(?:^|//)(?:%s)" % "|".join(re.escape(p) for p in AUTH_SUBDOMAIN_PREFIXES)
)


def get_hostname(url: str) -> Optional[str]:
    """Lower-cased hostname of ``url`` or None when it has none."""
    try:
        return urlparse(url).hostname or None
    except (ValueError, TypeError, AttributeError):
        return None


def get_base_domain(hostname: str) -> str:
    """
    Last two dot-separated labels of a hostname.

    >>> get_base_domain("mail.google.com")
    'google.com'
    >>> get_base_domain("localhost")
    'localhost'
    """
    labels = [label for label in (hostname or "").strip().lower().rstrip(".").split(".") if label]
    if len(labels) < 2:
        return ".".join(labels)
    return ".".join(labels[-2:])


def base_domain_of_url(url: str) -> str:
    """Base domain of a URL's hostname; empty string when the URL has no hostname."""
    return get_base_domain(get_hostname(url) or "")


def _path_matches(path: str) -> bool:
    for prefix in AUTH_PATH_PREFIXES:
        if path == prefix or path.startswith(prefix + "/"):
            return True
    return False


def is_likely_auth_url(url: str) -> bool:
    """
    True when ``url`` looks like part of a login / SSO / consent flow.

    The path must equal an auth prefix or continue it with ``/``; query and fragment are
    already split off by the parser, so ``/login?next=/`` matches and ``/login-help`` does not.
    Inputs without a hostname are matched as raw lower-cased strings. Never raises.
    """
    if not isinstance(url, str):
        return False

    lowered = url.strip().lower()
    try:
        parsed = urlparse(lowered)
        hostname = parsed.hostname
    except ValueError:
        hostname = None

    if not hostname:
        return bool(_RAW_PATH_PAT.search(lowered) or _RAW_HOST_PAT.search(lowered))

    if _path_matches(parsed.path or ""):
        return True
    return hostname.startswith(AUTH_SUBDOMAIN_PREFIXES)


@dataclass
class RedirectInfo:
    """Outcome of comparing the requested URL with where the browser landed."""

    kind: str  # none | requested_auth | permanent | auth
    original_hostname: str = ""
    current_hostname: str = ""
    original_base: str = ""
    current_base: str = ""
    flow_type: Optional[str] = None

    @property
    def is_auth(self) -> bool:
        return self.kind == "auth"


def detect_redirect_type(requested_url: str, current_url: str) -> RedirectInfo:
    """
    Classify a navigation by comparing the requested and the landed URL.

    - ``requested_auth``: the caller asked for a login page and is on its host
    - ``none``: same host and not bounced to a login path
    - ``permanent``: moved to another host that is not a login page
    - ``auth``: bounced to a login page, on the same host or across domains
    """
    hostname = get_hostname(requested_url) or ""
    current_hostname = get_hostname(current_url) or ""
    info = RedirectInfo(
        kind="none",
        original_hostname=hostname,
        current_hostname=current_hostname,
        original_base=get_base_domain(hostname),
        current_base=get_base_domain(current_hostname),
    )

    different_host = current_hostname != hostname
    requested_auth = is_likely_auth_url(requested_url)
    current_auth = is_likely_auth_url(current_url)
    same_host_auth_path = not different_host and current_auth and not requested_auth

    if requested_auth and not different_host:
        info.kind = "requested_auth"
    elif not different_host and not same_host_auth_path:
        info.kind = "none"
    elif not current_auth:
        info.kind = "permanent"
    else:
        info.kind = "auth"
        info.flow_type = "same-domain path change" if same_host_auth_path else "cross-domain redirect"
    return info


def is_related_domain(hostname: str, original_hostname: str, original_base: str) -> bool:
    """
    True when ``hostname`` belongs to the site the user originally asked for.

    Same host, same base domain, or a shared first label of the base domain longer than
    three characters (google.com / google.de).
    """
    if not hostname:
        return False
    if hostname == original_hostname:
        return True
    base = get_base_domain(hostname)
    if base == original_base:
        return True
    original_root = original_base.split(".")[0]
    return len(original_root) > 3 and base.split(".")[0] == original_root


async def _wait_for_return(page, original_hostname: str, original_base: str, timeout_s: float, interval_s: float):
    deadline = time.monotonic() + timeout_s
    while True:
        current_url = await page.current_url()
        hostname = get_hostname(current_url) or ""
        if is_related_domain(hostname, original_hostname, original_base) and not is_likely_auth_url(current_url):
            return current_url
        if time.monotonic() >= deadline:
            return None
        await asyncio.sleep(interval_s)


async def wait_for_auto_auth(page, original_hostname: str, original_base: str,
                             timeout_s: float = 5.0, interval_s: float = 0.5) -> Optional[str]:
    """Give a valid session a few seconds to bounce back from the identity provider."""
    logger.info(f"Checking for auto-authentication ({timeout_s:g}s)...")
    landed = await _wait_for_return(page, original_hostname, original_base, timeout_s, interval_s)
    if landed:
        logger.info(f"Auto-authentication successful, now at {landed}")
    return landed


async def wait_for_manual_auth(page, original_hostname: str, original_base: str,
                               timeout_s: float = 600.0, interval_s: float = 2.0) -> Optional[str]:
    """Wait for the user to complete a login in the visible browser window."""
    logger.info(f"Waiting up to {timeout_s:g}s for the user to log in and return to {original_base}")
    landed = await _wait_for_return(page, original_hostname, original_base, timeout_s, interval_s)
    if landed:
        logger.info(f"Authentication completed, now at {landed}")
    else:
        logger.warning(f"Authentication timed out; tab left open for {original_base}")
    return landed


__all__ = [
    "AUTH_PATH_PREFIXES",
    "AUTH_SUBDOMAIN_PREFIXES",
    "get_hostname",
    "get_base_domain",
    "base_domain_of_url",
    "is_likely_auth_url",
    "RedirectInfo",
    "detect_redirect_type",
    "is_related_domain",
    "wait_for_auto_auth",
    "wait_for_manual_auth",
]

"""HTML post-processing: absolute URLs and interactive element discovery."""

import re
from typing import List
from urllib.parse import urljoin

from bs4 import BeautifulSoup


INTERACTIVE_SELECTORS = (
    "a[href]",
    "button",
    "input",
    "textarea",
    "select",
    "[onclick]",
    '[role="button"]',
    '[role="link"]',
    "[tabindex]",
)

_HREF_PAT = re.compile(r"""href=(["'])([^"']+)\1""", re.I)
_SRC_PAT = re.compile(r"""src=(["'])([^"']+)\1""", re.I)

_KEEP_HREF_PREFIXES = ("http://", "https://", "//", "#", "mailto:", "tel:", "javascript:", "data:")
_KEEP_SRC_PREFIXES = ("http://", "https://", "//", "data:")

_DEFAULT_TYPES = {"input": "text", "button": "submit", "textarea": "textarea", "select": "select-one"}


def enrich_html(html: str, base_url: str) -> str:
    """
    Rewrite relative ``href`` and ``src`` values to absolute URLs.

    Works on the serialized string so that raw, uncleaned HTML is not re-parsed.
    """
    if not html:
        return ""
    if not base_url:
        return html

    def _absolutize(keep_prefixes):
        def repl(m):
            quote, url = m.group(1), m.group(2)
            if url.strip().lower().startswith(keep_prefixes):
                return m.group(0)
            try:
                absolute = urljoin(base_url, url.strip())
            except ValueError:
                return m.group(0)
            attr = m.group(0).split("=", 1)[0]
            return f"{attr}={quote}{absolute}{quote}"
        return repl

    html = _HREF_PAT.sub(_absolutize(_KEEP_HREF_PREFIXES), html)
    html = _SRC_PAT.sub(_absolutize(_KEEP_SRC_PREFIXES), html)
    return html


def _suggest_selector(el) -> str:
    tag = el.name
    if el.get("id"):
        return f"#{el['id']}"
    if el.get("name"):
        return f'{tag}[name="{el["name"]}"]'
    classes = el.get("class") or []
    if isinstance(classes, str):
        classes = classes.split()
    classes = [c for c in classes if c.strip()][:2]
    if classes:
        return f"{tag}.{'.'.join(classes)}"
    return tag


def extract_interactive_elements(html: str, limit: int = 50) -> List[dict]:
    """
    Scan (sanitized) HTML for elements a user can click or type into.

    Selectors are visited in INTERACTIVE_SELECTORS order; an element matched by more than
    one selector is reported once. Returns at most ``limit`` entries.
    """
    if limit <= 0 or not html:
        return []

    soup = BeautifulSoup(html, "html.parser")
    found: List[dict] = []
    seen = set()

    for selector in INTERACTIVE_SELECTORS:
        for el in soup.select(selector):
            if len(found) >= limit:
                return found
            if id(el) in seen:
                continue
            seen.add(id(el))

            text = re.sub(r"\s+", " ", el.get_text(" ")).strip()[:100]
            found.append({
                "tag": el.name,
                "text": text,
                "selector": _suggest_selector(el),
                "href": el.get("href") or None,
                "type": el.get("type") or _DEFAULT_TYPES.get(el.name),
                "name": el.get("name") or None,
                "id": el.get("id") or None,
                "hasOnClick": el.has_attr("onclick"),
                "role": el.get("role") or None,
            })

    return found


__all__ = [
    "INTERACTIVE_SELECTORS",
    "enrich_html",
    "extract_interactive_elements",
]

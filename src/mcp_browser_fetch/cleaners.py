# mcp_browser_fetch/cleaners.py

import re
from typing import Dict, Tuple

from bs4 import BeautifulSoup, Comment, NavigableString
from bs4.dammit import EntitySubstitution
from bs4.formatter import HTMLFormatter


NON_CONTENT_TAGS = ("script", "style", "noscript", "template", "svg", "canvas", "meta", "link")

KEEP_ATTRS = {
    "id", "name", "href", "src", "alt", "title", "type", "value", "placeholder",
    "role", "for", "action", "method", "tabindex", "onclick",
}

# Text inside these keeps its line breaks and indentation
PRESERVE_WHITESPACE_IN = {"pre", "code", "textarea"}

BUTTON_INPUT_TYPES = ("button", "submit", "reset", "image")

BLOCK_TAGS = {
    "html", "head", "body", "title", "div", "p", "section", "article", "header", "footer", "nav",
    "main", "aside", "h1", "h2", "h3", "h4", "h5", "h6", "ul", "ol", "li", "dl", "dt", "dd",
    "table", "thead", "tbody", "tfoot", "tr", "td", "th", "caption", "form", "fieldset",
    "legend", "blockquote", "figure", "figcaption", "hr", "br", "pre", "select", "option",
    "details", "summary", "dialog",
}

# "minimal" entity escaping, but void elements render as <br> rather than <br/>
MINIMAL_HTML = HTMLFormatter(entity_substitution=EntitySubstitution.substitute_xml, void_element_close_prefix=None)

HIDDEN_STYLE_PAT = re.compile(r"(display\s*:\s*none\b|visibility\s*:\s*hidden\b)", re.I)

RAW_REMOVABLE_PAT = re.compile(
    r"<!--.*?-->|<(script|style|noscript|template)\b[^>]*>.*?</\1\s*>", re.I | re.S
)

REMOVED_NODE_COUNTS = ("comments_removed", "script", "style", "non_content", "hidden_removed")


def _attr(el, name: str) -> str:
    return str(el.get(name, "")).strip().lower()


def _keeps_class(el) -> bool:
    """Buttons keep ``class``: it is often the only handle a selector can use."""
    name = (el.name or "").lower()
    return (
        name == "button"
        or (name == "input" and _attr(el, "type") in BUTTON_INPUT_TYPES)
        or _attr(el, "role") == "button"
    )


def _is_hidden(el) -> bool:
    if el.has_attr("hidden") or _attr(el, "aria-hidden") == "true":
        return True
    if el.name == "input" and _attr(el, "type") == "hidden":
        return True
    style = el.get("style")
    return isinstance(style, str) and bool(HIDDEN_STYLE_PAT.search(style))


def _is_block(node) -> bool:
    return node is None or (getattr(node, "name", None) or "").lower() in BLOCK_TAGS


def _neighbour(node, forward: bool):
    """Nearest sibling that is not whitespace-only text."""
    sib = node.next_sibling if forward else node.previous_sibling
    while isinstance(sib, NavigableString) and not str(sib).strip():
        sib = sib.next_sibling if forward else sib.previous_sibling
    return sib


def _at_block_boundary(node) -> bool:
    parent = node.parent
    if parent is not None and parent.name != "[document]" and parent.name.lower() not in BLOCK_TAGS:
        # Inside an inline element, leading or trailing space still separates words
        return False
    return _is_block(_neighbour(node, False)) or _is_block(_neighbour(node, True))


def _drop_comments(soup, counts: Dict[str, int]) -> None:
    comments = soup.find_all(string=lambda node: isinstance(node, Comment))
    for node in comments:
        node.extract()
    counts["comments_removed"] += len(comments)


def _drop_non_content(soup, counts: Dict[str, int]) -> None:
    """Scripts and styles are counted on their own, every other non-content tag as ``non_content``."""
    for el in soup.find_all(list(NON_CONTENT_TAGS)):
        if el.decomposed:
            continue
        counts[el.name if el.name in ("script", "style") else "non_content"] += 1
        el.decompose()


def _drop_hidden(soup, counts: Dict[str, int]) -> None:
    """
    Remove what the user cannot see: the ``hidden`` attribute, ``aria-hidden="true"``,
    inline ``display:none`` / ``visibility:hidden`` and ``<input type="hidden">``.
    """
    for el in soup.find_all(True):
        # Already gone with a hidden ancestor
        if el.decomposed:
            continue
        if _is_hidden(el):
            el.decompose()
            counts["hidden_removed"] += 1


def _strip_attributes(soup, counts: Dict[str, int]) -> None:
    """
    Keep only the attributes that locate or describe an element.

    ``aria-*`` always stays, ``class`` stays on button-like elements, ``onclick`` is
    reduced to an empty marker and inline ``data:`` images lose their ``src``.
    """
    for el in soup.find_all(True):
        for name, value in list(el.attrs.items()):
            if name.startswith("aria-"):
                continue

            drop = (
                (name == "class" and not _keeps_class(el))
                or (name != "class" and name not in KEEP_ATTRS)
                or (name == "src" and isinstance(value, str) and value.startswith("data:"))
            )
            if drop:
                del el.attrs[name]
                counts["attributes_removed"] += 1
            elif name == "onclick" and value != "":
                el.attrs[name] = ""
                counts["attributes_removed"] += 1
            elif isinstance(value, (list, tuple)):
                el.attrs[name] = " ".join(str(v) for v in value)


def _collapse_whitespace(soup, counts: Dict[str, int]) -> str:
    """
    Collapse whitespace runs in text to one space and render the document.

    Whitespace-only text next to a block boundary is dropped; between inline elements it
    stays as one space so ``<a>x</a> <a>y</a>`` still reads as two words.
    """
    for node in soup.find_all(string=True):
        if node.find_parent(list(PRESERVE_WHITESPACE_IN)) is not None:
            continue
        text = str(node)
        collapsed = re.sub(r"\s+", " ", text)
        prev = node.previous_sibling
        # Removed elements can leave two text nodes side by side
        if isinstance(prev, NavigableString) and str(prev)[-1:].isspace():
            collapsed = collapsed.lstrip()
        if not collapsed.strip() and (not collapsed or _at_block_boundary(node)):
            node.extract()
            counts["whitespace_collapsed"] += 1
        elif collapsed != text:
            node.replace_with(NavigableString(collapsed))
            counts["whitespace_collapsed"] += 1

    rendered = soup.decode(formatter=MINIMAL_HTML)
    tightened = rendered.strip()
    if len(tightened) < len(rendered):
        counts["whitespace_collapsed"] += 1
    return tightened


def clean_html(html: str) -> Tuple[str, Dict[str, int]]:
    """
    Run every cleaning pass over ``html``.

    Returns:
        (cleaned_html, counts) where counts tells how much each pass removed
    """
    counts = dict.fromkeys(
        ("comments_removed", "script", "style", "non_content",
         "hidden_removed", "attributes_removed", "whitespace_collapsed"),
        0,
    )
    soup = BeautifulSoup(html or "", "html.parser")

    _drop_comments(soup, counts)
    _drop_non_content(soup, counts)
    _drop_hidden(soup, counts)
    _strip_attributes(soup, counts)
    return _collapse_whitespace(soup, counts), counts


def _strip_raw(raw_html: str) -> str:
    """Cut comments and script-like elements out of the raw text, leaving the rest as is."""
    return RAW_REMOVABLE_PAT.sub("", raw_html)


def sanitize_html(raw_html: str, strip: bool = True) -> str:
    """
    Reduce a raw page to the markup an LLM needs to read and interact with it.

    With ``strip`` false the input is returned unchanged. The result is never longer than
    the input and strictly shorter when scripts, styles or comments were present; cleaning
    an already cleaned document returns it byte for byte.
    """
    if not strip or not raw_html:
        return raw_html or ""

    cleaned, counts = clean_html(raw_html)
    if len(cleaned) < len(raw_html):
        return cleaned
    # Re-serializing can grow a page (unquoted attributes, bare "&", unclosed tags) by more
    # than the cleaning removed; then remove what can be cut from the raw text directly
    if any(counts[key] for key in REMOVED_NODE_COUNTS):
        return _strip_raw(raw_html)
    return raw_html


__all__ = [
    "NON_CONTENT_TAGS",
    "KEEP_ATTRS",
    "clean_html",
    "sanitize_html",
]

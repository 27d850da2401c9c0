"""
Rich-text sanitizer.

Reduces user-supplied HTML to the small subset the editor produces:
paragraphs, emphasis, lists, headings, quotes, code and safe links.
"""

import re
from urllib.parse import urlparse

from bs4 import BeautifulSoup, NavigableString, Tag

ALLOWED_TAGS = frozenset({
    "p", "br", "span", "strong", "em", "u", "s",
    "blockquote", "code", "pre",
    "ul", "ol", "li",
    "h1", "h2", "h3", "h4", "h5", "h6",
    "a",
})

# Dropped together with everything inside them
DROPPED_TAGS = frozenset({
    "script", "style", "iframe", "object", "embed", "template",
    "noscript", "head", "title", "textarea", "select",
})

ALLOWED_SCHEMES = frozenset({"http", "https", "mailto"})

LINK_REL = "noopener noreferrer"
LINK_TARGET = "_blank"

_FONT_SIZE_RE = re.compile(r"^font-size\s*:\s*((?:0|[1-9]\d*)(?:\.\d+)?rem)\s*;?$", re.IGNORECASE)


def _is_safe_href(href: str) -> bool:
    href = href.strip()
    # Protocol-relative and scheme-less links are rejected
    if not href or href.startswith("//"):
        return False
    scheme = urlparse(href).scheme.lower()
    return scheme in ALLOWED_SCHEMES


def _clean_class(value) -> str:
    if isinstance(value, (list, tuple)):
        value = " ".join(value)
    return " ".join(str(value).split())


def _clean_style(value: str):
    """Only `font-size: <n>rem` survives on spans."""
    match = _FONT_SIZE_RE.match(value.strip())
    if not match:
        return None
    return f"font-size: {match.group(1).lower()}"


def _clean_attributes(tag: Tag) -> None:
    attrs = {}
    css_class = tag.attrs.get("class")
    if css_class:
        cleaned = _clean_class(css_class)
        if cleaned:
            attrs["class"] = cleaned

    if tag.name == "span" and tag.attrs.get("style"):
        style = _clean_style(str(tag.attrs["style"]))
        if style:
            attrs["style"] = style

    if tag.name == "a":
        attrs["href"] = tag.attrs["href"].strip()
        attrs["rel"] = LINK_REL
        attrs["target"] = LINK_TARGET

    tag.attrs = attrs


def _clean_tree(soup: BeautifulSoup) -> None:
    # Reverse document order reaches every node after all of its
    # descendants, so unwrapped content is already clean. No recursion:
    # nesting depth is bounded only by the content length.
    for node in reversed(list(soup.descendants)):
        if isinstance(node, NavigableString):
            # Comments, CDATA, doctypes and processing instructions go
            if type(node) is not NavigableString:
                node.extract()
            continue
        if not isinstance(node, Tag):
            continue

        name = node.name.lower()
        if name in DROPPED_TAGS:
            node.decompose()
            continue

        if name not in ALLOWED_TAGS:
            node.unwrap()
            continue

        node.name = name
        if name == "a":
            href = node.attrs.get("href")
            if isinstance(href, str) and _is_safe_href(href):
                _clean_attributes(node)
            else:
                node.name = "span"
                node.attrs = {}
            continue

        _clean_attributes(node)


def sanitize(html: str) -> str:
    """
    Sanitize rich-text HTML to the allowed subset.

    Unknown tags are unwrapped (their text is kept), script-like tags are
    dropped with their content, and links with a disallowed scheme turn
    into plain spans. Applying it twice gives the same result.

    Args:
        html: Untrusted HTML from the editor

    Returns:
        str: Safe HTML, trimmed
    """
    if not html:
        return ""

    soup = BeautifulSoup(html, "html.parser")
    _clean_tree(soup)

    # Unwrapping leaves adjacent text nodes behind. Parsing the cleaned
    # markup once more merges them and collapses whitespace-only runs the
    # way any later parse would.
    cleaned = soup.decode(formatter="minimal")
    return BeautifulSoup(cleaned, "html.parser").decode(formatter="minimal").strip()


def is_empty(html: str) -> bool:
    """True when no visible text remains after sanitizing."""
    sanitized = sanitize(html)
    if not sanitized:
        return True
    text = BeautifulSoup(sanitized, "html.parser").get_text()
    return not text.replace("\xa0", "").strip()

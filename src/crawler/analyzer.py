"""Single-pass structural analysis of a parsed HTML document."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from bs4 import BeautifulSoup
from bs4.element import Doctype, NavigableString, PageElement, PreformattedString, Tag

logger = logging.getLogger(__name__)

HTML5 = "HTML5"
HTML401 = "HTML 4.01"
XHTML = "XHTML"
UNKNOWN_VERSION = "unknown"

_HEADING_LEVELS = {f"h{level}": level - 1 for level in range(1, 7)}
_LOGIN_ATTRS = ("id", "class", "name")
_LOGIN_MARKERS = ("login", "signin", "auth")


@dataclass
class DocumentAnalysis:
    """Everything one traversal of the document tree yields."""

    title: str = ""
    html_version: str = HTML5
    heading_counts: list[int] = field(default_factory=lambda: [0] * 6)
    has_login_form: bool = False
    links: list[str] = field(default_factory=list)
    truncated: bool = False


def _attr_values(tag: Tag, key: str) -> list[str]:
    """Return every value of *key* on *tag*; duplicates and class lists flatten."""
    value: Any = tag.get(key)
    if value is None:
        return []
    if isinstance(value, list):
        return [str(v) for v in value]
    return [str(value)]


def classify_doctype(doctype: str) -> str | None:
    """Map DOCTYPE text to an HTML version, or ``None`` if it is not HTML."""
    lowered = doctype.lower()
    if "html" not in lowered:
        return None
    if "4.01" in lowered:
        return HTML401
    if "xhtml" in lowered:
        return XHTML
    return HTML5


def _looks_like_login(tag: Tag) -> bool:
    if tag.name == "input" and any(v.lower() == "password" for v in _attr_values(tag, "type")):
        return True
    for key in _LOGIN_ATTRS:
        joined = " ".join(_attr_values(tag, key)).lower()
        if any(marker in joined for marker in _LOGIN_MARKERS):
            return True
    return False


def form_has_login(form: Tag) -> bool:
    """True if *form* or anything inside it looks like a sign-in control."""
    if _looks_like_login(form):
        return True
    return any(_looks_like_login(tag) for tag in form.find_all(True))


def analyze_document(soup: BeautifulSoup, max_depth: int = 1000) -> DocumentAnalysis:
    """Walk *soup* once, in document order, and collect page metrics.

    The walk uses an explicit stack so adversarially deep markup cannot
    exhaust the interpreter's call stack. Nodes nested deeper than
    *max_depth* are not visited and the result is flagged ``truncated``.
    """
    result = DocumentAnalysis()
    attr_version: str | None = None
    doctype_version: str | None = None

    stack: list[tuple[PageElement, int]] = [(child, 1) for child in reversed(soup.contents)]
    while stack:
        node, depth = stack.pop()

        if isinstance(node, Doctype):
            doctype_version = classify_doctype(str(node)) or doctype_version
            continue
        if not isinstance(node, Tag):
            continue

        name = node.name
        if name == "html":
            versions = [v for v in _attr_values(node, "version") if v]
            if versions:
                attr_version = versions[-1]
        elif name == "title":
            first = node.contents[0] if node.contents else None
            if isinstance(first, NavigableString) and not isinstance(first, PreformattedString):
                result.title = first.strip()
        elif name in _HEADING_LEVELS:
            result.heading_counts[_HEADING_LEVELS[name]] += 1
        elif name == "a":
            result.links.extend(_attr_values(node, "href"))
        elif name == "form" and not result.has_login_form:
            result.has_login_form = form_has_login(node)

        if depth >= max_depth:
            if node.contents and not result.truncated:
                result.truncated = True
                logger.warning("document nesting exceeds depth limit, subtree skipped", extra={"max_depth": max_depth})
            continue
        stack.extend((child, depth + 1) for child in reversed(node.contents))

    # A DOCTYPE outranks <html version>, wherever it appears in the tree
    result.html_version = doctype_version or attr_version or HTML5
    return result

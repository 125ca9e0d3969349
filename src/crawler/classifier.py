"""Link classification and resolution against the analyzed page's URL."""

from __future__ import annotations

import enum
from urllib.parse import urljoin, urlsplit

_PASSTHROUGH_PREFIXES = ("http://", "https://")
_UNPROBED_PREFIXES = ("#", "mailto:", "tel:")
_PROBE_SCHEMES = {"http", "https"}


class LinkKind(enum.Enum):
    INTERNAL = "internal"
    EXTERNAL = "external"
    SKIP = "skip"


def _host(netloc: str) -> str:
    """Host and port of a netloc, lower-cased, without credentials."""
    return netloc.rpartition("@")[2].lower()


def classify_link(href: str, base_url: str) -> LinkKind:
    """Classify *href* relative to the page at *base_url*.

    Empty and fragment-only hrefs are ``SKIP``. Host-relative hrefs, hrefs
    without a host and hrefs on the page's own host are ``INTERNAL``.
    Anything else, including hrefs that do not parse, is ``EXTERNAL``.
    """
    if not href or href.startswith("#"):
        return LinkKind.SKIP
    if href.startswith("/"):
        return LinkKind.INTERNAL

    try:
        link_host = _host(urlsplit(href).netloc)
        base_host = _host(urlsplit(base_url).netloc)
    except ValueError:
        return LinkKind.EXTERNAL

    if not link_host or link_host == base_host:
        return LinkKind.INTERNAL
    return LinkKind.EXTERNAL


def count_links(hrefs: list[str], base_url: str) -> tuple[int, int]:
    """Return ``(internal, external)`` for *hrefs*.

    Empty and fragment-only hrefs are counted as internal here even though
    the verifier never probes them.
    """
    internal = external = 0
    for href in hrefs:
        if classify_link(href, base_url) is LinkKind.EXTERNAL:
            external += 1
        else:
            internal += 1
    return internal, external


def is_probe_candidate(href: str) -> bool:
    """False for hrefs the verifier never probes (empty, ``#``, mailto, tel)."""
    return bool(href) and not href.startswith(_UNPROBED_PREFIXES)


def resolve_link(href: str, base_url: str) -> str | None:
    """Resolve *href* to an absolute http(s) URL, or ``None`` if it has none.

    Absolute http(s) hrefs are returned untouched; everything else goes
    through standard reference resolution against *base_url*.
    """
    if href.startswith(_PASSTHROUGH_PREFIXES):
        return href
    try:
        resolved = urljoin(base_url, href)
        scheme = urlsplit(resolved).scheme
    except ValueError:
        return None
    if scheme.lower() not in _PROBE_SCHEMES:
        return None
    return resolved

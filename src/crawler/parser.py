"""Lenient HTML parsing into a BeautifulSoup tree."""

from __future__ import annotations

import logging
from typing import Any

from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup

from .errors import ParseError

logger = logging.getLogger(__name__)


def _keep_every_value(attrs: dict[str, Any], key: str, value: str) -> None:
    """Collect repeated attributes (``<a href=x href=y>``) into a list."""
    existing = attrs[key]
    if isinstance(existing, list):
        existing.append(value)
    else:
        attrs[key] = [existing, value]


def parse_document(body: bytes) -> BeautifulSoup:
    """Parse raw HTML bytes.

    The stdlib-backed ``html.parser`` builder accepts unclosed tags, unknown
    elements and a missing DOCTYPE, and is the only builder that reports
    duplicate attributes instead of silently dropping them.
    """
    try:
        soup = BeautifulSoup(body, "html.parser", on_duplicate_attribute=_keep_every_value)
    except (ParserRejectedMarkup, RecursionError) as exc:
        logger.warning("html parse failed", extra={"bytes": len(body)}, exc_info=True)
        raise ParseError(str(exc)) from exc
    return soup

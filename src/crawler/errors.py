"""Exception hierarchy for the crawl pipeline."""

from __future__ import annotations


class CrawlError(Exception):
    """Base class for every error raised by the crawl pipeline."""


class FetchError(CrawlError):
    """The target page could not be retrieved."""


class TransportError(FetchError):
    """Connection refused, DNS failure, timeout or an unusable URL."""


class HTTPStatusError(FetchError):
    """The page itself answered with a non-2xx status."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code


class ParseError(CrawlError):
    """The response body could not be turned into a document tree."""


class PersistenceError(CrawlError):
    """The persistence sink is unavailable or rejected a write."""

"""HTTP access for the crawl pipeline: page fetch and link probes."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

import httpx

from .errors import HTTPStatusError, TransportError

logger = logging.getLogger(__name__)

# Failures that mean "no usable response" rather than "a bad response".
_REQUEST_FAILURES = (httpx.RequestError, httpx.InvalidURL)


@dataclass
class FetchedPage:
    """The raw HTTP response for the crawl target."""

    url: str
    body: bytes
    status_code: int


def _deadline_exceeded(timeout: float) -> TransportError:
    return TransportError(f"no complete response within {timeout}s")


async def fetch_page(client: httpx.AsyncClient, url: str, timeout: float) -> FetchedPage:
    """GET *url* and return its body.

    *timeout* bounds the whole exchange, body included; httpx's own timeout
    only limits each individual read.

    Raises:
        TransportError: The request never produced a complete response.
        HTTPStatusError: The final response is not 2xx.
    """
    try:
        async with asyncio.timeout(timeout):
            resp = await client.get(url, timeout=timeout, follow_redirects=True)
    except TimeoutError as exc:
        logger.info("page fetch exceeded deadline", extra={"url": url, "timeout": timeout})
        raise _deadline_exceeded(timeout) from exc
    except _REQUEST_FAILURES as exc:
        logger.info("page fetch failed", extra={"url": url, "error": repr(exc)})
        raise TransportError(str(exc) or type(exc).__name__) from exc

    if not resp.is_success:
        logger.info("page returned non-success status", extra={"url": url, "status_code": resp.status_code})
        raise HTTPStatusError(resp.status_code)

    logger.debug("page fetched", extra={"url": url, "status_code": resp.status_code, "bytes": len(resp.content)})
    return FetchedPage(url=url, body=resp.content, status_code=resp.status_code)


async def probe_link(client: httpx.AsyncClient, url: str, timeout: float) -> int:
    """Return the HTTP status *url* answers with.

    Tries HEAD first. A HEAD that fails at the transport level or misses its
    deadline is inconclusive, so one streamed GET is attempted before giving
    up; the GET body is never read. Each attempt gets its own *timeout*.

    Raises:
        TransportError: Neither HEAD nor GET produced a response.
    """
    try:
        async with asyncio.timeout(timeout):
            resp = await client.head(url, timeout=timeout, follow_redirects=True)
        return resp.status_code
    except TimeoutError:
        logger.debug("HEAD probe exceeded deadline, retrying with GET", extra={"url": url})
    except _REQUEST_FAILURES as exc:
        logger.debug("HEAD probe failed, retrying with GET", extra={"url": url, "error": repr(exc)})

    try:
        async with asyncio.timeout(timeout):
            async with client.stream("GET", url, timeout=timeout, follow_redirects=True) as resp:
                return resp.status_code
    except TimeoutError as exc:
        raise _deadline_exceeded(timeout) from exc
    except _REQUEST_FAILURES as exc:
        raise TransportError(str(exc) or type(exc).__name__) from exc

"""Concurrent liveness checks for the links found on a page."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Coroutine

import httpx

from .classifier import is_probe_candidate, resolve_link
from .errors import TransportError
from .fetcher import probe_link

logger = logging.getLogger(__name__)

# Recorded status for links that never produced a response.
UNREACHABLE_STATUS = 0

BROKEN_STATUS_THRESHOLD = 400


@dataclass(frozen=True)
class LinkCheck:
    """A link that failed verification."""

    link_url: str
    status_code: int


BrokenLinkCallback = Callable[[LinkCheck], Coroutine[Any, Any, None]]


def select_probe_targets(hrefs: list[str], base_url: str, limit: int) -> list[str]:
    """Resolve probeable hrefs, dropping duplicates, and keep the first *limit*."""
    targets: list[str] = []
    seen: set[str] = set()
    for href in hrefs:
        if len(targets) >= limit:
            break
        if not is_probe_candidate(href):
            continue
        resolved = resolve_link(href, base_url)
        if resolved is None or resolved in seen:
            continue
        seen.add(resolved)
        targets.append(resolved)
    return targets


class LinkVerifier:
    """Probes a capped set of links with bounded concurrency."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        timeout: float = 5.0,
        max_links: int = 10,
        concurrency: int = 5,
    ) -> None:
        self._client = client
        self._timeout = timeout
        self._max_links = max_links
        self._concurrency = max(1, concurrency)

    async def verify(
        self,
        hrefs: list[str],
        base_url: str,
        on_broken: BrokenLinkCallback | None = None,
    ) -> list[LinkCheck]:
        """Probe links found on *base_url* and return the broken ones.

        *on_broken* is awaited once per broken link as soon as it is found,
        so a crash part-way through leaves every link checked so far
        recorded. Results come back in the order the links were selected.
        """
        targets = select_probe_targets(hrefs, base_url, self._max_links)
        if not targets:
            return []

        logger.debug("verifying links", extra={"base_url": base_url, "link_count": len(targets)})
        semaphore = asyncio.Semaphore(self._concurrency)
        lock = asyncio.Lock()
        found: dict[int, LinkCheck] = {}

        async def check(index: int, url: str) -> None:
            async with semaphore:
                try:
                    status = await probe_link(self._client, url, self._timeout)
                except TransportError as exc:
                    logger.debug("link unreachable", extra={"link_url": url, "error": str(exc)})
                    status = UNREACHABLE_STATUS
            if status != UNREACHABLE_STATUS and status < BROKEN_STATUS_THRESHOLD:
                return

            broken = LinkCheck(link_url=url, status_code=status)
            async with lock:
                found[index] = broken
                if on_broken is not None:
                    await on_broken(broken)

        await asyncio.gather(*(check(i, url) for i, url in enumerate(targets)))

        broken_links = [found[i] for i in sorted(found)]
        logger.info(
            "link verification complete",
            extra={"base_url": base_url, "links_checked": len(targets), "broken": len(broken_links)},
        )
        return broken_links

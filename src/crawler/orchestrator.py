"""Crawl orchestrator — fetch, parse, analyze and verify one URL."""

from __future__ import annotations

import asyncio
import logging
import weakref
from dataclasses import dataclass, field

import httpx

from src.api.schemas import CrawlStatus, UrlRecord
from src.config import Settings
from src.store.base import AnalysisStore

from .analyzer import UNKNOWN_VERSION, analyze_document
from .classifier import count_links
from .errors import HTTPStatusError, ParseError, PersistenceError, TransportError
from .fetcher import fetch_page
from .parser import parse_document
from .verifier import LinkCheck, LinkVerifier

logger = logging.getLogger(__name__)

ABORTED_MESSAGE = "Crawl aborted by an internal error"


@dataclass
class CrawlOutcome:
    """Final record state plus the broken links found during the attempt."""

    record: UrlRecord
    broken_links: list[LinkCheck] = field(default_factory=list)


def reset_analysis(record: UrlRecord) -> None:
    """Clear every derived field so nothing from an earlier attempt survives."""
    record.title = ""
    record.html_version = UNKNOWN_VERSION
    record.set_heading_counts([0] * 6)
    record.internal_links = 0
    record.external_links = 0
    record.inaccessible_links = 0
    record.has_login_form = False
    record.error_message = ""


class CrawlOrchestrator:
    """Runs crawl attempts and drives the queued → running → done/error states."""

    def __init__(
        self,
        settings: Settings,
        store: AnalysisStore,
        client: httpx.AsyncClient,
    ) -> None:
        self._settings = settings
        self._store = store
        self._client = client
        self._verifier = LinkVerifier(
            client,
            timeout=settings.probe_timeout_seconds,
            max_links=settings.max_probe_links,
            concurrency=settings.probe_concurrency,
        )
        # Entries vanish once no attempt for the URL holds or awaits the lock
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    async def run(self, url: str) -> CrawlOutcome:
        """Execute one crawl attempt for *url* and return its outcome.

        Attempts for the same URL are serialised. Page-level failures end in
        the ``error`` state and are returned, not raised. Anything else that
        escapes the running phase (a store outage, cancellation) marks the
        record ``error`` on a best-effort basis and is re-raised.
        """
        lock = self._locks.get(url)
        if lock is None:
            lock = self._locks[url] = asyncio.Lock()
        async with lock:
            record = await self._store.find_or_create_by_url(url)
            reset_analysis(record)
            await self._transition(record, "running")
            logger.info("crawl started", extra={"url_id": record.id, "url": url})
            try:
                return await self._crawl(record)
            except (Exception, asyncio.CancelledError):
                await self._abandon(record)
                raise

    async def _crawl(self, record: UrlRecord) -> CrawlOutcome:
        url = record.url
        # Stale rows must be gone before new ones are inserted
        await self._store.delete_broken_links(record.id)

        try:
            page = await fetch_page(self._client, url, self._settings.page_timeout_seconds)
        except TransportError as exc:
            return await self._fail(record, f"Failed to fetch page: {exc}")
        except HTTPStatusError as exc:
            return await self._fail(record, f"HTTP {exc.status_code}")

        try:
            soup = parse_document(page.body)
        except ParseError:
            return await self._fail(record, "Failed to parse HTML")

        analysis = analyze_document(soup, max_depth=self._settings.max_tree_depth)
        internal, external = count_links(analysis.links, url)

        record.title = analysis.title
        record.html_version = analysis.html_version
        record.set_heading_counts(analysis.heading_counts)
        record.internal_links = internal
        record.external_links = external
        record.has_login_form = analysis.has_login_form
        try:
            await self._store.save(record)
        except PersistenceError:
            logger.warning(
                "intermediate save failed, continuing with verification",
                extra={"url_id": record.id},
                exc_info=True,
            )
        logger.info(
            "analysis completed",
            extra={
                "url_id": record.id,
                "html_version": record.html_version,
                "heading_counts": record.heading_counts,
                "internal_links": internal,
                "external_links": external,
                "has_login_form": record.has_login_form,
                "truncated": analysis.truncated,
            },
        )

        async def persist_broken(link: LinkCheck) -> None:
            try:
                await self._store.create_broken_link(record.id, link.link_url, link.status_code)
            except PersistenceError:
                logger.warning(
                    "broken link not persisted, continuing",
                    extra={"url_id": record.id, "link_url": link.link_url},
                    exc_info=True,
                )

        broken = await self._verifier.verify(analysis.links, url, on_broken=persist_broken)

        record.inaccessible_links = len(broken)
        record.error_message = ""
        await self._transition(record, "done")
        logger.info(
            "crawl completed",
            extra={"url_id": record.id, "url": url, "inaccessible_links": len(broken)},
        )
        return CrawlOutcome(record=record, broken_links=broken)

    async def _fail(self, record: UrlRecord, message: str) -> CrawlOutcome:
        record.error_message = message
        await self._transition(record, "error")
        logger.warning("crawl failed", extra={"url_id": record.id, "url": record.url, "error_message": message})
        return CrawlOutcome(record=record)

    async def _abandon(self, record: UrlRecord) -> None:
        """Move *record* out of ``running`` after an unexpected failure."""
        logger.warning("crawl aborted, marking record as error", extra={"url_id": record.id, "url": record.url})
        record.error_message = ABORTED_MESSAGE
        try:
            await self._transition(record, "error")
        except PersistenceError:
            logger.warning("could not mark aborted crawl as failed", extra={"url_id": record.id}, exc_info=True)

    async def _transition(self, record: UrlRecord, status: CrawlStatus) -> None:
        record.status = status
        await self._store.save(record)

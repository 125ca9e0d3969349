"""Service layer — URL registration and crawl scheduling for the API routes."""

from __future__ import annotations

import logging

from src.api.schemas import CrawlAccepted, UrlDetailResponse, UrlRecord
from src.crawler.tasks import CrawlWorkerPool
from src.store.base import AnalysisStore

logger = logging.getLogger(__name__)


async def register_url(store: AnalysisStore, url: str) -> UrlRecord:
    """Register *url* for analysis, or return its existing record."""
    return await store.find_or_create_by_url(url)


async def get_url_detail(store: AnalysisStore, url_id: int) -> UrlDetailResponse | None:
    """Return the record for *url_id* with its broken links, or ``None``."""
    record = await store.get(url_id)
    if record is None:
        return None
    broken_links = await store.list_broken_links(url_id)
    return UrlDetailResponse(url=record, broken_links=broken_links)


async def start_crawl(store: AnalysisStore, pool: CrawlWorkerPool, url_id: int) -> CrawlAccepted | None:
    """Queue a crawl of the URL with *url_id*; ``None`` if it does not exist.

    Pool errors (:class:`~src.crawler.tasks.CrawlAlreadyActiveError`,
    :class:`~src.crawler.tasks.CrawlQueueFullError`) propagate to the caller.
    """
    record = await store.get(url_id)
    if record is None:
        return None
    pool.submit(record.url)
    logger.info("crawl start requested", extra={"url_id": url_id, "url": record.url})
    return CrawlAccepted(message="Crawling started", url_id=url_id)


async def stop_crawl(store: AnalysisStore, url_id: int) -> CrawlAccepted | None:
    """Acknowledge a stop request.

    In-flight crawls cannot be cancelled; the request is logged and has no
    effect on a running attempt.
    """
    if await store.get(url_id) is None:
        return None
    logger.info("crawl stop requested, not supported for in-flight crawls", extra={"url_id": url_id})
    return CrawlAccepted(message="Crawling stop requested", url_id=url_id)

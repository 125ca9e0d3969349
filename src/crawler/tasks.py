"""Background crawl execution on a bounded worker pool."""

from __future__ import annotations

import asyncio
import logging

from .orchestrator import CrawlOrchestrator

logger = logging.getLogger(__name__)


class CrawlQueueFullError(Exception):
    """The pool's queue is at capacity; the crawl was not scheduled."""


class CrawlAlreadyActiveError(Exception):
    """The URL is already queued or being crawled."""


class CrawlWorkerPool:
    """Fixed set of asyncio workers pulling URLs off a bounded queue.

    A URL is accepted at most once until its attempt finishes, so
    re-triggering a busy URL never interleaves two attempts. There is no
    cancellation: once queued, an attempt runs to completion.
    """

    def __init__(
        self,
        orchestrator: CrawlOrchestrator,
        *,
        workers: int = 4,
        queue_size: int = 100,
    ) -> None:
        self._orchestrator = orchestrator
        self._worker_count = max(1, workers)
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=queue_size)
        self._active: set[str] = set()
        self._workers: list[asyncio.Task[None]] = []

    @property
    def active(self) -> frozenset[str]:
        """URLs currently queued or running."""
        return frozenset(self._active)

    def start(self) -> None:
        if self._workers:
            return
        self._workers = [
            asyncio.create_task(self._worker(i), name=f"crawl-worker-{i}")
            for i in range(self._worker_count)
        ]
        logger.info("crawl workers started", extra={"workers": self._worker_count, "queue_size": self._queue.maxsize})

    async def stop(self) -> None:
        """Cancel the workers; queued URLs that have not started are dropped."""
        for task in self._workers:
            task.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []
        logger.info("crawl workers stopped", extra={"dropped": self._queue.qsize()})

    def submit(self, url: str) -> None:
        """Schedule a crawl of *url* without waiting for it.

        Raises:
            CrawlAlreadyActiveError: *url* is already queued or running.
            CrawlQueueFullError: the queue is at capacity.
        """
        if url in self._active:
            raise CrawlAlreadyActiveError(url)
        try:
            self._queue.put_nowait(url)
        except asyncio.QueueFull as exc:
            logger.warning("crawl queue full, rejecting", extra={"url": url, "queue_size": self._queue.maxsize})
            raise CrawlQueueFullError(url) from exc
        self._active.add(url)
        logger.info("crawl queued", extra={"url": url, "queue_depth": self._queue.qsize()})

    async def join(self) -> None:
        """Wait until every queued crawl has finished."""
        await self._queue.join()

    async def _worker(self, index: int) -> None:
        while True:
            url = await self._queue.get()
            try:
                await self._orchestrator.run(url)
            except Exception:
                logger.exception("background crawl failed", extra={"url": url, "worker": index})
            finally:
                self._active.discard(url)
                self._queue.task_done()

"""Worker pool scheduling tests with a stub orchestrator."""

import asyncio

import pytest

from src.crawler.tasks import (
    CrawlAlreadyActiveError,
    CrawlQueueFullError,
    CrawlWorkerPool,
)


class StubOrchestrator:
    def __init__(self, fail_on: set[str] | None = None) -> None:
        self.runs: list[str] = []
        self.fail_on = fail_on or set()
        self.release = asyncio.Event()
        self.release.set()

    async def run(self, url: str):
        await self.release.wait()
        self.runs.append(url)
        if url in self.fail_on:
            raise RuntimeError("store exploded")


pytestmark = pytest.mark.asyncio


async def test_submitted_urls_are_crawled():
    orchestrator = StubOrchestrator()
    pool = CrawlWorkerPool(orchestrator, workers=2, queue_size=10)
    pool.start()
    try:
        pool.submit("https://a.example/")
        pool.submit("https://b.example/")
        await pool.join()
    finally:
        await pool.stop()

    assert sorted(orchestrator.runs) == ["https://a.example/", "https://b.example/"]
    assert pool.active == frozenset()


async def test_duplicate_submission_is_rejected_while_active():
    orchestrator = StubOrchestrator()
    orchestrator.release.clear()
    pool = CrawlWorkerPool(orchestrator, workers=1, queue_size=10)
    pool.start()
    try:
        pool.submit("https://a.example/")
        with pytest.raises(CrawlAlreadyActiveError):
            pool.submit("https://a.example/")
        assert pool.active == frozenset({"https://a.example/"})

        orchestrator.release.set()
        await pool.join()
        # Finished URLs can be crawled again
        pool.submit("https://a.example/")
        await pool.join()
    finally:
        await pool.stop()

    assert orchestrator.runs == ["https://a.example/", "https://a.example/"]


async def test_full_queue_rejects_without_marking_active():
    pool = CrawlWorkerPool(StubOrchestrator(), workers=1, queue_size=1)
    # Workers not started, so nothing drains the queue
    pool.submit("https://a.example/")
    with pytest.raises(CrawlQueueFullError):
        pool.submit("https://b.example/")
    assert pool.active == frozenset({"https://a.example/"})


async def test_worker_survives_failed_crawl():
    orchestrator = StubOrchestrator(fail_on={"https://bad.example/"})
    pool = CrawlWorkerPool(orchestrator, workers=1, queue_size=10)
    pool.start()
    try:
        pool.submit("https://bad.example/")
        pool.submit("https://good.example/")
        await pool.join()
    finally:
        await pool.stop()

    assert orchestrator.runs == ["https://bad.example/", "https://good.example/"]
    assert pool.active == frozenset()


async def test_stop_is_idempotent_and_start_twice_is_noop():
    pool = CrawlWorkerPool(StubOrchestrator(), workers=3, queue_size=10)
    pool.start()
    first_workers = list(pool._workers)
    pool.start()
    assert pool._workers == first_workers
    await pool.stop()
    await pool.stop()
    assert pool._workers == []

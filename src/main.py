"""FastAPI app entrypoint."""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from src.api.routes import router
from src.config import get_settings
from src.crawler.orchestrator import CrawlOrchestrator
from src.crawler.tasks import CrawlWorkerPool
from src.logging_config import setup_logging
from src.store.redis import RedisStore, create_redis_client

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()

    # Initialize logging FIRST so all subsequent operations produce JSON logs
    setup_logging(settings.log_level)
    logger.info("starting page analyzer service")

    redis_client = await create_redis_client(settings.redis_url)
    store = RedisStore(redis_client)

    # One client for the page fetch and every link probe
    http_client = httpx.AsyncClient(headers={"User-Agent": settings.user_agent})

    orchestrator = CrawlOrchestrator(settings, store, http_client)
    pool = CrawlWorkerPool(
        orchestrator,
        workers=settings.crawl_workers,
        queue_size=settings.crawl_queue_size,
    )
    pool.start()

    # Attach to app state for dependency injection
    app.state.settings = settings
    app.state.store = store
    app.state.pool = pool

    logger.info(
        "page analyzer service ready",
        extra={
            "crawl_workers": settings.crawl_workers,
            "crawl_queue_size": settings.crawl_queue_size,
            "max_probe_links": settings.max_probe_links,
        },
    )

    yield

    # Cleanup
    logger.info("shutting down page analyzer service")
    await pool.stop()
    await http_client.aclose()
    await redis_client.aclose()


app = FastAPI(title="Page Analyzer Service", lifespan=lifespan)
app.include_router(router)


@app.get("/health")
async def health():
    return {"status": "ok"}

"""POST /urls, GET /urls/{id}, POST /urls/{id}/start|stop endpoint handlers."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status

from src.api import service
from src.api.schemas import CrawlAccepted, UrlCreateRequest, UrlDetailResponse, UrlRecord
from src.crawler.errors import PersistenceError
from src.crawler.tasks import CrawlAlreadyActiveError, CrawlQueueFullError, CrawlWorkerPool
from src.store.base import AnalysisStore

router = APIRouter()


def _get_store(request: Request) -> AnalysisStore:
    return request.app.state.store


def _get_pool(request: Request) -> CrawlWorkerPool:
    return request.app.state.pool


def _store_unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Storage not available",
    )


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="URL not found")


@router.post("/urls", status_code=status.HTTP_201_CREATED, response_model=UrlRecord)
async def create_url(
    body: UrlCreateRequest,
    store: AnalysisStore = Depends(_get_store),
):
    try:
        return await service.register_url(store, body.url)
    except PersistenceError:
        raise _store_unavailable()


@router.get("/urls/{url_id}", response_model=UrlDetailResponse)
async def get_url(
    url_id: int,
    store: AnalysisStore = Depends(_get_store),
):
    try:
        detail = await service.get_url_detail(store, url_id)
    except PersistenceError:
        raise _store_unavailable()
    if detail is None:
        raise _not_found()
    return detail


@router.post("/urls/{url_id}/start", status_code=status.HTTP_202_ACCEPTED, response_model=CrawlAccepted)
async def start_crawling(
    url_id: int,
    store: AnalysisStore = Depends(_get_store),
    pool: CrawlWorkerPool = Depends(_get_pool),
):
    try:
        accepted = await service.start_crawl(store, pool, url_id)
    except PersistenceError:
        raise _store_unavailable()
    except CrawlAlreadyActiveError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Crawl already in progress")
    except CrawlQueueFullError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Crawl queue is full, try again later",
        )
    if accepted is None:
        raise _not_found()
    return accepted


@router.post("/urls/{url_id}/stop", status_code=status.HTTP_202_ACCEPTED, response_model=CrawlAccepted)
async def stop_crawling(
    url_id: int,
    store: AnalysisStore = Depends(_get_store),
):
    try:
        accepted = await service.stop_crawl(store, url_id)
    except PersistenceError:
        raise _store_unavailable()
    if accepted is None:
        raise _not_found()
    return accepted

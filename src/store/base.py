"""Persistence sink contract used by the crawl orchestrator."""

from __future__ import annotations

from typing import Protocol

from src.api.schemas import BrokenLink, UrlRecord


class AnalysisStore(Protocol):
    """Where URL records and their broken links live.

    Every method raises :class:`~src.crawler.errors.PersistenceError` when the
    backing store cannot serve the call.
    """

    async def find_or_create_by_url(self, url: str) -> UrlRecord: ...

    async def get(self, url_id: int) -> UrlRecord | None: ...

    async def save(self, record: UrlRecord) -> UrlRecord: ...

    async def delete_broken_links(self, url_id: int) -> None: ...

    async def create_broken_link(self, url_id: int, link_url: str, status_code: int) -> BrokenLink: ...

    async def list_broken_links(self, url_id: int) -> list[BrokenLink]: ...

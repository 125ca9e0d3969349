"""Redis-backed store for URL records and their broken links."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import redis.asyncio as redis
from redis.backoff import ExponentialBackoff
from redis.retry import Retry

from src.api.schemas import BrokenLink, UrlRecord
from src.crawler.errors import PersistenceError

logger = logging.getLogger(__name__)

URL_ID_COUNTER = "url:next_id"
BROKEN_LINK_ID_COUNTER = "broken_link:next_id"
URL_INDEX_PREFIX = "url:index:"
URL_KEY_PREFIX = "url:"


def _record_key(url_id: int) -> str:
    return f"{URL_KEY_PREFIX}{url_id}"


def _broken_links_key(url_id: int) -> str:
    return f"{URL_KEY_PREFIX}{url_id}:broken_links"


class RedisStore:
    """Async Redis implementation of :class:`~src.store.base.AnalysisStore`.

    Layout: an integer id per URL (``url:index:<url>``), the record JSON
    under ``url:<id>`` and the broken links as a JSON list under
    ``url:<id>:broken_links``.
    """

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    async def find_or_create_by_url(self, url: str) -> UrlRecord:
        """Return the record for *url*, registering it as ``queued`` if new."""
        index_key = f"{URL_INDEX_PREFIX}{url}"
        try:
            existing_id = await self._client.get(index_key)
            if existing_id is None:
                new_id = await self._client.incr(URL_ID_COUNTER)
                if await self._client.set(index_key, new_id, nx=True):
                    record = UrlRecord(id=new_id, url=url)
                    await self._client.set(_record_key(new_id), record.model_dump_json())
                    logger.info("url registered", extra={"url_id": new_id, "url": url})
                    return record
                # Another caller registered the URL between GET and SET
                existing_id = await self._client.get(index_key)

            url_id = int(existing_id)
            record = await self.get(url_id)
            if record is None:
                record = UrlRecord(id=url_id, url=url)
                await self._client.set(_record_key(url_id), record.model_dump_json())
            return record
        except redis.RedisError as exc:
            logger.warning("find_or_create failed", extra={"url": url}, exc_info=True)
            raise PersistenceError("url store unavailable") from exc

    async def get(self, url_id: int) -> UrlRecord | None:
        """Return the record with *url_id*, or ``None`` if there is none."""
        try:
            raw = await self._client.get(_record_key(url_id))
        except redis.RedisError as exc:
            logger.warning("record get failed", extra={"url_id": url_id}, exc_info=True)
            raise PersistenceError("url store unavailable") from exc
        if raw is None:
            return None
        return UrlRecord.model_validate_json(raw)

    async def save(self, record: UrlRecord) -> UrlRecord:
        """Write *record* back, refreshing ``updated_at``."""
        record.updated_at = datetime.now(timezone.utc)
        try:
            await self._client.set(_record_key(record.id), record.model_dump_json())
        except redis.RedisError as exc:
            logger.warning("record save failed", extra={"url_id": record.id}, exc_info=True)
            raise PersistenceError("url store unavailable") from exc
        logger.debug("record saved", extra={"url_id": record.id, "status": record.status})
        return record

    async def delete_broken_links(self, url_id: int) -> None:
        try:
            await self._client.delete(_broken_links_key(url_id))
        except redis.RedisError as exc:
            logger.warning("broken link delete failed", extra={"url_id": url_id}, exc_info=True)
            raise PersistenceError("url store unavailable") from exc

    async def create_broken_link(self, url_id: int, link_url: str, status_code: int) -> BrokenLink:
        try:
            link_id = await self._client.incr(BROKEN_LINK_ID_COUNTER)
            link = BrokenLink(id=link_id, url_id=url_id, link_url=link_url, status_code=status_code)
            await self._client.rpush(_broken_links_key(url_id), link.model_dump_json())
        except redis.RedisError as exc:
            logger.warning("broken link insert failed", extra={"url_id": url_id, "link_url": link_url}, exc_info=True)
            raise PersistenceError("url store unavailable") from exc
        return link

    async def list_broken_links(self, url_id: int) -> list[BrokenLink]:
        try:
            raw_links = await self._client.lrange(_broken_links_key(url_id), 0, -1)
        except redis.RedisError as exc:
            logger.warning("broken link list failed", extra={"url_id": url_id}, exc_info=True)
            raise PersistenceError("url store unavailable") from exc
        return [BrokenLink.model_validate_json(raw) for raw in raw_links]


async def create_redis_client(redis_url: str) -> redis.Redis:
    # Strip credentials for logging (everything before @ if present)
    safe_url = redis_url.split("@")[-1] if "@" in redis_url else redis_url
    logger.info("connecting to redis", extra={"redis_url": safe_url})
    retry = Retry(ExponentialBackoff(), retries=3)
    return redis.from_url(
        redis_url,
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
        health_check_interval=30,
        retry=retry,
        retry_on_error=[redis.ConnectionError, redis.TimeoutError],
    )

"""Redis store tests."""

from unittest.mock import AsyncMock

import pytest
import redis.asyncio as redis

from src.crawler.errors import PersistenceError
from src.store.redis import RedisStore


pytestmark = pytest.mark.asyncio


async def test_find_or_create_registers_queued_record(redis_store: RedisStore):
    record = await redis_store.find_or_create_by_url("https://example.com")
    assert record.id == 1
    assert record.url == "https://example.com"
    assert record.status == "queued"
    assert record.title == "Untitled"
    assert record.html_version == "unknown"


async def test_find_or_create_returns_existing(redis_store: RedisStore):
    first = await redis_store.find_or_create_by_url("https://example.com")
    second = await redis_store.find_or_create_by_url("https://example.com")
    other = await redis_store.find_or_create_by_url("https://example.org")
    assert second.id == first.id
    assert other.id != first.id


async def test_save_and_get(redis_store: RedisStore):
    record = await redis_store.find_or_create_by_url("https://example.com")
    before = record.updated_at
    record.status = "done"
    record.set_heading_counts([1, 2, 3, 0, 0, 1])
    record.internal_links = 4
    await redis_store.save(record)

    loaded = await redis_store.get(record.id)
    assert loaded is not None
    assert loaded.status == "done"
    assert loaded.heading_counts == [1, 2, 3, 0, 0, 1]
    assert loaded.internal_links == 4
    assert loaded.updated_at >= before


async def test_get_missing_record(redis_store: RedisStore):
    assert await redis_store.get(999) is None


async def test_broken_links_are_listed_in_insert_order(redis_store: RedisStore):
    record = await redis_store.find_or_create_by_url("https://example.com")
    await redis_store.create_broken_link(record.id, "https://example.com/a", 404)
    await redis_store.create_broken_link(record.id, "https://down.example.net/", 0)

    links = await redis_store.list_broken_links(record.id)
    assert [(link.link_url, link.status_code) for link in links] == [
        ("https://example.com/a", 404),
        ("https://down.example.net/", 0),
    ]
    assert all(link.url_id == record.id for link in links)
    assert links[0].id != links[1].id


async def test_delete_broken_links_only_touches_one_url(redis_store: RedisStore):
    a = await redis_store.find_or_create_by_url("https://a.example")
    b = await redis_store.find_or_create_by_url("https://b.example")
    await redis_store.create_broken_link(a.id, "https://a.example/x", 500)
    await redis_store.create_broken_link(b.id, "https://b.example/y", 410)

    await redis_store.delete_broken_links(a.id)

    assert await redis_store.list_broken_links(a.id) == []
    assert len(await redis_store.list_broken_links(b.id)) == 1


async def test_get_raises_persistence_error_on_connection_error(redis_store: RedisStore):
    redis_store._client.get = AsyncMock(side_effect=redis.ConnectionError("down"))
    with pytest.raises(PersistenceError):
        await redis_store.get(1)


async def test_create_broken_link_raises_persistence_error(redis_store: RedisStore):
    redis_store._client.rpush = AsyncMock(side_effect=redis.ConnectionError("down"))
    with pytest.raises(PersistenceError):
        await redis_store.create_broken_link(1, "https://example.com/a", 404)


async def test_save_raises_persistence_error(redis_store: RedisStore):
    record = await redis_store.find_or_create_by_url("https://example.com")
    redis_store._client.set = AsyncMock(side_effect=redis.TimeoutError("slow"))
    with pytest.raises(PersistenceError):
        await redis_store.save(record)

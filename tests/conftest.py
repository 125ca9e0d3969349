"""Fixtures — fake Redis store, mock HTTP transport."""

from collections.abc import Callable

import httpx
import pytest_asyncio
from fakeredis.aioredis import FakeRedis

from src.store.redis import RedisStore

Handler = Callable[[httpx.Request], httpx.Response]


@pytest_asyncio.fixture
async def redis_store():
    """RedisStore backed by an in-memory FakeRedis instance."""
    client = FakeRedis(decode_responses=True)
    store = RedisStore(client)
    yield store
    await client.aclose()


def mock_client(handler: Handler) -> httpx.AsyncClient:
    """AsyncClient whose requests are answered by *handler* instead of the network."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def html_response(body: str, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, content=body.encode(), headers={"content-type": "text/html"})
